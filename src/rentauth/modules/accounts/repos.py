"""Account repository implementing the account directory."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rentauth.core.directory import AccountRecord
from rentauth.modules.accounts.models import Account


def to_account_record(account: Account) -> AccountRecord:
    return AccountRecord(
        id=str(account.id),
        email=account.email,
        firstname=account.firstname,
        lastname=account.lastname,
        password_hash=account.password_hash,
    )


class AccountRepository:
    """Repository for Account database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_email(self, email: str) -> AccountRecord | None:
        """Get an account by email, case-insensitively.

        Args:
            email: Email address

        Returns:
            The account if found, None otherwise
        """
        result = await self.session.execute(
            select(Account).where(func.lower(Account.email) == email.lower())
        )
        account = result.scalar_one_or_none()
        return to_account_record(account) if account else None

    async def create(
        self, email: str, firstname: str, lastname: str, password_hash: str
    ) -> AccountRecord:
        """Create a new account.

        Returns:
            The created account with ID populated
        """
        account = Account(
            email=email.lower(),
            firstname=firstname,
            lastname=lastname,
            password_hash=password_hash,
        )
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return to_account_record(account)

    async def set_password(self, email: str, password_hash: str) -> bool:
        """Replace the password hash of an account.

        Returns:
            True if an account was updated
        """
        result = await self.session.execute(
            update(Account)
            .where(func.lower(Account.email) == email.lower())
            .values(password_hash=password_hash)
        )
        return result.rowcount > 0  # type: ignore[attr-defined]
