"""One-time passcode issuance and verification.

A passcode goes ``Issued -> Verified | Expired | Invalidated``. Only the
issued state is stored; once a record is gone the code is rejected the same
way whether it never existed, was already used or lapsed.

Verification reads and deletes the record in one store operation before
anything else is checked, so a code can succeed at most once even when two
requests race on it.
"""

import re
import secrets
import string
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta

import structlog
from pydantic import EmailStr, TypeAdapter

from rentauth.core.auth.schemas import Principal, PrincipalKind, Role, TenantSession
from rentauth.core.auth.service import TokenService
from rentauth.core.cache import CredentialStore
from rentauth.core.constants import (
    OTP_LENGTH,
    OTP_MAX_GENERATION_ATTEMPTS,
    OTP_STORE_LEEWAY_SECONDS,
    OTP_TTL_SECONDS,
    PHONE_NUMBER_PATTERN,
    WHATSAPP_PLACEHOLDER_DOMAIN,
)
from rentauth.core.directory import SubjectDirectory, SubjectRecord
from rentauth.core.errors import AppException, DeliveryError, InvalidCredentialsError, ValidationError
from rentauth.core.notify import Notifier
from rentauth.core.otp.schemas import OtpChannel, OtpRecord
from rentauth.core.utils.timing import response_floor


logger = structlog.get_logger()

OTP_PREFIX = "otp:"

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)
_phone_pattern = re.compile(PHONE_NUMBER_PATTERN)


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Generate a numeric passcode with a cryptographic RNG."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_recipient(identifier: str | None, channel: OtpChannel) -> str:
    """Normalize an email address or phone number.

    Raises:
        ValidationError: If the identifier is missing or malformed
    """
    value = (identifier or "").strip()
    if channel is OtpChannel.EMAIL:
        field = "email"
        value = value.lower()
        try:
            _email_adapter.validate_python(value)
        except ValueError:
            value = ""
    else:
        field = "phoneNumber"
        if not _phone_pattern.match(value):
            value = ""

    if not value:
        raise ValidationError(
            f"Invalid {field}",
            errors=[{"field": field, "message": f"A valid {field} is required"}],
        )
    return value


class OtpCoordinator:
    """Issues, delivers and consumes tenant passcodes.

    Args:
        store: Shared credential store holding outstanding codes
        tokens: Token service minting the tenant session
        subjects: Tenant lookups by email or phone
        notifiers: Delivery collaborator per channel
        clock: Current time, injectable for tests
        guard_floor_seconds: Minimum duration of an issuance call
        code_factory: Passcode generator
    """

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenService,
        subjects: SubjectDirectory,
        notifiers: Mapping[OtpChannel, Notifier],
        clock: Callable[[], datetime] = _utcnow,
        guard_floor_seconds: float = 0.0,
        code_factory: Callable[[], str] = generate_otp,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.subjects = subjects
        self.notifiers = notifiers
        self.clock = clock
        self.guard_floor_seconds = guard_floor_seconds
        self.code_factory = code_factory

    # ============================================================
    # Issuance
    # ============================================================

    async def request_otp(
        self, identifier: str | None, channel: OtpChannel, locale: str
    ) -> None:
        """Send a passcode to a tenant, if the tenant exists.

        Returns normally whether or not a tenant matches, so callers answer
        identically either way; the call is padded to a minimum duration.

        Raises:
            ValidationError: If the identifier is malformed
            DeliveryError: If the collaborator could not deliver the code
        """
        recipient = normalize_recipient(identifier, channel)

        async with response_floor(self.guard_floor_seconds):
            subject = await self._find_subject(recipient, channel)
            if subject is None:
                logger.info("otp_not_issued", channel=str(channel), reason="subject_not_found")
                return

            if channel is OtpChannel.WHATSAPP:
                contact = subject.contact_for_phone(recipient)
                if contact is None or not contact.whatsapp_enabled_for(recipient):
                    logger.info(
                        "otp_not_issued",
                        channel=str(channel),
                        reason="whatsapp_not_enabled",
                        subject_id=subject.id,
                    )
                    return

            record = await self._store_new_code(recipient, channel)
            try:
                receipt = await self.notifiers[channel].send_otp(
                    recipient, record.code, locale
                )
            except DeliveryError:
                await self.store.delete(OTP_PREFIX + record.code)
                logger.error("otp_delivery_failed", channel=str(channel), subject_id=subject.id)
                raise

            logger.info(
                "otp_issued",
                channel=str(channel),
                subject_id=subject.id,
                message_id=receipt.message_id,
                expires_at=record.expires_at.isoformat(),
            )

    async def _find_subject(
        self, recipient: str, channel: OtpChannel
    ) -> SubjectRecord | None:
        if channel is OtpChannel.EMAIL:
            return await self.subjects.find_by_email(recipient)
        return await self.subjects.find_by_phone(recipient)

    async def _store_new_code(self, recipient: str, channel: OtpChannel) -> OtpRecord:
        """Store a fresh code; a code already outstanding is never reused."""
        now = self.clock()
        for _ in range(OTP_MAX_GENERATION_ATTEMPTS):
            record = OtpRecord(
                code=self.code_factory(),
                created_at=now,
                expires_at=now + timedelta(seconds=OTP_TTL_SECONDS),
                channel=channel,
                recipient=recipient,
            )
            stored = await self.store.add(
                OTP_PREFIX + record.code,
                record.model_dump_json(),
                OTP_TTL_SECONDS + OTP_STORE_LEEWAY_SECONDS,
            )
            if stored:
                return record

        logger.error("otp_generation_exhausted", attempts=OTP_MAX_GENERATION_ATTEMPTS)
        raise AppException("Unable to issue a one-time passcode")

    # ============================================================
    # Verification
    # ============================================================

    async def verify_otp(
        self, code: str | None, channel: OtpChannel | None = None
    ) -> TenantSession:
        """Consume a passcode and open a tenant session.

        Args:
            code: The passcode received by the tenant
            channel: Expected channel; None accepts any

        Returns:
            The session token and the tenant principal

        Raises:
            InvalidCredentialsError: If the code is unknown, used, expired,
                from another channel, or its tenant is gone
        """
        code = (code or "").strip()
        if len(code) != OTP_LENGTH or not code.isdigit():
            logger.info("otp_rejected", reason="malformed")
            raise InvalidCredentialsError

        raw = await self.store.get_and_delete(OTP_PREFIX + code)
        if raw is None:
            logger.info("otp_rejected", reason="not_found")
            raise InvalidCredentialsError

        try:
            record = OtpRecord.model_validate_json(raw)
        except ValueError as exc:
            logger.error("otp_rejected", reason="corrupt_record")
            raise InvalidCredentialsError from exc

        if record.is_expired(self.clock()):
            logger.info("otp_rejected", reason="expired", channel=str(record.channel))
            raise InvalidCredentialsError

        if channel is not None and record.channel is not channel:
            logger.info(
                "otp_rejected",
                reason="channel_mismatch",
                expected=str(channel),
                actual=str(record.channel),
            )
            raise InvalidCredentialsError

        if record.channel is OtpChannel.WHATSAPP:
            principal = await self._whatsapp_principal(record.recipient)
        else:
            subject = await self.subjects.find_by_email(record.recipient)
            principal = Principal(
                kind=PrincipalKind.USER,
                role=Role.TENANT,
                id=subject.id if subject else None,
                email=record.recipient,
            )

        session_token = await self.tokens.issue_session(principal, record.recipient)
        logger.info("tenant_signed_in", channel=str(record.channel), subject_id=principal.id)
        return TenantSession(session_token=session_token, principal=principal)

    async def _whatsapp_principal(self, phone: str) -> Principal:
        subject = await self.subjects.find_by_phone(phone)
        if subject is None:
            logger.info("otp_rejected", reason="subject_not_found", channel="whatsapp")
            raise InvalidCredentialsError

        contact = subject.contact_for_phone(phone)
        email = contact.email if contact and contact.email else None
        return Principal(
            kind=PrincipalKind.USER,
            role=Role.TENANT,
            id=subject.id,
            email=email or f"{phone}@{WHATSAPP_PLACEHOLDER_DOMAIN}",
            phone=phone,
        )
