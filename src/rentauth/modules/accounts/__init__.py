"""Landlord accounts."""

from rentauth.modules.accounts.repos import AccountRepository


__all__ = ["AccountRepository"]
