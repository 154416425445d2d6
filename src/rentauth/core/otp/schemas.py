"""One-time passcode records."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class OtpChannel(StrEnum):
    """Channel a passcode is delivered on."""

    EMAIL = "email"
    WHATSAPP = "whatsapp"


class OtpRecord(BaseModel):
    """A passcode waiting for verification.

    Stored as JSON under ``otp:<code>``. ``recipient`` is the normalized
    email address or phone number the code was sent to.
    """

    code: str
    created_at: datetime
    expires_at: datetime
    channel: OtpChannel
    recipient: str

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
