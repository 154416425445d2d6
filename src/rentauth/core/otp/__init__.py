"""Passwordless sign-in with one-time passcodes over email and WhatsApp."""

from rentauth.core.otp.coordinator import OtpCoordinator, generate_otp
from rentauth.core.otp.schemas import OtpChannel, OtpRecord


__all__ = [
    "OtpChannel",
    "OtpCoordinator",
    "OtpRecord",
    "generate_otp",
]
