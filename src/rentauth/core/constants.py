"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Token lifetimes (seconds)
ACCESS_TOKEN_TTL_SECONDS = 30
REFRESH_TOKEN_TTL_PRODUCTION_SECONDS = 600
REFRESH_TOKEN_TTL_DEVELOPMENT_SECONDS = 12 * 60 * 60
SESSION_TOKEN_TTL_PRODUCTION_SECONDS = 30 * 60
SESSION_TOKEN_TTL_DEVELOPMENT_SECONDS = 12 * 60 * 60
MACHINE_TOKEN_TTL_SECONDS = 300
SERVICE_TOKEN_TTL_SECONDS = 300
RESET_TOKEN_TTL_SECONDS = 60 * 60
ACCESS_TOKEN_JTI_LENGTH = 32

# One-time passcodes
OTP_LENGTH = 6
OTP_TTL_SECONDS = 5 * 60
OTP_STORE_LEEWAY_SECONDS = 30
OTP_MAX_GENERATION_ATTEMPTS = 5
WHATSAPP_PLACEHOLDER_DOMAIN = "whatsapp.tenant"

# Phone numbers (E.164, optional leading +)
PHONE_NUMBER_PATTERN = r"^\+?[1-9]\d{1,14}$"

# Failed sign-in monitoring
FAILED_ATTEMPT_WINDOW_SECONDS = 15 * 60
MAX_FAILED_ATTEMPTS = 5

# Rate limit warning threshold
RATE_LIMIT_WARNING_REMAINING = 2

# Cookies
REFRESH_TOKEN_COOKIE = "refreshToken"
SESSION_TOKEN_COOKIE = "sessionToken"

# Locales supported by the emailer templates
SUPPORTED_LOCALES = ("fr-FR", "en-US", "pt-BR", "de-DE", "es-CO")
DEFAULT_LOCALE = "en-US"

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_PHONE_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
