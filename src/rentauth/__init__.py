"""Authentication, one-time passcode and abuse-mitigation core."""

__version__ = "0.1.0"
