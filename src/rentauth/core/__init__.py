"""Core infrastructure: tokens, passcodes, rate limiting, store and errors."""
