"""SafeSQL engine: validate, bound, run and redact untrusted read-only SQL."""

__version__ = "0.1.0"
