from __future__ import annotations


class VerificationError(Exception):
    """Base class for hard failures: bad input, bad configuration, misuse."""


class ValidationError(VerificationError):
    """Raised when a BVN or customer name fails the input rules."""


class ConfigurationError(VerificationError):
    """Raised for an unknown backend mode or an incomplete backend setup."""


class DatasetError(VerificationError):
    """Raised when the fixture dataset is missing or structurally invalid."""


class UnsupportedCapabilityError(VerificationError):
    """Raised when the active backend does not offer the requested operation."""
