"""Interchangeable verification transports used by the dispatcher."""

from __future__ import annotations

from .base import VerificationBackend
from .fixture import FixtureBackend
from .remote import PRODUCTION_BASE_URL, SANDBOX_BASE_URL, RemoteBackend

__all__ = [
    "FixtureBackend",
    "PRODUCTION_BASE_URL",
    "RemoteBackend",
    "SANDBOX_BASE_URL",
    "VerificationBackend",
]
