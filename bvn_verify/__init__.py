"BVN identity verification against a remote registry or a local fixture dataset."

from importlib import metadata

from .exceptions import (
    ConfigurationError,
    DatasetError,
    UnsupportedCapabilityError,
    ValidationError,
    VerificationError,
)
from .models import (
    BackendMode,
    RegistryRecord,
    VerificationRequest,
    VerificationResult,
    VerificationStatus,
)
from .verifier import BVNVerifier

__all__ = [
    "BVNVerifier",
    "BackendMode",
    "ConfigurationError",
    "DatasetError",
    "RegistryRecord",
    "UnsupportedCapabilityError",
    "ValidationError",
    "VerificationError",
    "VerificationRequest",
    "VerificationResult",
    "VerificationStatus",
    "__version__",
]


def __getattr__(name: str) -> str:
    if name == "__version__":
        try:
            return metadata.version("bvn-verify")
        except metadata.PackageNotFoundError:  # pragma: no cover - during editable dev installs
            return "0.0.0"
    raise AttributeError(name)
