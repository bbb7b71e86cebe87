from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

BVN_KEY = "bvn"
REGISTERED_NAME_KEY = "registered_name"


class VerificationStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class BackendMode(str, Enum):
    REMOTE = "remote"
    FIXTURE = "fixture"


@dataclass(frozen=True, slots=True)
class VerificationRequest:
    bvn: str
    customer_name: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "account_number": self.bvn,
            "customer_name": self.customer_name,
        }


@dataclass(frozen=True, slots=True)
class VerificationResult:
    is_match: bool
    verified_name: Optional[str] = None
    status: VerificationStatus = VerificationStatus.COMPLETED
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.is_match and not self.verified_name:
            raise ValueError("a matching result must carry the verified name")

    @property
    def ok(self) -> bool:
        return self.status is VerificationStatus.COMPLETED

    @classmethod
    def matched(cls, registered_name: str, message: Optional[str] = None) -> "VerificationResult":
        return cls(True, registered_name, VerificationStatus.COMPLETED, message)

    @classmethod
    def mismatched(cls, registered_name: str, message: Optional[str] = None) -> "VerificationResult":
        return cls(False, registered_name, VerificationStatus.COMPLETED, message)

    @classmethod
    def failure(cls, message: str) -> "VerificationResult":
        return cls(False, None, VerificationStatus.FAILED, message)

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_match": self.is_match,
            "verified_name": self.verified_name,
            "status": self.status.value,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class RegistryRecord:
    """A single registry entry as stored in the fixture dataset.

    Fields other than the BVN and the registered name are kept in ``extra``
    so that rewriting the dataset does not drop them.
    """

    bvn: str
    registered_name: str
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RegistryRecord":
        bvn = payload.get(BVN_KEY)
        name = payload.get(REGISTERED_NAME_KEY)
        if not isinstance(bvn, str) or not isinstance(name, str):
            raise ValueError(
                f"record requires string '{BVN_KEY}' and '{REGISTERED_NAME_KEY}' fields"
            )
        extra = {
            key: value
            for key, value in payload.items()
            if key not in (BVN_KEY, REGISTERED_NAME_KEY)
        }
        return cls(bvn=bvn, registered_name=name, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            BVN_KEY: self.bvn,
            REGISTERED_NAME_KEY: self.registered_name,
        }
        for key, value in self.extra.items():
            if key not in payload:
                payload[key] = value
        return payload
