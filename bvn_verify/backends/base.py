from __future__ import annotations

from typing import List, Protocol

from ..models import RegistryRecord, VerificationRequest, VerificationResult


class VerificationBackend(Protocol):
    """Interface shared by every verification transport.

    ``verify_record`` reports not-found, mismatch and transport problems
    through the returned result; it only raises on programmer error.
    """

    def verify_record(self, request: VerificationRequest) -> VerificationResult: ...

    def set_sandbox_mode(self, enabled: bool) -> None: ...

    def list_records(self) -> List[RegistryRecord]: ...

    def close(self) -> None: ...
