from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Any, List, Mapping, Optional, Union

from .backends.base import VerificationBackend
from .backends.fixture import DEFAULT_LATENCY_SECONDS, FixtureBackend
from .backends.remote import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USERAGENT, RemoteBackend
from .config import Settings
from .exceptions import ConfigurationError, UnsupportedCapabilityError
from .models import BackendMode, RegistryRecord, VerificationRequest, VerificationResult
from .validation import validate_input

logger = logging.getLogger(__name__)


def parse_mode(value: Union[BackendMode, str]) -> BackendMode:
    if isinstance(value, BackendMode):
        return value
    try:
        return BackendMode(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(mode.value for mode in BackendMode)
        raise ConfigurationError(f"invalid mode {value!r}; allowed: {allowed}") from None


class BVNVerifier:
    """Validates BVN/name pairs and routes them to the active backend.

    Exactly one backend is live at a time. Switching modes builds the new
    backend first, swaps the reference under a lock, then closes the old one,
    so concurrent ``verify`` calls always see a fully constructed backend.
    """

    def __init__(
        self,
        api_key: str = "mock-key",
        sandbox_mode: bool = False,
        mode: Union[BackendMode, str] = BackendMode.FIXTURE,
        *,
        data_file: Optional[Path] = None,
        fixture_latency_seconds: float = DEFAULT_LATENCY_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        useragent: str = DEFAULT_USERAGENT,
    ) -> None:
        self._api_key = api_key
        self._sandbox_mode = sandbox_mode
        self._mode = parse_mode(mode)
        self.data_file = Path(data_file) if data_file is not None else None
        self.fixture_latency_seconds = fixture_latency_seconds
        self.timeout = timeout
        self.useragent = useragent
        self._lock = Lock()
        self._backend: VerificationBackend = self._build_backend(self._mode)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BVNVerifier":
        return cls(
            api_key=settings.remote.api_key,
            sandbox_mode=settings.sandbox_mode,
            mode=settings.mode,
            data_file=settings.fixture.data_file,
            fixture_latency_seconds=settings.fixture.latency_seconds,
            timeout=settings.remote.timeout_seconds,
            useragent=settings.remote.useragent,
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def sandbox_mode(self) -> bool:
        return self._sandbox_mode

    @property
    def mode(self) -> BackendMode:
        return self._mode

    def _build_backend(self, mode: BackendMode) -> VerificationBackend:
        if mode is BackendMode.REMOTE:
            try:
                return RemoteBackend(
                    self._api_key,
                    sandbox_mode=self._sandbox_mode,
                    timeout=self.timeout,
                    useragent=self.useragent,
                )
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        if self.data_file is None:
            raise ConfigurationError("fixture mode requires a data file path")
        return FixtureBackend(
            self.data_file,
            sandbox_mode=self._sandbox_mode,
            latency_seconds=self.fixture_latency_seconds,
        )

    def _active(self) -> VerificationBackend:
        with self._lock:
            return self._backend

    def verify(self, bvn: str, customer_name: str) -> VerificationResult:
        validate_input(bvn, customer_name)
        request = VerificationRequest(bvn, customer_name)
        backend = self._active()
        result = backend.verify_record(request)
        logger.debug(
            "Verified BVN %s via %s backend: status=%s match=%s",
            bvn,
            self._mode.value,
            result.status.value,
            result.is_match,
        )
        return result

    def verify_with_details(self, bvn: str, customer_name: str) -> VerificationResult:
        return self.verify(bvn, customer_name)

    def set_mode(self, mode: Union[BackendMode, str]) -> None:
        target = parse_mode(mode)
        if target is self._mode:
            return
        replacement = self._build_backend(target)
        with self._lock:
            previous = self._backend
            self._backend = replacement
            self._mode = target
        previous.close()
        logger.info("Switched verification backend to %s", target.value)

    def set_sandbox_mode(self, enabled: bool) -> None:
        with self._lock:
            self._sandbox_mode = enabled
            self._backend.set_sandbox_mode(enabled)

    def supports_records(self) -> bool:
        return self._mode is BackendMode.FIXTURE

    def _fixture(self) -> FixtureBackend:
        with self._lock:
            backend = self._backend
            mode = self._mode
        if mode is not BackendMode.FIXTURE or not isinstance(backend, FixtureBackend):
            raise UnsupportedCapabilityError("records only available in fixture mode")
        return backend

    def list_records(self) -> List[RegistryRecord]:
        return self._fixture().list_records()

    def add_record(self, record: Union[RegistryRecord, Mapping[str, Any]]) -> bool:
        return self._fixture().add_record(record)

    def close(self) -> None:
        self._active().close()
