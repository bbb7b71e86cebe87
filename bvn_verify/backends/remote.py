from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional

from ..exceptions import UnsupportedCapabilityError
from ..models import RegistryRecord, VerificationRequest, VerificationResult, VerificationStatus

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://sandbox-api.nibss.gov.ng/nps/"
PRODUCTION_BASE_URL = "https://api.nibss.gov.ng/nps/"
VERIFY_ROUTE = "bvn/verify"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USERAGENT = "bvn-verify/0.1"

STATUS_MESSAGES: Dict[int, str] = {
    400: "invalid request parameters",
    401: "invalid credential or unauthorized access",
    403: "invalid credential or unauthorized access",
    422: "validation failed",
    429: "rate limit exceeded",
    500: "service unavailable",
}


def describe_http_status(code: int, detail: str) -> str:
    message = STATUS_MESSAGES.get(code)
    if message:
        return message
    return f"verification service error: {detail}"


class RemoteBackend:
    """HTTPS client for the NIBSS verification service.

    Every call is a single attempt. HTTP and transport failures come back as
    failed results instead of exceptions.
    """

    def __init__(
        self,
        api_key: str,
        sandbox_mode: bool = False,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        useragent: str = DEFAULT_USERAGENT,
    ) -> None:
        if not api_key:
            raise ValueError("API key required for remote verification")
        self.api_key = api_key
        self.sandbox_mode = sandbox_mode
        self.timeout = timeout
        self.useragent = useragent

    @property
    def base_url(self) -> str:
        return SANDBOX_BASE_URL if self.sandbox_mode else PRODUCTION_BASE_URL

    @property
    def verify_url(self) -> str:
        return f"{self.base_url}{VERIFY_ROUTE}"

    def set_sandbox_mode(self, enabled: bool) -> None:
        self.sandbox_mode = enabled

    def verify_record(self, request: VerificationRequest) -> VerificationResult:
        url = self.verify_url
        try:
            data = self._post(url, request.to_payload())
        except urllib.error.HTTPError as exc:
            logger.warning("Verification service returned HTTP %s for %s: %s", exc.code, url, exc)
            return VerificationResult.failure(describe_http_status(exc.code, str(exc)))
        except urllib.error.URLError as exc:
            logger.warning("Verification request failed for %s: %s", url, exc.reason)
            return VerificationResult.failure(f"verification service error: {exc.reason}")
        except http.client.HTTPException as exc:
            logger.warning("Verification service sent a malformed HTTP response for %s: %r", url, exc)
            return VerificationResult.failure(f"verification service error: {exc!r}")
        except (TimeoutError, OSError) as exc:
            logger.warning("Verification request failed for %s: %s", url, exc)
            return VerificationResult.failure(f"verification service error: {exc}")
        except ValueError as exc:
            logger.warning("Verification service sent an unreadable response for %s: %s", url, exc)
            return VerificationResult.failure(f"verification service error: invalid response ({exc})")
        return self._parse(data)

    def _post(self, url: str, payload: Dict[str, str]) -> Any:
        req = urllib.request.Request(
            url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": self.useragent,
            },
        )
        logger.debug("POST %s", url)
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            return json.load(resp)

    def _parse(self, data: Any) -> VerificationResult:
        if not isinstance(data, dict):
            return VerificationResult.failure("verification service error: unexpected response body")
        verified_name = _optional_str(data.get("verified_name"))
        message = _optional_str(data.get("message"))
        try:
            status = VerificationStatus(data.get("status") or VerificationStatus.COMPLETED.value)
        except ValueError:
            logger.debug("Unknown verification status %r treated as failed", data.get("status"))
            status = VerificationStatus.FAILED
        is_match = data.get("is_match") is True
        if is_match and not verified_name:
            logger.debug("Discarding match flag from response without a verified name")
            is_match = False
        return VerificationResult(is_match, verified_name, status, message)

    def list_records(self) -> List[RegistryRecord]:
        raise UnsupportedCapabilityError("records are not available in remote mode")

    def close(self) -> None:
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)
