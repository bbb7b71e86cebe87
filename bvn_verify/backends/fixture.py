from __future__ import annotations

import contextlib
import json
import logging
import os
import time
from pathlib import Path
from threading import Lock
from typing import Any, List, Mapping, Optional, Union

from ..exceptions import DatasetError
from ..matching import names_match
from ..models import BVN_KEY, REGISTERED_NAME_KEY, RegistryRecord, VerificationRequest, VerificationResult
from ..validation import BVN_LENGTH, is_valid_bvn

logger = logging.getLogger(__name__)

RECORDS_KEY = "bvn_records"
DEFAULT_LATENCY_SECONDS = 0.3


class FixtureBackend:
    """Offline registry backed by a JSON document.

    Each lookup sleeps for ``latency_seconds`` so callers see timing close to
    a remote call.
    """

    def __init__(
        self,
        data_file: Path,
        sandbox_mode: bool = False,
        latency_seconds: float = DEFAULT_LATENCY_SECONDS,
    ) -> None:
        self.data_file = Path(data_file)
        self.sandbox_mode = sandbox_mode
        self.latency_seconds = latency_seconds
        self._lock = Lock()
        self._records: List[RegistryRecord] = self._load()
        logger.debug("Loaded %d fixture record(s) from %s", len(self._records), self.data_file)

    def _load(self) -> List[RegistryRecord]:
        if not self.data_file.exists():
            raise DatasetError(f"fixture data file not found: {self.data_file}")
        try:
            with self.data_file.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise DatasetError(f"invalid JSON in fixture data file {self.data_file}: {exc}") from exc
        except OSError as exc:
            raise DatasetError(f"unable to read fixture data file {self.data_file}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get(RECORDS_KEY), list):
            raise DatasetError(f"fixture data file {self.data_file} must contain a '{RECORDS_KEY}' array")
        records: List[RegistryRecord] = []
        for index, entry in enumerate(data[RECORDS_KEY]):
            if not isinstance(entry, dict):
                raise DatasetError(f"record #{index} in {self.data_file} is not an object")
            try:
                records.append(RegistryRecord.from_dict(entry))
            except ValueError as exc:
                raise DatasetError(f"record #{index} in {self.data_file}: {exc}") from exc
        return records

    def verify_record(self, request: VerificationRequest) -> VerificationResult:
        if self.latency_seconds > 0:
            time.sleep(self.latency_seconds)
        if not is_valid_bvn(request.bvn):
            return VerificationResult.failure(f"identity number must be exactly {BVN_LENGTH} digits")
        record = self._find(request.bvn)
        if record is None:
            logger.debug("BVN %s not present in fixture registry", request.bvn)
            return VerificationResult.failure(f"{request.bvn} not found in registry")
        if names_match(request.customer_name, record.registered_name):
            return VerificationResult.matched(record.registered_name, "verification successful")
        return VerificationResult.mismatched(
            record.registered_name,
            f"name does not match registry record; registered name: {record.registered_name}",
        )

    def _find(self, bvn: str) -> Optional[RegistryRecord]:
        with self._lock:
            records = list(self._records)
        for record in records:
            if record.bvn == bvn:
                return record
        return None

    def set_sandbox_mode(self, enabled: bool) -> None:
        self.sandbox_mode = enabled

    def list_records(self) -> List[RegistryRecord]:
        with self._lock:
            return list(self._records)

    def add_record(self, record: Union[RegistryRecord, Mapping[str, Any]]) -> bool:
        """Append a record and rewrite the dataset.

        Returns False without touching the catalogue when a required field is
        missing or the BVN is already registered, and also when the record
        cannot be serialized or the dataset cannot be written.
        """
        if isinstance(record, RegistryRecord):
            candidate = record
        else:
            if not record.get(BVN_KEY) or not record.get(REGISTERED_NAME_KEY):
                logger.debug("Rejected fixture record without %s/%s", BVN_KEY, REGISTERED_NAME_KEY)
                return False
            try:
                candidate = RegistryRecord.from_dict(record)
            except ValueError as exc:
                logger.debug("Rejected fixture record: %s", exc)
                return False
        if not candidate.bvn or not candidate.registered_name:
            return False
        with self._lock:
            if any(existing.bvn == candidate.bvn for existing in self._records):
                logger.debug("Rejected duplicate fixture record for BVN %s", candidate.bvn)
                return False
            if not self._save([*self._records, candidate]):
                return False
            self._records.append(candidate)
            return True

    def _save(self, records: List[RegistryRecord]) -> bool:
        payload = {RECORDS_KEY: [record.to_dict() for record in records]}
        try:
            text = json.dumps(payload, indent=4, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.warning("Fixture record cannot be stored as JSON: %s", exc)
            return False
        # A failed write leaves the previous dataset in place.
        tmp_path = self.data_file.with_name(f".{self.data_file.name}.tmp")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, self.data_file)
        except OSError as exc:
            logger.warning("Failed to write fixture data file %s: %s", self.data_file, exc)
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            return False
        return True

    def close(self) -> None:
        return None
