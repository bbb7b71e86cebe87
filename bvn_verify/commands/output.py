from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from ..models import RegistryRecord, VerificationResult

OK = "OK"
WARNING = "WARNING"
ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class CheckLine:
    label: str
    status: str
    detail: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == ERROR

    def render(self) -> str:
        if self.detail:
            return f"{self.label}: {self.status} ({self.detail})"
        return f"{self.label}: {self.status}"


def render_result(bvn: str, result: VerificationResult, *, as_json: bool = False) -> str:
    if as_json:
        return json.dumps({"bvn": bvn, **result.to_dict()}, ensure_ascii=False)
    if result.is_match:
        return f"MATCH   {bvn} verified as {result.verified_name}"
    if result.ok:
        return f"NO MATCH {bvn}: {result.message}"
    return f"FAILED  {bvn}: {result.message}"


def render_record(record: RegistryRecord) -> str:
    return f"{record.bvn}  {record.registered_name}"
