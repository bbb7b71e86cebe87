from __future__ import annotations

from dataclasses import dataclass

from ..backends.fixture import FixtureBackend
from ..backends.remote import PRODUCTION_BASE_URL, SANDBOX_BASE_URL
from ..config import Settings
from ..exceptions import DatasetError
from ..models import BackendMode
from .output import ERROR, OK, WARNING, CheckLine


@dataclass(slots=True)
class DoctorReport:
    ok: bool
    checks: list[CheckLine]

    def lines(self) -> list[str]:
        return [check.render() for check in self.checks]


def _dataset_check(settings: Settings) -> CheckLine:
    data_file = settings.fixture.data_file
    required = settings.mode is BackendMode.FIXTURE
    if data_file is None:
        status = ERROR if required else WARNING
        return CheckLine("Dataset", status, "set fixture.data_file")
    try:
        backend = FixtureBackend(data_file, latency_seconds=0.0)
    except DatasetError as exc:
        return CheckLine("Dataset", ERROR if required else WARNING, str(exc))
    return CheckLine("Dataset", OK, f"{len(backend.list_records())} record(s) in {data_file}")


def run(settings: Settings) -> DoctorReport:
    checks: list[CheckLine] = [CheckLine("Mode", OK, settings.mode.value)]

    endpoint = SANDBOX_BASE_URL if settings.sandbox_mode else PRODUCTION_BASE_URL
    checks.append(CheckLine("Endpoint", OK, endpoint))

    api_key = settings.remote.api_key
    if not api_key:
        status = ERROR if settings.mode is BackendMode.REMOTE else WARNING
        checks.append(CheckLine("Credential", status, "remote.api_key is empty"))
    elif api_key == "mock-key" and settings.mode is BackendMode.REMOTE:
        checks.append(CheckLine("Credential", WARNING, "placeholder key in remote mode"))
    else:
        checks.append(CheckLine("Credential", OK))

    checks.append(_dataset_check(settings))

    return DoctorReport(ok=not any(check.failed for check in checks), checks=checks)
