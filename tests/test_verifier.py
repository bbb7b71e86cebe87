import io
import json
import tempfile
import threading
import unittest
import urllib.error
from pathlib import Path
from unittest.mock import patch

from bvn_verify import BVNVerifier
from bvn_verify.backends.fixture import FixtureBackend
from bvn_verify.backends.remote import PRODUCTION_BASE_URL, SANDBOX_BASE_URL, RemoteBackend
from bvn_verify.config import FixtureSettings, RemoteSettings, Settings
from bvn_verify.exceptions import (
    ConfigurationError,
    DatasetError,
    UnsupportedCapabilityError,
    ValidationError,
)
from bvn_verify.models import BackendMode, VerificationStatus

URLOPEN = "bvn_verify.backends.remote.urllib.request.urlopen"


class _VerifierTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_file = Path(self._tmp.name) / "bvn_records.json"
        self.data_file.write_text(
            json.dumps(
                {
                    "bvn_records": [
                        {"bvn": "12345678901", "registered_name": "JOHN DOE"},
                        {"bvn": "99988877766", "registered_name": "FUNKE ADEBAYO"},
                    ]
                }
            ),
            encoding="utf-8",
        )

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_verifier(self, **kwargs) -> BVNVerifier:
        kwargs.setdefault("data_file", self.data_file)
        kwargs.setdefault("fixture_latency_seconds", 0.0)
        return BVNVerifier(**kwargs)


class TestFixtureScenario(_VerifierTestCase):
    def test_john_doe_scenario(self) -> None:
        verifier = self.make_verifier(api_key="test-key", sandbox_mode=True)

        result = verifier.verify("12345678901", "John Doe")
        self.assertTrue(result.is_match)
        self.assertEqual(result.verified_name, "JOHN DOE")
        self.assertEqual(result.status, VerificationStatus.COMPLETED)

        result = verifier.verify("12345678901", "Wrong Name")
        self.assertFalse(result.is_match)
        self.assertEqual(result.verified_name, "JOHN DOE")
        self.assertEqual(result.status, VerificationStatus.COMPLETED)

        result = verifier.verify("00000000000", "Test Name")
        self.assertFalse(result.is_match)
        self.assertIsNone(result.verified_name)
        self.assertEqual(result.status, VerificationStatus.FAILED)
        self.assertIn("not found", result.message)

        with patch.object(FixtureBackend, "verify_record") as verify_record:
            with self.assertRaises(ValidationError):
                verifier.verify("123", "Test Name")
        verify_record.assert_not_called()

    def test_verify_with_details_is_verify(self) -> None:
        verifier = self.make_verifier()
        result = verifier.verify_with_details("99988877766", "funke  adebayo")
        self.assertTrue(result.is_match)
        self.assertEqual(result.verified_name, "FUNKE ADEBAYO")

    def test_validation_failures_never_reach_backend(self) -> None:
        verifier = self.make_verifier(mode="remote")
        with patch(URLOPEN) as urlopen:
            for bvn, name in (("", "John"), ("1234567890", "John"), ("12345678901", "J")):
                with self.subTest(bvn=bvn, name=name):
                    with self.assertRaises(ValidationError):
                        verifier.verify(bvn, name)
        urlopen.assert_not_called()


class TestModeSwitching(_VerifierTestCase):
    def test_initial_state_accessors(self) -> None:
        verifier = self.make_verifier(api_key="abc", sandbox_mode=True)
        self.assertEqual(verifier.api_key, "abc")
        self.assertTrue(verifier.sandbox_mode)
        self.assertIs(verifier.mode, BackendMode.FIXTURE)
        self.assertTrue(verifier.supports_records())

    def test_invalid_mode_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            self.make_verifier(mode="json-mock-ish")
        verifier = self.make_verifier()
        with self.assertRaises(ConfigurationError):
            verifier.set_mode("offline")
        self.assertIs(verifier.mode, BackendMode.FIXTURE)

    def test_fixture_mode_requires_data_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            BVNVerifier(mode="fixture")

    def test_missing_dataset_is_fatal(self) -> None:
        with self.assertRaises(DatasetError):
            self.make_verifier(data_file=Path(self._tmp.name) / "absent.json")

    def test_round_trip_preserves_credential_and_sandbox(self) -> None:
        verifier = self.make_verifier(api_key="live-key", sandbox_mode=True)
        first_fixture = verifier._backend

        verifier.set_mode(BackendMode.REMOTE)
        self.assertIs(verifier.mode, BackendMode.REMOTE)
        self.assertIsInstance(verifier._backend, RemoteBackend)
        self.assertEqual(verifier._backend.api_key, "live-key")
        self.assertEqual(verifier._backend.base_url, SANDBOX_BASE_URL)
        self.assertFalse(verifier.supports_records())

        verifier.set_mode("fixture")
        self.assertIs(verifier.mode, BackendMode.FIXTURE)
        self.assertIsInstance(verifier._backend, FixtureBackend)
        self.assertIsNot(verifier._backend, first_fixture)
        self.assertEqual(verifier.api_key, "live-key")
        self.assertTrue(verifier.sandbox_mode)
        self.assertTrue(verifier._backend.sandbox_mode)

    def test_same_mode_is_noop(self) -> None:
        verifier = self.make_verifier()
        backend = verifier._backend
        verifier.set_mode("fixture")
        self.assertIs(verifier._backend, backend)

    def test_old_backend_closed_after_swap(self) -> None:
        verifier = self.make_verifier()
        with patch.object(FixtureBackend, "close") as close:
            verifier.set_mode("remote")
        close.assert_called_once_with()

    def test_failed_construction_keeps_current_backend(self) -> None:
        verifier = self.make_verifier(mode="remote")
        remote = verifier._backend
        self.data_file.unlink()
        with self.assertRaises(DatasetError):
            verifier.set_mode("fixture")
        self.assertIs(verifier._backend, remote)
        self.assertIs(verifier.mode, BackendMode.REMOTE)

    def test_fresh_fixture_sees_persisted_records(self) -> None:
        verifier = self.make_verifier()
        self.assertTrue(verifier.add_record({"bvn": "55566677788", "registered_name": "AMAKA OBI"}))
        verifier.set_mode("remote")
        verifier.set_mode("fixture")
        self.assertEqual(len(verifier.list_records()), 3)

    def test_sandbox_forwarded_to_active_backend(self) -> None:
        verifier = self.make_verifier(mode="remote", sandbox_mode=False)
        self.assertEqual(verifier._backend.base_url, PRODUCTION_BASE_URL)
        verifier.set_sandbox_mode(True)
        self.assertTrue(verifier.sandbox_mode)
        self.assertEqual(verifier._backend.base_url, SANDBOX_BASE_URL)


class TestCapabilities(_VerifierTestCase):
    def test_records_in_fixture_mode(self) -> None:
        verifier = self.make_verifier()
        records = verifier.list_records()
        self.assertEqual([r.bvn for r in records], ["12345678901", "99988877766"])

    def test_records_unavailable_in_remote_mode(self) -> None:
        verifier = self.make_verifier(mode="remote")
        with self.assertRaises(UnsupportedCapabilityError) as ctx:
            verifier.list_records()
        self.assertEqual(str(ctx.exception), "records only available in fixture mode")
        with self.assertRaises(UnsupportedCapabilityError):
            verifier.add_record({"bvn": "55566677788", "registered_name": "AMAKA OBI"})

    def test_add_record_duplicate_rejected(self) -> None:
        verifier = self.make_verifier()
        self.assertFalse(verifier.add_record({"bvn": "12345678901", "registered_name": "OTHER"}))
        self.assertEqual(len(verifier.list_records()), 2)


class TestRemoteMode(_VerifierTestCase):
    def test_rate_limited_call_is_failed_result(self) -> None:
        verifier = self.make_verifier(mode="remote", api_key="key")
        error = urllib.error.HTTPError(PRODUCTION_BASE_URL, 429, "Too Many Requests", {}, None)
        with patch(URLOPEN, side_effect=error):
            result = verifier.verify("12345678901", "John Doe")
        self.assertEqual(result.status, VerificationStatus.FAILED)
        self.assertEqual(result.message, "rate limit exceeded")

    def test_remote_match(self) -> None:
        verifier = self.make_verifier(mode="remote", api_key="key")
        body = io.BytesIO(json.dumps({"is_match": True, "verified_name": "JOHN DOE"}).encode("utf-8"))
        with patch(URLOPEN, return_value=body):
            result = verifier.verify("12345678901", "John Doe")
        self.assertTrue(result.is_match)
        self.assertEqual(result.verified_name, "JOHN DOE")


class TestFromSettings(_VerifierTestCase):
    def test_builds_from_settings(self) -> None:
        settings = Settings(
            mode=BackendMode.FIXTURE,
            sandbox_mode=True,
            remote=RemoteSettings(api_key="configured"),
            fixture=FixtureSettings(data_file=self.data_file, latency_seconds=0.0),
        )
        verifier = BVNVerifier.from_settings(settings)
        self.assertEqual(verifier.api_key, "configured")
        self.assertTrue(verifier.sandbox_mode)
        self.assertEqual(verifier.fixture_latency_seconds, 0.0)
        self.assertTrue(verifier.verify("12345678901", "john doe").is_match)


class TestConcurrentSwitching(_VerifierTestCase):
    def test_verify_during_mode_switches(self) -> None:
        verifier = self.make_verifier(api_key="key")
        body = json.dumps({"is_match": True, "verified_name": "JOHN DOE"}).encode("utf-8")
        errors: list[BaseException] = []
        stop = threading.Event()

        def worker() -> None:
            try:
                while not stop.is_set():
                    result = verifier.verify("12345678901", "John Doe")
                    self.assertTrue(result.is_match)
            except BaseException as exc:  # pragma: no cover - reported below
                errors.append(exc)

        with patch(URLOPEN, side_effect=lambda *_a, **_k: io.BytesIO(body)):
            threads = [threading.Thread(target=worker) for _ in range(4)]
            for thread in threads:
                thread.start()
            for _ in range(20):
                verifier.set_mode("remote")
                verifier.set_mode("fixture")
            stop.set()
            for thread in threads:
                thread.join()
        self.assertEqual(errors, [])


if __name__ == "__main__":
    unittest.main()
