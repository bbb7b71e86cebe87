from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError as SettingsValidationError

from .commands import doctor as cmd_doctor
from .commands.output import render_record, render_result
from .config import Settings, find_config
from .exceptions import VerificationError
from .verifier import BVNVerifier

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(level_name: str) -> WarningBufferHandler:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter(LOG_FORMAT))
    root_logger.addHandler(handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(warn_buffer)
    return warn_buffer


def load_settings(args: argparse.Namespace) -> Settings:
    try:
        settings = Settings.load(find_config(args.config))
    except FileNotFoundError:
        if args.config:
            raise SystemExit(f"Config file not found: {args.config}")
        settings = Settings()
    settings = settings.with_env_overrides()
    overrides: dict[str, object] = {}
    if args.mode:
        overrides["mode"] = args.mode
    if args.sandbox is not None:
        overrides["sandbox_mode"] = args.sandbox
    if args.data_file:
        overrides["fixture"] = {**settings.fixture.model_dump(), "data_file": args.data_file}
    if overrides:
        settings = Settings.model_validate({**settings.model_dump(), **overrides})
    return settings


def _describe_settings_error(exc: SettingsValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "config"
        problems.append(f"{location}: {err['msg']}")
    return "; ".join(problems)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BVN identity verification")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    parser.add_argument("--mode", choices=["remote", "fixture"], help="Override the configured backend")
    parser.add_argument("--data-file", type=Path, help="Fixture dataset (JSON) to use")
    sandbox = parser.add_mutually_exclusive_group()
    sandbox.add_argument("--sandbox", dest="sandbox", action="store_true", default=None)
    sandbox.add_argument("--production", dest="sandbox", action="store_false")

    subparsers = parser.add_subparsers(dest="command", required=True)
    verify_parser = subparsers.add_parser("verify", help="Verify a BVN against a customer name")
    verify_parser.add_argument("bvn")
    verify_parser.add_argument("name")
    verify_parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON to stdout")
    subparsers.add_parser("records", help="List fixture registry records")
    add_parser = subparsers.add_parser("add-record", help="Append a record to the fixture dataset")
    add_parser.add_argument("bvn")
    add_parser.add_argument("name")
    subparsers.add_parser("doctor", help="Check configuration and dataset")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    warn_buffer = configure_logging(args.log_level)

    exit_code = 0
    try:
        settings = load_settings(args)
        match args.command:
            case "doctor":
                report = cmd_doctor.run(settings)
                for line in report.lines():
                    print(line)
                exit_code = 0 if report.ok else 1
            case "verify":
                verifier = BVNVerifier.from_settings(settings)
                result = verifier.verify(args.bvn, args.name)
                print(render_result(args.bvn, result, as_json=args.json))
                exit_code = 0 if result.is_match else 1
            case "records":
                verifier = BVNVerifier.from_settings(settings)
                for record in verifier.list_records():
                    print(render_record(record))
            case "add-record":
                verifier = BVNVerifier.from_settings(settings)
                if verifier.add_record({"bvn": args.bvn, "registered_name": args.name}):
                    print(f"Added {args.bvn}")
                else:
                    print(f"Rejected {args.bvn} (missing field, duplicate BVN or write failure)")
                    exit_code = 1
            case _:
                parser.error("Unknown command")
    except VerificationError as exc:
        raise SystemExit(f"error: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SystemExit(f"error: invalid config file: {exc}") from exc
    except SettingsValidationError as exc:
        raise SystemExit(f"error: invalid settings: {_describe_settings_error(exc)}") from exc
    finally:
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
