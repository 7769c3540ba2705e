from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from parcelsync.api import SessionSnapshot
from parcelsync.app import build_default_app
from parcelsync.config import configure_logging
from parcelsync.domain.reconciliation import Created

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile supplier shipments and tracking")
    subparsers = parser.add_subparsers(dest="command", required=True)

    bulk = subparsers.add_parser("bulk-sync", help="Import all shipments for a supplier")
    bulk.add_argument("--supplier", type=str, required=True, help="Supplier name")
    bulk.add_argument(
        "--wait",
        action="store_true",
        help="Block until the job finishes and print the final session",
    )

    session = subparsers.add_parser("session", help="Show a sync session")
    session.add_argument("session_id", type=str, help="Sync session id")

    package = subparsers.add_parser("sync-package", help="Re-sync one package from Magaya")
    package.add_argument("package_id", type=str, help="Local package id")

    tracking = subparsers.add_parser("sync-tracking", help="Fetch USPS tracking for a number")
    tracking.add_argument("tracking_number", type=str, help="Carrier tracking number")
    tracking.add_argument(
        "--package-id",
        type=str,
        help="Local package id to attach the tracking events to",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _emit(payload: object) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "bulk-sync" and not parsed_args.supplier.strip():
            raise ValueError("Supplier name must not be blank")  # noqa: TRY301
        session_id = (
            _parse_uuid(parsed_args.session_id) if parsed_args.command == "session" else None
        )
        package_id = (
            _parse_uuid(parsed_args.package_id)
            if getattr(parsed_args, "package_id", None)
            else None
        )
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        app = build_default_app()
        try:
            if parsed_args.command == "bulk-sync":
                new_session = app.bulk_sync_from_supplier(parsed_args.supplier.strip())
                log.info("Started sync session %s", new_session)
                if parsed_args.wait:
                    app.jobs.wait(new_session)
                    _emit(_session_payload(app.get_sync_session(new_session)))
                else:
                    _emit({"sessionId": str(new_session)})
            elif parsed_args.command == "session" and session_id is not None:
                _emit(_session_payload(app.get_sync_session(session_id)))
            elif parsed_args.command == "sync-package" and package_id is not None:
                outcome = app.sync_package(package_id)
                _emit(
                    {
                        "package_id": str(outcome.package.id),
                        "outcome": "created" if isinstance(outcome, Created) else "updated",
                    }
                )
            elif parsed_args.command == "sync-tracking":
                result = app.sync_tracking(parsed_args.tracking_number, package_id)
                _emit(
                    {
                        "tracking_number": result.update.tracking_number,
                        "status": result.update.status,
                        "normalized_status": result.update.normalized_status.value,
                        "events_stored": result.events_stored,
                    }
                )
            else:
                raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
        finally:
            app.close()
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def _session_payload(session: object) -> dict[str, object]:
    return SessionSnapshot.model_validate(session).model_dump(mode="json")


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
