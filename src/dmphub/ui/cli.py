# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from dmphub.app import (
    augment_dmp,
    build_registry,
    create_dmp,
    get_dmp,
    list_dmp_versions,
    pending_events,
    register_provenance,
    review_dmp_assertion,
    score_works,
    tombstone_dmp,
    update_dmp,
)
from dmphub.config import ConfigurationError, configure_logging
from dmphub.domain.errors import Unchanged, ValidationFailed

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from dmphub.domain.registry import RecordRegistry

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage DMP records in the registry")
    parser.add_argument(
        "--no-citations",
        action="store_true",
        help="Do not fetch citations for related DOIs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    provenance = subparsers.add_parser("provenance", help="Provenance management commands")
    provenance_sub = provenance.add_subparsers(dest="provenance_command", required=True)
    provenance_add = provenance_sub.add_parser("add", help="Register or update a provenance")
    provenance_add.add_argument("key", type=str, help="Provenance key, e.g. dmptool")
    provenance_add.add_argument("--name", type=str, help="Human readable name")
    provenance_add.add_argument("--homepage", type=str, help="Homepage URL")
    provenance_add.add_argument("--callback-uri", type=str, help="Where change callbacks go")
    provenance_add.add_argument(
        "--no-owner",
        action="store_true",
        help="The provenance may only contribute to records it does not own",
    )
    provenance_add.add_argument(
        "--seeding",
        action="store_true",
        help="Register records under the DMP IDs the provenance supplies",
    )

    create = subparsers.add_parser("create", help="Register a new DMP")
    create.add_argument("--provenance", type=str, required=True, help="Owning provenance key")
    create.add_argument("document", type=Path, help="Path to a DMP JSON document")

    update = subparsers.add_parser("update", help="Update an existing DMP")
    update.add_argument("--provenance", type=str, required=True, help="Updating provenance key")
    update.add_argument("--note", type=str, help="Note recorded with any assertions")
    update.add_argument("dmp_id", type=str, help="DMP ID to update")
    update.add_argument("document", type=Path, help="Path to a DMP JSON document")

    tombstone = subparsers.add_parser("tombstone", help="Tombstone a DMP")
    tombstone.add_argument("--provenance", type=str, required=True, help="Owning provenance key")
    tombstone.add_argument("dmp_id", type=str, help="DMP ID to tombstone")

    get = subparsers.add_parser("get", help="Print a DMP")
    get.add_argument("dmp_id", type=str, help="DMP ID to fetch")
    get.add_argument(
        "--version",
        type=str,
        help="ISO-8601 timestamp of a prior version, or 'tombstone'",
    )

    versions = subparsers.add_parser("versions", help="List every version of a DMP")
    versions.add_argument("dmp_id", type=str, help="DMP ID")

    review = subparsers.add_parser("review", help="Accept or reject a pending assertion")
    review.add_argument("--provenance", type=str, required=True, help="Owning provenance key")
    review.add_argument("dmp_id", type=str, help="DMP ID")
    review.add_argument("assertion_id", type=str, help="Assertion id from dmphub_modifications")
    review.add_argument("status", choices=("accepted", "rejected"), help="Review outcome")

    score = subparsers.add_parser("score", help="Match candidate works against every DMP")
    score.add_argument("document", type=Path, help='Path to a {"works": [...]} document')

    augment = subparsers.add_parser("augment", help="Attach matched works to a DMP")
    augment.add_argument("--provenance", type=str, required=True, help="Harvester provenance key")
    augment.add_argument("dmp_id", type=str, help="DMP ID")
    augment.add_argument("document", type=Path, help='Path to a {"works": [...]} document')

    events = subparsers.add_parser("events", help="Print pending change events")
    events.add_argument("--limit", type=int, help="Maximum number of events to print")
    events.add_argument(
        "--ack",
        action="store_true",
        help="Mark the printed events as delivered",
    )

    return parser.parse_args(list(argv))


def _read_json(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Unable to read JSON from {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return payload


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _run(args: argparse.Namespace, registry: RecordRegistry) -> None:
    if args.command == "provenance" and args.provenance_command == "add":
        provenance = register_provenance(
            registry,
            args.key,
            name=args.name,
            homepage=args.homepage,
            callback_uri=args.callback_uri,
            owner_capable=not args.no_owner,
            seeding_mode=args.seeding,
        )
        log.info("Registered provenance %s", provenance.key)
    elif args.command == "create":
        _print_json(create_dmp(registry, args.provenance, _read_json(args.document)))
    elif args.command == "update":
        _print_json(
            update_dmp(
                registry,
                args.provenance,
                args.dmp_id,
                _read_json(args.document),
                note=args.note,
            )
        )
    elif args.command == "tombstone":
        _print_json(tombstone_dmp(registry, args.provenance, args.dmp_id))
    elif args.command == "get":
        _print_json(get_dmp(registry, args.dmp_id, args.version))
    elif args.command == "versions":
        _print_json(list_dmp_versions(registry, args.dmp_id))
    elif args.command == "review":
        _print_json(
            review_dmp_assertion(
                registry, args.provenance, args.dmp_id, args.assertion_id, args.status
            )
        )
    elif args.command == "score":
        _print_json(score_works(registry, _read_json(args.document)))
    elif args.command == "augment":
        added = augment_dmp(registry, args.provenance, args.dmp_id, _read_json(args.document))
        _print_json({"added": added})
    elif args.command == "events":
        _print_json(pending_events(registry, limit=args.limit, acknowledge=args.ack))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(
    argv: Sequence[str] | None = None,
    *,
    registry_factory: Callable[..., RecordRegistry] = build_registry,
) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        registry = registry_factory(fetch_citations=not parsed_args.no_citations)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(1)

    try:
        _run(parsed_args, registry)
    except Unchanged as exc:
        log.info("%s", exc)
    except (ValueError, ValidationFailed):
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
