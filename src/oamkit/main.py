#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

import yaml
from dotenv import load_dotenv

from oamkit.adapters.admission import review
from oamkit.app import (
    STORE_KINDS,
    Controller,
    apply_manifests,
    build_store,
    describe,
    load_manifest_files,
)
from oamkit.config import ConfigurationError, configure_logging, get_reconcile_config
from oamkit.domain.model import DEFAULT_REGISTRY, ObjectKey, UnknownKindError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from oamkit.domain.ports.store import ObjectStore


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="oamkit", description="Reconcile containerized workloads and manual scaler traits"
    )
    parser.add_argument(
        "--store",
        choices=STORE_KINDS,
        default="sqlite",
        help="Object store backend (default: %(default)s)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    apply_parser = commands.add_parser("apply", help="Store manifests from YAML or JSON files")
    apply_parser.add_argument("-f", "--filename", dest="files", action="append", required=True)

    reconcile_parser = commands.add_parser("reconcile", help="Run the reconcile loop")
    reconcile_parser.add_argument("--once", action="store_true", help="Run a single pass")
    reconcile_parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between passes (default: OAMKIT_RESYNC_SECONDS or 30)",
    )
    reconcile_parser.add_argument(
        "-f",
        "--filename",
        dest="files",
        action="append",
        default=[],
        help="Manifests to apply before the first pass",
    )

    get_parser = commands.add_parser("get", help="Print a stored object as YAML")
    get_parser.add_argument("kind", help="Kind or plural, e.g. deployment")
    get_parser.add_argument("name")
    get_parser.add_argument("-n", "--namespace", default="default")

    admit_parser = commands.add_parser("admit", help="Answer an AdmissionReview")
    admit_parser.add_argument("mode", choices=("validate", "mutate"))
    admit_parser.add_argument("file", nargs="?", default="-", help="Review file (default: stdin)")

    args = parser.parse_args(list(argv))
    if getattr(args, "interval", None) is not None and args.interval <= 0:
        raise ValueError("Interval must be positive")
    return args


def _apply(store: ObjectStore, files: Sequence[str]) -> None:
    for stored in apply_manifests(store, load_manifest_files(files)):
        summary = describe(stored)
        print(f"{summary['kind']}/{summary['name']} stored (uid={summary['uid']})")


def _reconcile(store: ObjectStore, args: argparse.Namespace) -> int:
    if args.files:
        _apply(store, args.files)
    controller = Controller(store, config=get_reconcile_config())
    if args.once:
        summary = controller.run_once()
        for key, result in summary.failed.items():
            print(f"{key}: {result.error}", file=sys.stderr)
        return 1 if summary.failed else 0
    interval = timedelta(seconds=args.interval) if args.interval else None
    controller.run(interval=interval)
    return 0


def _get(store: ObjectStore, args: argparse.Namespace) -> None:
    info = DEFAULT_REGISTRY.by_name(args.kind)
    key_namespace = args.namespace if info.namespaced else None
    manifest = store.get(ObjectKey(info.gvk.api_version, info.gvk.kind, args.name, key_namespace))
    print(yaml.safe_dump(manifest, sort_keys=False), end="")


def _admit(args: argparse.Namespace) -> None:
    body = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
    answer = review(body, args.mode, max_replicas=get_reconcile_config().max_replicas)
    print(json.dumps(answer.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        store = build_store(parsed_args.store) if parsed_args.command != "admit" else None
    except (ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        if store is None:
            _admit(parsed_args)
        elif parsed_args.command == "apply":
            _apply(store, parsed_args.files)
        elif parsed_args.command == "get":
            _get(store, parsed_args)
        elif parsed_args.command == "reconcile":
            sys.exit(_reconcile(store, parsed_args))
    except (ValueError, UnknownKindError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
