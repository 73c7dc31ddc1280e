#!/usr/bin/env python3
"""Load Apollo namespaces once and print them as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from apollo_client import ApolloError, Opts, make_apollo_client  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", required=True, help="Apollo server URL")
    parser.add_argument("--app-id", required=True, help="Apollo application ID")
    parser.add_argument("--cluster", default="default", help="Apollo cluster name")
    parser.add_argument("--label", default="", help="Grayscale release label")
    parser.add_argument(
        "--namespaces",
        nargs="+",
        default=["application"],
        help="Namespaces to load",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    opts = Opts(cluster_name=args.cluster, label=args.label, namespaces=tuple(args.namespaces))
    try:
        client = make_apollo_client(args.url, args.app_id, opts)
    except ApolloError as exc:
        LOG.error("failed to load configuration: %s", exc)
        return 1

    dump = {ns: client.get_configures(ns) for ns in client.namespaces}
    json.dump(dump, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
