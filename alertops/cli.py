"""
Command line entry point.

    alertops analyze "<alert text>"   print the report as JSON
    alertops policies                 validate the policy file, list alert types

Exit codes: 0 ok, 1 alert not interpreted, 2 configuration error.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from alertops.config import get_config
from alertops.orchestrator import process_alert
from alertops.parsers.engine import ParserEngine
from alertops.policies.store import PolicyStore
from alertops.utils.error_handling import PolicyConfigError
from alertops.utils.logging_context import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="alertops", description="Turn alert text into a remediation report")
    p.add_argument("--policies", help="Policy file (overrides POLICIES_PATH)")
    p.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")

    sub = p.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Parse an alert and print the report")
    analyze.add_argument("text", nargs="?", help="Alert text (read from stdin when omitted)")

    sub.add_parser("policies", help="Validate the policy file and list alert types")
    return p


def _analyze(store: PolicyStore, text: str) -> int:
    # Fail fast on a broken policy file before any model call
    store.load()
    engine = ParserEngine(store=store)
    result = asyncio.run(process_alert(text, engine=engine))

    if not result.matched:
        print(json.dumps({"matched": False, "error": result.error}, indent=2))
        return EXIT_NO_MATCH

    print(result.report.model_dump_json(indent=2))
    return EXIT_OK


def _list_policies(store: PolicyStore) -> int:
    policies = store.load()
    print(f"{len(policies)} policies loaded from {store.source}")
    for policy in policies:
        kind = f"{len(policy.patterns)} pattern(s)" if policy.patterns else "metadata only"
        print(f"  {policy.alert_type:<32} {kind}, {len(policy.action_templates)} action(s)")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ValueError as e:
        # pydantic ValidationError (bad LOG_LEVEL, ...) is a ValueError
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(args.log_level or config.log_level)
    store = PolicyStore(args.policies)

    try:
        if args.command == "policies":
            return _list_policies(store)

        text = args.text if args.text is not None else sys.stdin.read()
        if not text.strip():
            print("Alert text is empty", file=sys.stderr)
            return EXIT_NO_MATCH
        return _analyze(store, text)
    except PolicyConfigError as e:
        logger.error(f"[CLI] {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
