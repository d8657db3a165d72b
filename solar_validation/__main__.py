"""
Solar Validation Engine - command line entry point.

Usage:
    python -m solar_validation serve                      # Run the HTTP API
    python -m solar_validation validate record.json \\
        --schema solar_panel_spec --category equipment    # Validate a JSON file
    python -m solar_validation catalog                    # List schemas and rules
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from solar_validation.config import configure_logging, get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "solar_validation.api.app:create_app",
        factory=True,
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        log_config=None,
    )
    return 0


def _validate(args: argparse.Namespace) -> int:
    from solar_validation.validation import ValidationOrchestrator, ValidationRequest

    record = json.loads(Path(args.file).read_text(encoding="utf-8"))
    request = ValidationRequest.create(
        record,
        context=args.context,
        category=args.category,
        schemas=args.schema,
        cross_validation_rules=args.cross_rule,
        custom_rules=[{"rule_id": rule_id} for rule_id in args.rule],
        strict_mode=args.strict,
    )

    result = asyncio.run(ValidationOrchestrator().validate(request))
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.overall_valid else 1


def _catalog(args: argparse.Namespace) -> int:
    from solar_validation.validation import ValidationOrchestrator

    orchestrator = ValidationOrchestrator()
    catalog = {
        "schemas": orchestrator.available_schemas(),
        "custom_rules": orchestrator.available_rules(),
        "cross_validation_rules": orchestrator.available_cross_rules(),
    }
    print(json.dumps(catalog, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="solar-validation",
        description="Solar record validation engine",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address (default: API_HOST)")
    serve.add_argument("--port", type=int, help="Bind port (default: API_PORT)")
    serve.set_defaults(handler=_serve)

    validate = subparsers.add_parser("validate", help="Validate a JSON record file")
    validate.add_argument("file", help="Path to a JSON record")
    validate.add_argument("--context", default="system_internal", help="Validation context")
    validate.add_argument("--category", required=True, help="Record category")
    validate.add_argument("--schema", action="append", default=[], help="Schema name (repeatable)")
    validate.add_argument("--rule", action="append", default=[], help="Custom rule id (repeatable)")
    validate.add_argument(
        "--cross-rule",
        action="append",
        default=[],
        help="Cross-validation rule name (repeatable)",
    )
    validate.add_argument("--strict", action="store_true", help="Disable type coercion")
    validate.set_defaults(handler=_validate)

    catalog = subparsers.add_parser("catalog", help="List schemas and rules")
    catalog.set_defaults(handler=_catalog)

    args = parser.parse_args(argv)
    configure_logging(stream=sys.stderr)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
