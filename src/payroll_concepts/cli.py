"""Command line interface for offline payroll computation.

Usage:
    python -m payroll_concepts.cli compute request.json
    python -m payroll_concepts.cli compute request.json --output result.json
    python -m payroll_concepts.cli validate catalog.json

A request file holds ``{"input": {...}, "concepts": [...]}``. A catalog
file is either a list of concepts or an object with a ``concepts`` key.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable

from payroll_concepts.catalog import CatalogValidationError, load_concepts, load_payroll_input
from payroll_concepts.config import get_settings
from payroll_concepts.logging_config import configure_logging
from payroll_concepts.services.payroll_service import preview_payroll


def read_json(path: str) -> Any:
    """Read a JSON document, "-" meaning stdin."""
    if path == "-":
        return json.load(sys.stdin)
    with Path(path).open(encoding="utf-8") as f:
        return json.load(f)


def catalog_entries(document: Any) -> list[Any]:
    entries = document.get("concepts", []) if isinstance(document, dict) else document
    if not isinstance(entries, list):
        raise CatalogValidationError(["concepts: expected a list of objects"])
    return entries


class PayrollCli:
    """Payroll concept engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m payroll_concepts.cli",
            description="Payroll concept engine tools",
        )
        parser.add_argument(
            "--log-level",
            default=None,
            help="Logging level (defaults to LOG_LEVEL from the environment)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        compute = subparsers.add_parser(
            "compute",
            help="Compute a payroll from a request file",
        )
        compute.add_argument("file", help="Request JSON file, or - for stdin")
        compute.add_argument(
            "--output",
            "-o",
            type=str,
            help="Write the result to this file instead of stdout",
        )

        validate = subparsers.add_parser(
            "validate",
            help="Validate a concept catalog file",
        )
        validate.add_argument("file", help="Catalog JSON file, or - for stdin")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)
        configure_logging(parsed.log_level or get_settings().log_level)

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[..., int]] = {
            "compute": self._cmd_compute,
            "validate": self._cmd_validate,
        }

        handler = handlers.get(parsed.command)
        if handler:
            try:
                return handler(parsed)
            except CatalogValidationError as e:
                print("Validation failed:", file=sys.stderr)
                for error in e.errors:
                    print(f"  - {error}", file=sys.stderr)
                return 2
            except (OSError, json.JSONDecodeError) as e:
                print(f"ERROR: {e}", file=sys.stderr)
                return 1

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_compute(self, args: argparse.Namespace) -> int:
        """Compute one payroll request."""
        document = read_json(args.file)
        if not isinstance(document, dict) or "input" not in document:
            raise CatalogValidationError(["request must be an object with an 'input' key"])

        payroll_input = load_payroll_input(document["input"])
        concepts = load_concepts(catalog_entries(document))
        preview = preview_payroll(payroll_input, concepts)

        output = json.dumps(
            {
                "calculation_id": str(preview.calculation_id),
                "result": preview.calc.to_dict(),
                "warnings": preview.warnings,
            },
            indent=2,
        )
        if args.output:
            Path(args.output).write_text(output + "\n", encoding="utf-8")
            print(f"Result written to {args.output}")
        else:
            print(output)
        return 0

    def _cmd_validate(self, args: argparse.Namespace) -> int:
        """Validate a concept catalog."""
        concepts = load_concepts(catalog_entries(read_json(args.file)))

        codes = [c.id for c in concepts]
        duplicates = sorted({code for code in codes if codes.count(code) > 1})
        if duplicates:
            raise CatalogValidationError([f"duplicate concept code '{code}'" for code in duplicates])

        print(f"Catalog OK: {len(concepts)} concept(s)")
        for concept in concepts:
            state = "" if concept.enabled else " (disabled)"
            print(f"  {concept.id:<20} {concept.type.value:<24} {concept.mode.value}{state}")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = PayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
