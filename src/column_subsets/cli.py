"""Command line entry point.

Usage:
    column-subsets columns.json                          # unanchored, schema text
    column-subsets columns.txt --format report           # hierarchy report
    column-subsets columns.json --registry base.schema   # anchored mode
    column-subsets columns.json -o types.schema          # write to file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from column_subsets.config import resolver_defaults
from column_subsets.emitters import SchemaEmitter
from column_subsets.errors import ColumnSubsetsError
from column_subsets.parsing import SchemaParser, load_column_sets
from column_subsets.registry import BaseTypeRegistry
from column_subsets.report import format_resolution_report
from column_subsets.resolver import HierarchyResolver
from column_subsets.subsets import find_recurring_subsets
from column_subsets.types import TieBreak

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(
        prog="column-subsets",
        description="Derive a type hierarchy from column sets",
    )
    arg_parser.add_argument(
        "input",
        type=Path,
        help="Column sets: a .json array of arrays, or one comma separated set per line",
    )
    arg_parser.add_argument(
        "-r", "--registry",
        type=Path,
        help="Schema file of existing base types (enables anchored mode)",
    )
    arg_parser.add_argument("--marker", help="Capability marker name")
    arg_parser.add_argument(
        "--no-marker",
        action="store_true",
        help="Do not filter base types by marker or attach one to root types",
    )
    arg_parser.add_argument(
        "--format",
        choices=["schema", "report", "json"],
        default="schema",
        help="Output format (default: schema)",
    )
    arg_parser.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    arg_parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Config file (default: ./column_subsets.toml if present)",
    )
    arg_parser.add_argument(
        "--tie-break",
        choices=[t.value for t in TieBreak],
        help="Parent choice among equally specific candidates",
    )
    arg_parser.add_argument("--min-subset-size", type=int, help="Smallest recurring subset")
    arg_parser.add_argument("--prefix", help="Generated type name prefix")
    arg_parser.add_argument(
        "--recurring-only",
        action="store_true",
        help="Only emit recurring subsets, not the input column sets themselves",
    )
    arg_parser.add_argument(
        "--strict-anchor",
        action="store_true",
        help="Fail when a column set matches no base type and no marker is set",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log resolution details to stderr",
    )
    return arg_parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.input.exists():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    if args.registry and not args.registry.exists():
        print(f"Error: File not found: {args.registry}", file=sys.stderr)
        return 1
    if args.config and not args.config.exists():
        print(f"Error: File not found: {args.config}", file=sys.stderr)
        return 1

    try:
        config = resolver_defaults(config_path=args.config).merged(
            marker="" if args.no_marker else args.marker,
            tie_break=TieBreak(args.tie_break) if args.tie_break else None,
            min_subset_size=args.min_subset_size,
            type_prefix=args.prefix,
            include_column_sets=False if args.recurring_only else None,
            strict_anchor=True if args.strict_anchor else None,
        )
        column_sets = load_column_sets(args.input)

        registry: BaseTypeRegistry | None = None
        resolver = HierarchyResolver(config)
        if args.registry:
            registry = SchemaParser().parse(args.registry.read_text(encoding="utf-8"))
            logger.info("Loaded %d registry types from %s", len(registry), args.registry)
            resolution = resolver.resolve_anchored(column_sets, registry)
        else:
            resolution = resolver.resolve_unanchored(column_sets)

        if args.format == "json":
            output = json.dumps(
                {
                    "mode": resolution.mode.value,
                    "types": [d.to_dict() for d in resolution.descriptors],
                    "column_set_types": resolution.column_set_types,
                },
                indent=2,
            ) + "\n"
        elif args.format == "report":
            recurring = None
            if registry is None:
                recurring = find_recurring_subsets(column_sets, config.min_subset_size)
            output = format_resolution_report(
                column_sets,
                resolution.descriptors,
                resolution.column_set_types,
                registry=registry,
                recurring=recurring,
            )
        else:
            output = SchemaEmitter(
                # Anchored output extends registry types that declare the marker
                include_interfaces=registry is None,
                header=f"Generated from {args.input.name} ({resolution.mode.value})",
            ).emit(resolution.descriptors)
    except (ColumnSubsetsError, SyntaxError, ValueError, KeyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
