#!/usr/bin/env python3

"""Main entry point for the C struct layout analyzer."""

import argparse
import json
import sys
from pathlib import Path
from typing import NoReturn

from .application import StructAnalyzer
from .domain.services.generation import generate_optimized_declaration
from .infrastructure.config import SUPPORTED_ALIGNMENTS, AnalysisConfig, get_config
from .infrastructure.logging import LoggerSetup, ProgressTracker, get_logger, log_timing
from .utils.path_utils import create_report_filename


def parse_type_size(value: str) -> tuple[str, int]:
    """Parse a ``NAME=BYTES`` custom type size argument."""
    name, sep, size = value.rpartition("=")
    name = name.strip()
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=BYTES, got {value!r}")
    try:
        size_value = int(size)
    except ValueError:
        raise argparse.ArgumentTypeError(f"size must be an integer, got {size!r}") from None
    if size_value <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive, got {size_value}")
    return name, size_value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="cstruct-layout",
        description="Compute C/C++ struct and union memory layouts and suggest "
        "padding-minimizing field orders",
        epilog="""
Examples:
  # Print the layout report of one header as JSON
  cstruct-layout include/packet.h

  # Analyze several files for a 32-bit target, writing <stem>.layout.json files
  cstruct-layout src/*.h --target-alignment 4 -o reports/

  # Size project-specific types and include reordered declarations
  cstruct-layout net.h --type-size Vec3=12 --type-size Handle=4 --show-optimized

  # Using .env file for configuration
  echo 'CSTRUCT_TARGET_ALIGNMENT=4' > .env
  cstruct-layout net.h
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "files",
        type=Path,
        nargs="+",
        metavar="FILE",
        help="C/C++ source or header files to analyze",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output directory for <stem>.layout.json reports (default: JSON to stdout)",
    )
    parser.add_argument(
        "--target-alignment",
        type=int,
        choices=SUPPORTED_ALIGNMENTS,
        help="Pointer/long width of the target in bytes (default: 8, or CSTRUCT_TARGET_ALIGNMENT)",
    )
    parser.add_argument(
        "--type-size",
        type=parse_type_size,
        action="append",
        default=[],
        metavar="NAME=BYTES",
        help="Size of a custom type; may be repeated",
    )
    parser.add_argument(
        "--max-passes",
        type=int,
        help="Upper bound on typedef/aggregate resolution passes (default: 3)",
    )
    parser.add_argument(
        "--show-optimized",
        action="store_true",
        help="Include the reordered C declaration of each aggregate in the report",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        help="Directory for debug log files (default: ./logs, or CSTRUCT_LOG_DIR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with debug logs",
    )
    return parser.parse_args(argv)


def build_report(path: Path, analyzer: StructAnalyzer, show_optimized: bool) -> dict:
    """Analyze one file and build its JSON report."""
    result = analyzer.analyze(path.read_text(encoding="utf-8", errors="replace"))
    report = {"file": str(path), **result.to_dict()}
    if show_optimized:
        for record, record_dict in zip(result.records, report["structs"]):
            record_dict["optimizedCode"] = generate_optimized_declaration(record)
    return report


@log_timing
def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for struct layout analysis."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = AnalysisConfig.from_args(
            target_alignment=args.target_alignment,
            custom_type_sizes=dict(args.type_size),
            max_passes=args.max_passes,
        )
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    # Initialize logging
    log_dir = args.log_dir or Path(get_config()["LOG_DIR"])
    LoggerSetup.initialize(log_dir, verbose=args.verbose)
    logger = get_logger(__name__)

    logger.debug(f"Target alignment: {config.target_alignment}")
    logger.debug(f"Custom type sizes: {config.custom_type_sizes}")

    if args.output is not None:
        args.output.mkdir(parents=True, exist_ok=True)

    analyzer = StructAnalyzer(config)
    tracker = ProgressTracker(logger)
    reports: list[dict] = []
    failed_files: list[tuple[Path, str]] = []
    total_structs = 0
    total_savings = 0

    for i, path in enumerate(args.files, 1):
        logger.info(f"[{i}/{len(args.files)}] Analyzing: {path}")
        try:
            with tracker.track_operation(f"Analyze {path.name}"):
                report = build_report(path, analyzer, args.show_optimized)
        except Exception as e:
            logger.error(f"[FAILED] {path}: {e}")
            failed_files.append((path, str(e)))
            if args.verbose:
                import traceback

                traceback.print_exc()
            continue

        summary = report["summary"]
        total_structs += summary["structsAnalyzed"]
        total_savings += summary["potentialSavings"]
        for diagnostic in report["diagnostics"]:
            if diagnostic["severity"] == "error":
                logger.warning(f"{path}: {diagnostic['message']}")

        if args.output is not None:
            output_file = args.output / create_report_filename(path)
            output_file.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")
            logger.info(f"[SUCCESS] Wrote: {output_file}")
        else:
            reports.append(report)

        logger.info(
            f"{summary['structsAnalyzed']} aggregate(s), {summary['totalPadding']} padding bytes, "
            f"{summary['potentialSavings']} bytes saveable"
        )

    if args.output is None and reports:
        payload = reports[0] if len(reports) == 1 else reports
        print(json.dumps(payload, indent=2))

    if args.verbose:
        tracker.log_memory_usage()

    # Print summary
    logger.info("=" * 70)
    logger.info("ANALYSIS SUMMARY")
    logger.info("=" * 70)
    logger.info(f"Total files: {len(args.files)}")
    logger.info(f"Successfully analyzed: {len(args.files) - len(failed_files)}")
    logger.info(f"Failed: {len(failed_files)}")
    logger.info(f"Aggregates: {total_structs}, potential savings: {total_savings} bytes")

    if failed_files:
        logger.info("\nFailed files:")
        for path, error in failed_files:
            logger.info(f"  - {path}: {error}")

    sys.exit(0 if not failed_files else 1)


if __name__ == "__main__":
    main()
