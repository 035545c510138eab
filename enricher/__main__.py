"""CLI entry point for the Company Data Enricher."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from enricher.config import settings
from enricher.enrich import ClaudeEnricher, MockEnricher
from enricher.errors import ConfigurationError, SpreadsheetImportError
from enricher.models import ItemStatus, WorkItem
from enricher.pipeline import EnrichmentPipeline
from enricher.spreadsheet import export_filename, read_companies, write_results

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def run_enrichment(
    input_path: Path,
    output_path: Path,
    use_mock: bool = False,
    concurrency: int = 1,
) -> list[WorkItem]:
    """Read companies, enrich them and write the results workbook."""
    items = read_companies(input_path.read_bytes())
    logger.info(f"Loaded {len(items)} companies from {input_path}")

    if use_mock:
        enricher = MockEnricher()
        logger.info("Using mock enricher for testing")
    else:
        enricher = ClaudeEnricher(api_key=settings.anthropic_api_key)

    last_progress = -1

    def report(snapshot: list[WorkItem]):
        nonlocal last_progress
        settled = sum(1 for item in snapshot if item.status.is_terminal)
        progress = round(settled / len(snapshot) * 100)
        if progress != last_progress:
            logger.debug(f"Progress: {progress}%")
            last_progress = progress

    pipeline = EnrichmentPipeline(items, enricher, on_update=report, concurrency=concurrency)
    results = await pipeline.run()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(write_results(results))
    logger.info(f"Results exported to {output_path}")

    print_summary(results)
    return results


def print_summary(results: list[WorkItem]):
    """Print a summary of results to console."""
    print("\n" + "=" * 60)
    print("COMPANY DATA ENRICHER - RESULTS SUMMARY")
    print("=" * 60)

    done = [r for r in results if r.status == ItemStatus.DONE]
    failed = [r for r in results if r.status == ItemStatus.ERROR]

    print(f"\nTotal companies: {len(results)}")
    print(f"Enriched: {len(done)}")
    print(f"Failed: {len(failed)}")

    if failed:
        print("\n" + "-" * 60)
        print("FAILURES")
        print("-" * 60)
        for r in failed:
            print(f"  {r.name}: {r.error}")

    print("\n" + "=" * 60)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Company Data Enricher - find websites, labs and contacts for a list of companies"
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Excel workbook with company names in the first column",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output workbook path (default: enriched_<input>.xlsx next to the input)",
    )
    parser.add_argument(
        "--concurrency", "-c",
        type=positive_int,
        default=settings.pipeline_concurrency,
        help="Companies enriched at the same time (default: 1, strictly sequential)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock enricher for testing",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        sys.exit(1)

    output = args.output or args.input.with_name(export_filename(args.input.name))

    try:
        asyncio.run(run_enrichment(
            input_path=args.input,
            output_path=output,
            use_mock=args.mock,
            concurrency=args.concurrency,
        ))
    except (SpreadsheetImportError, ConfigurationError) as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
