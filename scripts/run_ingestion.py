# scripts/run_ingestion.py
"""
Command-line entry point for tabload

Loads one tabular source (tab-delimited text, CSV, XLSX or XLS, from a
local path or an http(s) URL) into a new Snowflake table.

Usage Examples:
    # CSV with a header row, types inferred
    tabload -s data/series.csv --type csv --table series

    # Remote tab-delimited file, camel-case names, skip rows Snowflake rejects
    tabload -s https://example.org/data.txt --type text --table obs -c Y -i Y

    # Worksheet range with supplied names and types
    tabload -s book.xlsx --type xlsx --table sales --sheet Q1 --rows 4:0 --cols 2:0 \\
        --headers "region,units,day" -t "s,i,d"

    # Validate environment configuration only
    tabload --validate-config
"""

import argparse
import sys
import time
from pathlib import Path
import json

# Allow running from a source checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from tabload.config.ingest_options import build_ingest_options
from tabload.config.settings import settings
from tabload.orchestrator.ingestion_pipeline import IngestionPipeline
from tabload.utils.logger import setup_pipeline_logging, get_logger
from tabload.utils.exceptions import PipelineError, ConfigurationError


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog='tabload',
        description='Load a tabular source into a new Snowflake table',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    # Source and destination
    parser.add_argument('-s', '--source', help='Source file path or http(s) URL')
    parser.add_argument(
        '--type',
        dest='source_type',
        help='Source type: text (tab delimited), csv, xlsx or xls'
    )
    parser.add_argument('--table', help='Destination table to create')

    # Schema options
    parser.add_argument(
        '--headers',
        help='Comma separated column names; omit to read them from the first row'
    )
    parser.add_argument(
        '-t', '--types',
        help='Comma separated field types (s, i, d, f); omit to infer them'
    )
    parser.add_argument('-c', dest='camel', default='N', help='Y/N: convert header names to camel case (default: N)')
    parser.add_argument(
        '--lowercase-names',
        action='store_true',
        help='Store header-derived column names lower-cased'
    )
    parser.add_argument('--date-format', help='strptime pattern for Date fields (default: common layouts)')

    # Reading options
    parser.add_argument('-q', dest='quote', default='"', help='Quote character for text/csv, empty for none (default: ")')
    parser.add_argument('--skip', type=int, default=0, help='Rows to skip before the header or first data row (default: 0)')
    parser.add_argument('--sheet', help='Worksheet name for xlsx/xls (default: first sheet)')
    parser.add_argument('--rows', default='0:0', help='Worksheet rows S:E, 0-based inclusive, E=0 for all (default: 0:0)')
    parser.add_argument('--cols', default='0:0', help='Worksheet columns S:E, 0-based inclusive, E=0 for all (default: 0:0)')

    # Export options
    parser.add_argument('-i', dest='ignore_errors', default='N', help='Y/N: skip rows the destination rejects (default: N)')
    parser.add_argument(
        '--batch-size',
        type=int,
        help=f'Rows per insert batch, 0 for one batch (default: {settings.pipeline.batch_size})'
    )
    parser.add_argument(
        '--keep-temp-files',
        action='store_true',
        help='Keep downloaded and converted files in the work directory'
    )

    # Logging options
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=settings.pipeline.log_level.upper(),
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-dir',
        type=str,
        help='Directory for log files (default: console only)'
    )

    # Configuration validation
    parser.add_argument(
        '--validate-config',
        action='store_true',
        help='Validate configuration and exit'
    )

    # Output options
    parser.add_argument(
        '--output-format',
        choices=['text', 'json'],
        default='text',
        help='Output format (default: text)'
    )

    return parser.parse_args(argv)


def setup_environment(args):
    """Setup logging and apply command line overrides to settings"""
    setup_pipeline_logging(log_level=args.log_level, log_dir=args.log_dir)

    if args.batch_size is not None:
        settings.pipeline.batch_size = args.batch_size

    if args.keep_temp_files:
        settings.pipeline.cleanup_temp_files = False

    settings.pipeline.log_level = args.log_level


def format_elapsed(seconds: float) -> str:
    minutes, remainder = divmod(int(seconds), 60)
    return f"elapsed time: {minutes} minutes {remainder} seconds"


def print_results(result, elapsed_seconds: float, tolerant: bool, output_format: str):
    """Print ingestion results"""
    if output_format == 'json':
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return

    print("=== Ingestion Results ===")
    print(f"Status: {result.status}")
    print(f"Table: {result.table_name}")
    print(f"Rows Written: {result.rows_written:,}")
    print(f"Batches: {result.batches_written}")

    if tolerant:
        print(f"skipped rows: {result.rows_skipped}")
        for error in result.errors[:3]:  # first 3 only
            print(f"  - {error.get('message', 'Unknown error')}")
        if len(result.errors) > 3:
            print(f"  ... and {result.rows_skipped - 3} more")

    print(format_elapsed(elapsed_seconds))


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)
    start_time = time.time()

    try:
        setup_environment(args)
        logger = get_logger(__name__)
        logger.info(f"Arguments: {vars(args)}")

        if args.validate_config:
            if settings.validate():
                print("✓ Configuration is valid")
                return 0
            else:
                print("✗ Configuration is invalid - check required environment variables")
                return 1

        options = build_ingest_options(
            source=args.source,
            source_type=args.source_type,
            table=args.table,
            headers=args.headers,
            types=args.types,
            camel=args.camel,
            ignore_errors=args.ignore_errors,
            quote=args.quote,
            skip=args.skip,
            sheet=args.sheet,
            rows=args.rows,
            cols=args.cols,
            date_format=args.date_format,
            lowercase_names=args.lowercase_names,
            batch_size=settings.pipeline.batch_size
        )

        pipeline = IngestionPipeline()
        result = pipeline.run(options)

        print_results(result, time.time() - start_time, options.tolerate_row_errors, args.output_format)
        logger.info("Pipeline completed successfully")
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
        return 1

    except PipelineError as e:
        print(f"Pipeline Error: {e}")
        return 2

    except KeyboardInterrupt:
        print("\nPipeline interrupted by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}")
        if args.log_level == 'DEBUG':
            import traceback
            traceback.print_exc()
        return 3


if __name__ == '__main__':
    sys.exit(main())
