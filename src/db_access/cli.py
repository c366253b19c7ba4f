"""Command-line entry point: run one query against a configured connection.

Connection types are configured through ``DB_*`` environment variables (see
``db_access.settings``); a ``.env`` file in the working directory is loaded
automatically.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from db_access.core import ConnectionRegistry
from db_access.errors import DBError
from db_access.utils.serialization import dumps

logger = logging.getLogger(__name__)

# Output limit in characters, to keep terminals usable on large results
MAX_OUTPUT_CHARS = 20000


def truncate_output(data: str, max_length: int) -> str:
    """
    Truncate output to a maximum length, cutting at a line boundary if possible.

    Args:
        data: Text to truncate
        max_length: Maximum length in characters (0 disables truncation)

    Returns:
        Truncated text with a truncation notice if needed
    """
    if max_length <= 0 or len(data) <= max_length:
        return data

    truncated = data[:max_length]
    last_newline = truncated.rfind("\n")
    if last_newline > max_length * 0.8:  # Only use newline if it's in the last 20%
        truncated = truncated[:last_newline]

    return truncated + f"\n... [Output truncated: {len(data)} chars -> {max_length} chars]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-access",
        description="Run a SQL statement on a configured database connection.",
    )
    parser.add_argument("sql", help="SQL text, with ? placeholders for parameters")
    parser.add_argument("params", nargs="*", help="Bound parameter values")
    parser.add_argument(
        "-t", "--type", default="master", help="Logical connection type (default: master)"
    )
    parser.add_argument("--env-file", help="Load settings from this .env file")
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Execute without table prefixes or parameter binding",
    )
    parser.add_argument(
        "--log", action="store_true", help="Print the query log to stderr"
    )
    parser.add_argument(
        "--max-chars",
        type=int,
        default=MAX_OUTPUT_CHARS,
        help="Truncate output to this many characters (0 for no limit)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command; returns the process exit code."""
    args = build_parser().parse_args(argv)

    registry = ConnectionRegistry.from_env(args.env_file)
    if args.log:
        registry.query_log.set_enabled(True)

    try:
        handle = registry.get(args.type)
        if args.raw:
            stmt = handle.run_raw_query(args.sql)
        else:
            stmt = handle.run_query(args.sql, *args.params)
        rows = [row for row in stmt]
        stmt.close_cursor()
    except DBError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if args.log:
            for entry in registry.query_log.entries:
                print(dumps(entry.model_dump()), file=sys.stderr)
        registry.close()

    if rows:
        output = {"rows": rows, "row_count": len(rows)}
    else:
        output = {"rows": [], "affected_rows": handle.get_affected_rows()}
    print(truncate_output(dumps(output, indent=True), args.max_chars))
    return 0


def cli_entry() -> None:
    """
    Entry point for the ``db-access`` console script.
    """
    logging.basicConfig(level=logging.INFO)
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        sys.exit(130)


if __name__ == "__main__":
    cli_entry()
