"""Allow running as ``python -m db_access``."""

from db_access.cli import cli_entry

if __name__ == "__main__":
    cli_entry()
