#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Utility functions for doris-cli.
"""
import io
import os
import csv
import logging
from datetime import date, datetime

from rich.logging import RichHandler
from tabulate import tabulate

from doris_cli.errors import ValidationError

logger = logging.getLogger(__name__)

BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]
DEFAULT_DATETIME_FORMAT = "%Y/%m/%d %H:%M:%S"


def get_history_file():
    """Get history file path."""
    home_dir = os.path.expanduser("~")
    history_dir = os.path.join(home_dir, ".doris_cli")
    os.makedirs(history_dir, exist_ok=True)
    return os.path.join(history_dir, "history")


def setup_logging(verbose=False):
    """Route log records through rich.

    Library failures are reported by the CLI itself, so without ``verbose``
    only critical records reach the console.
    """
    level = logging.DEBUG if verbose else logging.CRITICAL
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )


def print_help():
    """Print help information for the interactive shell."""
    help_text = """
    General Commands:
      \\q, exit, quit                   Exit the shell
      \\h, help                         Show this help

    Any other input is executed as a single SQL statement against the
    configured Doris cluster and the result is printed as a table.

    Special Features:
      - Press Ctrl+C to discard the current line
      - Press Ctrl+D to exit
      - Use the arrow keys to browse history (saved in ~/.doris_cli/history)
    """
    print(help_text)


def quote_identifier(name):
    """Quote a database, table or column name with backticks.

    Embedded backticks are doubled.

    Raises:
        ValidationError: If the name is empty or contains a NUL byte
    """
    if name is None or not str(name).strip():
        raise ValidationError("Identifier must not be empty")
    name = str(name)
    if "\x00" in name:
        raise ValidationError(f"Invalid identifier: {name!r}")
    return "`{}`".format(name.replace("`", "``"))


def quote_string(value):
    """Quote a string literal with double quotes for statements that cannot bind parameters."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_table(rows, headers):
    """Format rows as an aligned text table.

    Args:
        rows (list): Rows as dictionaries (projected onto ``headers``) or sequences
        headers (list): Column headers

    Returns:
        str: The rendered table
    """
    table_data = []
    for row in rows:
        if isinstance(row, dict):
            table_data.append(["" if row.get(h) is None else row.get(h) for h in headers])
        elif isinstance(row, (list, tuple)):
            table_data.append(list(row))
    return tabulate(table_data, headers=headers, tablefmt="grid")


def format_bytes(num_bytes, decimals=2):
    """Format a byte count using base-1024 units.

    ``format_bytes(0)`` is ``"0 Bytes"``, ``format_bytes(1536, 1)`` is ``"1.5 KB"``.
    """
    if not num_bytes:
        return "0 Bytes"

    dm = max(decimals, 0)
    scaled = float(num_bytes)
    i = 0
    while abs(scaled) >= 1024 and i < len(BYTE_UNITS) - 1:
        scaled /= 1024
        i += 1

    value = f"{scaled:.{dm}f}"
    if "." in value:
        value = value.rstrip("0").rstrip(".")
    return f"{value} {BYTE_UNITS[i]}"


def format_datetime(value, fmt=DEFAULT_DATETIME_FORMAT):
    """Format a date/time value.

    Args:
        value: A datetime, date, ISO 8601 string or epoch seconds
        fmt (str): strftime format

    Returns:
        str: The formatted value
    """
    if isinstance(value, datetime):
        d = value
    elif isinstance(value, date):
        d = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        d = datetime.fromtimestamp(value)
    else:
        d = datetime.fromisoformat(str(value))
    return d.strftime(fmt)


def parse_csv(text, delimiter=","):
    """Parse CSV text, honouring quoted cells.

    Returns:
        list: One list of cell strings per record
    """
    return [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]


def export_to_csv(rows, delimiter=","):
    """Render a list of row dictionaries as CSV text.

    The header comes from the first row's keys. Cells containing the
    delimiter, a double quote or a newline are quoted, with quotes doubled.

    Returns:
        str: CSV text, or an empty string when there are no rows
    """
    if not rows:
        return ""

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])
    return buffer.getvalue()


def progress_bar(current, total, width=30):
    """Render a fixed-width ASCII progress bar, e.g. ``[===>   ] 50% (1/2)``."""
    ratio = current / total if total > 0 else 0.0
    ratio = min(max(ratio, 0.0), 1.0)
    percentage = int(ratio * 100 + 0.5)
    completed = int(ratio * width + 0.5)

    return "[{}>{}] {}% ({}/{})".format("=" * completed, " " * (width - completed), percentage, current, total)


def parse_args(args):
    """Parse a flat argument vector.

    Supports ``--key=value``, ``--key value``, ``--flag``, ``-k value`` and
    ``-f``. A key that is not followed by a value is ``True``.

    Returns:
        dict: Parsed parameters
    """
    params = {}
    current_key = None

    for arg in args:
        if arg.startswith("--"):
            key, sep, value = arg[2:].partition("=")
            if sep:
                params[key] = value
                current_key = None
            else:
                params[key] = True
                current_key = key
        elif arg.startswith("-") and len(arg) > 1:
            current_key = arg[1:]
            params[current_key] = True
        elif current_key:
            params[current_key] = arg
            current_key = None

    return params


def read_input_file(file_path):
    """Read a text file."""
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error("Failed to read file %s: %s", file_path, e)
        raise


def write_output_file(file_path, content):
    """Write text to a file, creating its directory and overwriting any content."""
    try:
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        logger.error("Failed to write file %s: %s", file_path, e)
        raise
