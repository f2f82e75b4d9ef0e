#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Export utilities for doris-cli.
"""
import logging

from doris_cli.utils import export_to_csv, write_output_file

logger = logging.getLogger(__name__)


def _cell(value):
    return "" if value is None else str(value)


def write_delimited(rows, output_file, separator=",", include_header=False):
    """Write rows as delimiter-joined text, overwriting the file.

    Values are written as-is: separators or newlines inside a value are not
    quoted or escaped. Use :func:`export_query_results_to_csv` when the
    output has to be parsed back.

    Args:
        rows (list): List of dictionaries containing results
        output_file (str): Path to the output file
        separator (str): Column separator
        include_header (bool): Write the first row's keys as a header line

    Returns:
        int: Number of data rows written
    """
    lines = []
    if include_header and rows:
        lines.append(separator.join(str(key) for key in rows[0].keys()))

    for row in rows:
        lines.append(separator.join(_cell(value) for value in row.values()))

    content = "".join(line + "\n" for line in lines)
    write_output_file(output_file, content)
    logger.debug("Wrote %d rows to %s", len(rows), output_file)
    return len(rows)


def export_query_results_to_csv(rows, output_file, delimiter=","):
    """Export query results to a CSV file with proper quoting.

    Args:
        rows (list): List of dictionaries containing results
        output_file (str): Path to the output CSV file
        delimiter (str): Column delimiter

    Returns:
        int: Number of data rows written
    """
    write_output_file(output_file, export_to_csv(rows, delimiter))
    logger.debug("Exported %d rows to %s", len(rows), output_file)
    return len(rows)
