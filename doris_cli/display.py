#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Display utilities for doris-cli.
"""
from datetime import date

from rich.console import Console
from rich.table import Table

from doris_cli.utils import format_bytes, format_datetime, format_table, progress_bar

FE_HEADERS = ["Name", "Host", "Role", "Alive", "Version"]
BE_HEADERS = ["ID", "Host", "Alive", "Data Dirs", "Total", "Available", "Disk Used"]


def _cell(value):
    if value is None:
        return ""
    if isinstance(value, date):
        return format_datetime(value)
    return str(value)


def _render(console, title, column_names, rows, plain):
    if plain:
        if title:
            console.print(title, markup=False)
        console.print(format_table(rows, column_names), markup=False, highlight=False, soft_wrap=True)
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    for col in column_names:
        table.add_column(col)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def display_results(results, column_names=None, title=None, plain=False, console=None):
    """Display query results in tabular format using rich.

    Args:
        results (list): List of dictionaries containing results
        column_names (list, optional): Columns to show, defaults to the first row's keys
        title (str, optional): Table title
        plain (bool): Render a plain text table instead of a rich one
        console (Console, optional): Console to print to
    """
    console = console or Console()

    if not results:
        console.print("[yellow]Empty result set[/yellow]")
        return

    column_names = column_names or list(results[0].keys())
    rows = [[_cell(row.get(col)) for col in column_names] for row in results]
    _render(console, title, column_names, rows, plain)

    console.print(f"\nRows: {len(results)}")


def display_values(values, header, title=None, plain=False, console=None):
    """Display a single column of values, such as database or table names."""
    display_results([{header: v} for v in values], [header], title, plain, console)


def _alive(value, plain):
    alive = str(value).lower() in ("true", "1", "yes")
    if plain:
        return "online" if alive else "offline"
    return "[green]online[/green]" if alive else "[red]offline[/red]"


def _capacity(value):
    if isinstance(value, (int, float)):
        return format_bytes(value)
    return str(value) if value not in (None, "") else "-"


def _disk_usage(total, available):
    if not isinstance(total, (int, float)) or not isinstance(available, (int, float)) or total <= 0:
        return "-"
    return progress_bar(total - available, total, width=20)


def display_cluster_status(status, plain=False, console=None):
    """Display FE and BE node tables from a cluster status response.

    Args:
        status (dict): Response of the cluster status API
        plain (bool): Render plain text tables
        console (Console, optional): Console to print to
    """
    console = console or Console()
    frontends = status.get("frontends") or []
    backends = status.get("backends") or []

    if frontends:
        rows = [
            [
                _cell(fe.get("name")),
                "{}:{}".format(fe.get("host", ""), fe.get("edit_log_port", "")),
                _cell(fe.get("role")),
                _alive(fe.get("alive"), plain),
                _cell(fe.get("version")) or "-",
            ]
            for fe in frontends
        ]
        _render(console, "FE Nodes", FE_HEADERS, rows, plain)

    if backends:
        rows = [
            [
                _cell(be.get("be_id")),
                "{}:{}".format(be.get("host", ""), be.get("heartbeat_port", "")),
                _alive(be.get("alive"), plain),
                _cell(be.get("data_dir_count")) or "-",
                _capacity(be.get("total_capacity")),
                _capacity(be.get("available_capacity")),
                _disk_usage(be.get("total_capacity"), be.get("available_capacity")),
            ]
            for be in backends
        ]
        _render(console, "BE Nodes", BE_HEADERS, rows, plain)

    if not frontends and not backends:
        console.print("[yellow]No nodes reported[/yellow]")
