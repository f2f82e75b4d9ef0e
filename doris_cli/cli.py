#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Command line interface for Apache Doris.
"""
from collections import namedtuple

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.lexers import PygmentsLexer
from prompt_toolkit.styles import Style
from pygments.lexers.sql import SqlLexer
from rich.console import Console

from doris_cli import __version__
from doris_cli.config import load_config
from doris_cli.connection import DorisClient, ExportOptions, ImportOptions
from doris_cli.display import display_cluster_status, display_results, display_values
from doris_cli.errors import DorisError
from doris_cli.export import export_query_results_to_csv
from doris_cli.manager import DorisManager
from doris_cli.utils import get_history_file, print_help, read_input_file, setup_logging

SCHEMA_HEADERS = ["Field", "Type", "Null", "Key", "Default", "Extra"]
EXIT_COMMANDS = ("exit", "quit", "\\q")
HELP_COMMANDS = ("help", "\\h")

console = Console()

Session = namedtuple("Session", ["config", "client", "manager"])


def _init(ctx):
    """Resolve configuration and build the client/manager pair.

    Returns:
        Session: The session, or None when the configuration could not be loaded
    """
    opts = ctx.obj
    try:
        config = load_config(opts.get("config")).override(
            host=opts.get("host"),
            port=opts.get("port"),
            user=opts.get("user"),
            password=opts.get("password"),
            database=opts.get("database"),
        )
    except DorisError as e:
        console.print(f"[red]Initialization failed:[/red] {e.message}")
        return None

    client = DorisClient(config.doris)
    return Session(config, client, DorisManager(config, client))


def _run(ctx, pending, done, failed, action, render=None):
    """Run one operation with a spinner, report the outcome and disconnect.

    Failures are printed; they never propagate out of a command.
    """
    session = _init(ctx)
    if session is None:
        return

    try:
        with console.status(pending):
            result = action(session)
        console.print(f"[green]✔[/green] {done(result) if callable(done) else done}")
        if render:
            render(result)
    except (DorisError, OSError) as e:
        console.print(f"[red]✖[/red] {failed}")
        console.print(f"[red]Error:[/red] {getattr(e, 'message', e)}")
    finally:
        session.client.disconnect()


def _show_query_result(result, plain, output=None):
    if not result.fields:
        console.print(f"Query OK, {result.rowcount} rows affected")
        return

    if not result.rows:
        console.print("[yellow]Empty result set[/yellow]")
        return

    display_results(result.rows, result.column_names, plain=plain, console=console)
    if output:
        export_query_results_to_csv(result.rows, output)
        console.print(f"[green]Results saved to {output}[/green]")


@click.group()
@click.option("--config", default=None, help="Path to config.json")
@click.option("--host", default=None, help="Apache Doris FE host")
@click.option("--port", default=None, type=int, help="Apache Doris MySQL port")
@click.option("--user", default=None, help="Username")
@click.option("--password", default=None, help="Password")
@click.option("--database", default=None, help="Default database")
@click.option("--plain", is_flag=True, help="Print plain text tables")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.version_option(__version__, prog_name="doris-cli")
@click.pass_context
def main(ctx, config, host, port, user, password, database, plain, verbose):
    """Apache Doris command line tool."""
    setup_logging(verbose)
    ctx.obj = {
        "config": config,
        "host": host,
        "port": port,
        "user": user,
        "password": password,
        "database": database,
        "plain": plain,
    }


@main.command()
@click.argument("sql", required=False)
@click.option("--output", "-o", default=None, help="Save the result to a CSV file")
@click.option("--file", "-f", "sql_file", default=None, help="Read the statement from a file")
@click.pass_context
def query(ctx, sql, output, sql_file):
    """Execute a SQL query."""
    if sql_file:
        try:
            sql = read_input_file(sql_file)
        except OSError as e:
            console.print(f"[red]Error:[/red] {e}")
            return
    if not sql or not sql.strip():
        console.print("[red]Error:[/red] no SQL statement given")
        return

    plain = ctx.obj["plain"]
    _run(
        ctx,
        "Executing query...",
        "Query finished",
        "Query failed",
        lambda s: s.client.query(sql),
        lambda result: _show_query_result(result, plain, output),
    )


@main.command()
@click.pass_context
def status(ctx):
    """Show cluster node status."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        "Fetching cluster status...",
        "Cluster status fetched",
        "Failed to fetch cluster status",
        lambda s: s.manager.get_cluster_status(),
        lambda result: display_cluster_status(result, plain, console),
    )


@main.command()
@click.pass_context
def databases(ctx):
    """List all databases."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        "Fetching databases...",
        "Databases fetched",
        "Failed to fetch databases",
        lambda s: s.client.get_databases(),
        lambda result: display_values(result, "Database", "Databases", plain, console),
    )


@main.command()
@click.argument("database")
@click.pass_context
def tables(ctx, database):
    """List the tables of a database."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        f"Fetching tables in {database}...",
        f"Tables in {database} fetched",
        f"Failed to fetch tables in {database}",
        lambda s: s.client.get_tables(database),
        lambda result: display_values(result, "Table", f"Tables in {database}", plain, console),
    )


@main.command()
@click.argument("database")
@click.argument("table")
@click.pass_context
def schema(ctx, database, table):
    """Show the schema of a table."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        f"Fetching schema of {database}.{table}...",
        f"Schema of {database}.{table} fetched",
        f"Failed to fetch schema of {database}.{table}",
        lambda s: s.client.get_table_schema(database, table),
        lambda result: display_results(result, SCHEMA_HEADERS, f"{database}.{table}", plain, console),
    )


@main.command()
@click.pass_context
def processlist(ctx):
    """Show running queries."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        "Fetching running queries...",
        "Running queries fetched",
        "Failed to fetch running queries",
        lambda s: s.manager.get_running_queries(),
        lambda result: display_results(result, title="Running Queries", plain=plain, console=console),
    )


@main.command("import")
@click.argument("file")
@click.argument("database")
@click.argument("table")
@click.option("--format", "-f", "file_format", default=None, help="File format (CSV, JSON, ORC, PARQUET)")
@click.option("--separator", "-s", default=None, help="Column separator")
@click.option("--columns", "-c", default=None, help="Comma separated column list")
@click.option("--where", "-w", default=None, help="Row filter predicate")
@click.pass_context
def import_(ctx, file, database, table, file_format, separator, columns, where):
    """Import a file into a table with a LOAD job."""
    options = ImportOptions(
        format=file_format,
        columns=[c.strip() for c in columns.split(",") if c.strip()] if columns else None,
        column_separator=separator,
        where=where,
    )
    _run(
        ctx,
        f"Importing into {database}.{table}...",
        lambda result: f"Import job submitted: {result['message']}",
        "Import failed",
        lambda s: s.client.import_from_file(database, table, file, options),
    )


@main.command()
@click.argument("sql")
@click.argument("output_file")
@click.option("--separator", "-s", default=",", help="Column separator")
@click.option("--no-header", is_flag=True, help="Do not write a header line")
@click.pass_context
def export(ctx, sql, output_file, separator, no_header):
    """Export query results to a delimited file."""
    options = ExportOptions(separator=separator, include_header=not no_header)
    _run(
        ctx,
        "Exporting data...",
        lambda result: f"Export finished: {result['message']}",
        "Export failed",
        lambda s: s.client.export_to_file(sql, output_file, options),
    )


@main.command()
@click.argument("database")
@click.argument("table")
@click.pass_context
def partitions(ctx, database, table):
    """Show the partitions of a table."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        f"Fetching partitions of {database}.{table}...",
        f"Partitions of {database}.{table} fetched",
        f"Failed to fetch partitions of {database}.{table}",
        lambda s: s.manager.get_table_partitions(database, table),
        lambda result: display_results(result, title=f"{database}.{table}", plain=plain, console=console),
    )


@main.command()
@click.argument("database")
@click.argument("table")
@click.pass_context
def stats(ctx, database, table):
    """Show statistics of a table."""
    plain = ctx.obj["plain"]
    _run(
        ctx,
        f"Fetching statistics of {database}.{table}...",
        f"Statistics of {database}.{table} fetched",
        f"Failed to fetch statistics of {database}.{table}",
        lambda s: s.manager.get_table_stats(database, table),
        lambda result: display_results([result] if result else [], title=f"{database}.{table}", plain=plain, console=console),
    )


@main.command()
@click.argument("query_id")
@click.pass_context
def kill(ctx, query_id):
    """Kill a running query."""
    _run(
        ctx,
        f"Killing query {query_id}...",
        f"Query {query_id} killed",
        f"Failed to kill query {query_id}",
        lambda s: s.manager.kill_query(query_id),
    )


@main.command()
@click.pass_context
def version(ctx):
    """Show the server version."""
    _run(
        ctx,
        "Fetching server version...",
        lambda result: f"Server version: {result or 'unknown'}",
        "Failed to fetch server version",
        lambda s: s.manager.get_version(),
    )


@main.command()
@click.argument("query_id")
@click.pass_context
def profile(ctx, query_id):
    """Show the profile of a query."""
    _run(
        ctx,
        f"Fetching profile of {query_id}...",
        f"Profile of {query_id} fetched",
        f"Failed to fetch profile of {query_id}",
        lambda s: s.manager.get_query_progress(query_id),
        lambda result: console.print_json(data=result),
    )


@main.command()
@click.pass_context
def metrics(ctx):
    """Show cluster resource metrics."""
    _run(
        ctx,
        "Fetching resource metrics...",
        "Resource metrics fetched",
        "Failed to fetch resource metrics",
        lambda s: s.manager.get_resource_usage(),
        lambda result: console.print_json(data=result),
    )


def is_exit_command(line):
    return line.strip().lower() in EXIT_COMMANDS


def run_shell(session, read_line, plain=False):
    """Read-eval-print loop for ad hoc SQL.

    Args:
        session (Session): Client/manager pair
        read_line (callable): Returns the next input line given a prompt
        plain (bool): Print plain text tables
    """
    while True:
        try:
            line = read_line("doris> ")
        except KeyboardInterrupt:
            continue
        except EOFError:
            break

        if is_exit_command(line):
            break

        command = line.strip()
        if not command:
            continue
        if command.lower() in HELP_COMMANDS:
            print_help()
            continue

        try:
            with console.status("Executing query..."):
                result = session.client.query(command)
            _show_query_result(result, plain)
        except KeyboardInterrupt:
            console.print("[yellow]Interrupted[/yellow]")
        except (DorisError, OSError) as e:
            console.print(f"[red]Error:[/red] {getattr(e, 'message', e)}")

    console.print("[green]Bye![/green]")


@main.command()
@click.pass_context
def shell(ctx):
    """Start an interactive SQL shell."""
    session = _init(ctx)
    if session is None:
        return

    cfg = session.config.doris
    console.print("[bold blue]Doris interactive shell (type exit or quit to leave)[/bold blue]")
    console.print(f"[yellow]Connection:[/yellow] {cfg.user}@{cfg.host}:{cfg.port}/{cfg.database or ''}")

    prompt_session = PromptSession(
        history=FileHistory(get_history_file()),
        auto_suggest=AutoSuggestFromHistory(),
        lexer=PygmentsLexer(SqlLexer),
        style=Style.from_dict({
            'prompt': '#00aa00 bold',
        }),
    )

    try:
        run_shell(session, prompt_session.prompt, ctx.obj["plain"])
    finally:
        session.client.disconnect()


if __name__ == "__main__":
    main()
