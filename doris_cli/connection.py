#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Connection module for doris-cli.
"""
import os
import time
import logging
from collections import namedtuple
from dataclasses import dataclass, field
from typing import List, Optional

import pymysql
import requests
from pymysql.cursors import DictCursor

from doris_cli.errors import DorisConnectionError, HttpError, QueryError, ValidationError
from doris_cli.export import write_delimited
from doris_cli.utils import quote_identifier, quote_string

logger = logging.getLogger(__name__)

# One entry of the DB-API cursor description
ColumnField = namedtuple(
    "ColumnField",
    ["name", "type_code", "display_size", "internal_size", "precision", "scale", "null_ok"],
)

# File extension -> LOAD format
LOAD_FORMATS = {
    ".csv": "CSV",
    ".json": "JSON",
    ".parquet": "PARQUET",
    ".orc": "ORC",
}
DEFAULT_LOAD_FORMAT = "ORC"


@dataclass
class QueryResult:
    """Rows and column metadata returned by a statement."""

    rows: List[dict] = field(default_factory=list)
    fields: List[ColumnField] = field(default_factory=list)
    rowcount: int = 0

    @property
    def column_names(self):
        return [f.name for f in self.fields]


@dataclass
class ImportOptions:
    """Options for a LOAD job submitted by ``import_from_file``."""

    format: Optional[str] = None
    columns: Optional[List[str]] = None
    column_separator: Optional[str] = None
    where: Optional[str] = None


@dataclass
class ExportOptions:
    """Options for ``export_to_file``."""

    separator: str = ","
    include_header: bool = False


def _first_present(row, *keys):
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


class DorisClient:
    """SQL client for Apache Doris holding at most one connection."""

    def __init__(self, config):
        """Initialize a client.

        Args:
            config (ConnectionConfig): Connection parameters
        """
        self.config = config
        self.connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()

    @property
    def is_connected(self):
        return self.connection is not None

    def connect(self):
        """Open a connection, replacing any connection already held.

        Raises:
            DorisConnectionError: If the driver cannot connect
        """
        self.disconnect()
        try:
            self.connection = pymysql.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                database=self.config.database,
                charset="utf8mb4",
                cursorclass=DictCursor,
                connect_timeout=self.config.connect_timeout,
                ssl_disabled=True,
                autocommit=True,
            )
        except Exception as e:
            self.connection = None
            logger.error("Failed to connect to Doris at %s:%s: %s", self.config.host, self.config.port, e)
            raise DorisConnectionError(f"Failed to connect to Doris at {self.config.host}:{self.config.port}: {e}", e)

        logger.debug("Connected to Apache Doris at %s:%s", self.config.host, self.config.port)
        return True

    def disconnect(self):
        """Close the connection. Calling it without a connection is a no-op."""
        if self.connection is None:
            return
        try:
            self.connection.close()
            logger.debug("Connection closed")
        except Exception as e:
            logger.warning("Error while closing connection: %s", e)
        finally:
            self.connection = None

    def ensure_connected(self):
        """Open a connection if none is held."""
        if self.connection is None:
            self.connect()

    def query(self, sql, params=None):
        """Execute a SQL statement.

        Args:
            sql (str): SQL statement, using ``%s`` placeholders when ``params`` is given
            params (tuple|list|dict, optional): Values bound by the driver

        Returns:
            QueryResult: Rows, column metadata and affected row count

        Raises:
            DorisConnectionError: If no connection could be opened
            QueryError: If the statement fails
        """
        self.ensure_connected()

        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params)
            fields = [ColumnField(*col[:7]) for col in cursor.description] if cursor.description else []
            rows = list(cursor.fetchall()) if cursor.description else []
            return QueryResult(rows=rows, fields=fields, rowcount=cursor.rowcount)
        except pymysql.Error as e:
            logger.error("Query execution failed: %s", e)
            if isinstance(e, (pymysql.OperationalError, pymysql.InterfaceError)):
                # The next call reconnects lazily
                self._drop_connection()
            raise QueryError(f"Query execution failed: {e}", e)
        except (TypeError, ValueError) as e:
            # Raised by the driver's %-formatting when params do not fit the statement
            if params is None:
                raise
            logger.error("Failed to bind query parameters: %s", e)
            raise QueryError(f"Failed to bind query parameters: {e}", e)
        finally:
            try:
                cursor.close()
            except Exception:
                pass

    def _drop_connection(self):
        try:
            self.connection.close()
        except Exception:
            pass
        self.connection = None

    def get_databases(self):
        """List database names."""
        result = self.query("SHOW DATABASES")
        return [_first_present(row, "Database", "DatabaseName", "name") for row in result.rows]

    def get_tables(self, database):
        """List table names in a database."""
        result = self.query("SHOW TABLES FROM {}".format(quote_identifier(database)))
        tables = []
        for row in result.rows:
            name = _first_present(row, f"Tables_in_{database}", "name")
            if name is None and row:
                name = next(iter(row.values()))
            tables.append(name)
        return tables

    def get_table_schema(self, database, table):
        """Describe a table.

        Returns:
            list: One dictionary per column (Field, Type, Null, Key, Default, Extra)
        """
        result = self.query("DESC {}.{}".format(quote_identifier(database), quote_identifier(table)))
        return result.rows

    def bulk_import(self, database, table, rows):
        """Insert rows with a single multi-row INSERT.

        Column order follows the table schema; keys missing from a row are
        inserted as NULL.

        Args:
            database (str): Database name
            table (str): Table name
            rows (list): List of dictionaries keyed by column name

        Returns:
            dict: success, rows_affected and message

        Raises:
            ValidationError: If ``rows`` is empty
        """
        if not rows:
            raise ValidationError("No data provided for import")

        schema = self.get_table_schema(database, table)
        columns = [_first_present(col, "Field", "name") for col in schema]

        prefix = "INSERT INTO {}.{} ({}) VALUES ".format(
            quote_identifier(database),
            quote_identifier(table),
            ", ".join(quote_identifier(c) for c in columns),
        )
        row_template = "({})".format(", ".join(["%s"] * len(columns)))
        values = [tuple(row.get(c) for c in columns) for row in rows]

        self.ensure_connected()
        cursor = self.connection.cursor()
        try:
            # One statement whatever its size; identifiers stay out of %-formatting
            sql = prefix + ", ".join(cursor.mogrify(row_template, value) for value in values)
            affected = cursor.execute(sql)
        except pymysql.Error as e:
            logger.error("Bulk import into %s.%s failed: %s", database, table, e)
            raise QueryError(f"Bulk import into {database}.{table} failed: {e}", e)
        finally:
            cursor.close()

        return {
            "success": True,
            "rows_affected": affected,
            "message": f"Imported {affected} rows into {database}.{table}",
        }

    def build_load_statement(self, database, table, file_path, options=None):
        """Build a LOAD statement for a file.

        Returns:
            tuple: (label, sql)
        """
        options = options or ImportOptions()
        label = "label_{}".format(int(time.time() * 1000))

        if options.format:
            load_format = options.format.upper()
        else:
            ext = os.path.splitext(file_path)[1].lower()
            load_format = LOAD_FORMATS.get(ext, DEFAULT_LOAD_FORMAT)

        lines = [
            "LOAD LABEL {}.{} (".format(quote_identifier(database), quote_identifier(label)),
            "    DATA INFILE({})".format(quote_string(file_path)),
            "    INTO TABLE {}".format(quote_identifier(table)),
        ]
        if options.column_separator:
            lines.append("    COLUMNS TERMINATED BY {}".format(quote_string(options.column_separator)))
        lines.append("    FORMAT AS {}".format(quote_string(load_format)))
        if options.columns:
            lines.append("    ({})".format(", ".join(quote_identifier(c.strip()) for c in options.columns)))
        if options.where:
            lines.append("    WHERE {}".format(options.where))
        lines.append(")")

        return label, "\n".join(lines)

    def import_from_file(self, database, table, file_path, options=None):
        """Submit an asynchronous LOAD job for a file.

        The job is tracked by its label; this call does not wait for it.

        Returns:
            dict: success, label, result rows and message
        """
        label, sql = self.build_load_statement(database, table, file_path, options)
        try:
            result = self.query(sql)
        except QueryError:
            logger.error("File import of %s into %s.%s failed", file_path, database, table)
            raise

        return {
            "success": True,
            "label": label,
            "result": result.rows,
            "message": f"Load job {label} submitted",
        }

    def export_to_file(self, sql, output_file, options=None):
        """Run a query and write its rows as delimited text.

        Returns:
            dict: success, row_count, file and message
        """
        options = options or ExportOptions()
        result = self.query(sql)
        try:
            count = write_delimited(result.rows, output_file, options.separator, options.include_header)
        except OSError as e:
            logger.error("Data export to %s failed: %s", output_file, e)
            raise

        return {
            "success": True,
            "row_count": count,
            "file": output_file,
            "message": f"Exported {count} rows to {output_file}",
        }

    def get_cluster_status(self, fe_host, fe_port):
        """Fetch cluster status from the FE HTTP API without authentication.

        Returns:
            dict: The JSON body
        """
        url = f"http://{fe_host}:{fe_port}/api/cluster_status"
        try:
            response = requests.get(url, timeout=(self.config.connect_timeout, None))
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error("Failed to get cluster status: %s", e)
            response = getattr(e, "response", None)
            status_code = response.status_code if response is not None else None
            raise HttpError(f"Failed to get cluster status: {e}", e, status_code)
