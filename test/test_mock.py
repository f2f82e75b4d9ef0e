"""
Mock tests for doris_cli.connection that don't require a real Doris connection.
"""
import unittest
from unittest.mock import MagicMock, patch, ANY

import pymysql
import requests

from doris_cli.config import ConnectionConfig
from doris_cli.connection import DorisClient
from doris_cli.errors import DorisConnectionError, HttpError, QueryError
from test_helpers import description, mock_cursor


def make_client(**kwargs):
    params = dict(host="localhost", port=9030, user="test_user", password="test_password", database="test_db")
    params.update(kwargs)
    return DorisClient(ConnectionConfig(**params))


class TestClientInitialization(unittest.TestCase):
    """Test initialization of the DorisClient class."""

    def test_initialization(self):
        """Test that DorisClient initializes without connecting."""
        client = make_client()

        self.assertEqual(client.config.host, "localhost")
        self.assertEqual(client.config.port, 9030)
        self.assertEqual(client.config.database, "test_db")
        self.assertIsNone(client.connection)
        self.assertFalse(client.is_connected)

    def test_disconnect_without_connection(self):
        """Test that disconnect is a no-op when never connected."""
        client = make_client()

        client.disconnect()
        client.disconnect()

        self.assertIsNone(client.connection)


@patch('pymysql.connect')
class TestClientWithMock(unittest.TestCase):
    """Test DorisClient methods with mocked pymysql."""

    def setUp(self):
        """Set up test environment."""
        self.client = make_client()

    def test_connect(self, mock_connect):
        """Test connect method."""
        mock_connection = MagicMock()
        mock_connect.return_value = mock_connection

        result = self.client.connect()

        self.assertTrue(result)
        mock_connect.assert_called_once_with(
            host="localhost",
            port=9030,
            user="test_user",
            password="test_password",
            database="test_db",
            charset='utf8mb4',
            cursorclass=ANY,
            connect_timeout=30.0,
            ssl_disabled=True,
            autocommit=True,
        )
        self.assertEqual(self.client.connection, mock_connection)

    def test_connect_exception(self, mock_connect):
        """Test connect method with exception."""
        mock_connect.side_effect = pymysql.OperationalError(2003, "Can't connect to MySQL server")

        with self.assertRaises(DorisConnectionError) as ctx:
            self.client.connect()

        self.assertEqual(ctx.exception.kind, "connection")
        self.assertIn("Can't connect", ctx.exception.message)
        self.assertIsInstance(ctx.exception.original, pymysql.OperationalError)
        self.assertIsNone(self.client.connection)

    def test_reconnect_replaces_handle(self, mock_connect):
        """Test that connecting again closes the previous connection."""
        first, second = MagicMock(), MagicMock()
        mock_connect.side_effect = [first, second]

        self.client.connect()
        self.client.connect()

        first.close.assert_called_once()
        self.assertIs(self.client.connection, second)

    def test_query_connects_lazily(self, mock_connect):
        """Test that query opens a connection when none is held."""
        _, cursor = mock_cursor(mock_connect, description("column1"), [{"column1": "value1"}], 1)

        result = self.client.query("SELECT 1")

        mock_connect.assert_called_once()
        cursor.execute.assert_called_once_with("SELECT 1", None)
        self.assertEqual(result.column_names, ["column1"])
        self.assertEqual(result.rows, [{"column1": "value1"}])
        self.assertEqual(result.rowcount, 1)
        cursor.close.assert_called_once()

    def test_query_reuses_connection(self, mock_connect):
        """Test that consecutive queries share one connection."""
        mock_cursor(mock_connect, description("a"), [{"a": 1}])

        self.client.query("SELECT 1")
        self.client.query("SELECT 2")

        mock_connect.assert_called_once()

    def test_query_with_params(self, mock_connect):
        """Test that parameters are handed to the driver for binding."""
        _, cursor = mock_cursor(mock_connect, description("a"), [{"a": "x"}])

        self.client.query("SELECT %s AS a", ("x",))

        cursor.execute.assert_called_once_with("SELECT %s AS a", ("x",))

    def test_query_without_result_set(self, mock_connect):
        """Test a statement that returns no rows."""
        mock_cursor(mock_connect, None, None, 3)

        result = self.client.query("INSERT INTO t VALUES (1)")

        self.assertEqual(result.rows, [])
        self.assertEqual(result.fields, [])
        self.assertEqual(result.rowcount, 3)

    def test_query_unreachable_host(self, mock_connect):
        """Test that a lazy connect failure surfaces as a connection error."""
        mock_connect.side_effect = pymysql.OperationalError(2003, "Can't connect to MySQL server on 'nowhere'")

        with self.assertRaises(DorisConnectionError):
            self.client.query("SELECT 1")

        self.assertIsNone(self.client.connection)

    def test_query_error(self, mock_connect):
        """Test that driver errors are raised as QueryError."""
        mock_connection, cursor = mock_cursor(mock_connect)
        cursor.execute.side_effect = pymysql.ProgrammingError(1064, "syntax error")

        with self.assertRaises(QueryError) as ctx:
            self.client.query("SELEC 1")

        self.assertIn("syntax error", ctx.exception.message)
        # A statement error keeps the connection
        self.assertIs(self.client.connection, mock_connection)

    def test_query_parameter_binding_error(self, mock_connect):
        """Test that a statement the driver cannot format with params is raised as QueryError."""
        mock_connection, cursor = mock_cursor(mock_connect)
        cursor.execute.side_effect = lambda sql, params: sql % params

        with self.assertRaises(QueryError) as ctx:
            self.client.query("SELECT * FROM `t%q` WHERE id = %s", (1,))

        self.assertIsInstance(ctx.exception.original, ValueError)
        self.assertIs(self.client.connection, mock_connection)

    def test_query_operational_error_drops_connection(self, mock_connect):
        """Test that a lost connection is dropped so the next call reconnects."""
        mock_connection, cursor = mock_cursor(mock_connect)
        cursor.execute.side_effect = pymysql.OperationalError(2013, "Lost connection")

        with self.assertRaises(QueryError):
            self.client.query("SELECT 1")

        self.assertIsNone(self.client.connection)
        mock_connection.close.assert_called_once()

    def test_disconnect(self, mock_connect):
        """Test disconnect method."""
        mock_connection = MagicMock()
        mock_connect.return_value = mock_connection

        self.client.connect()
        self.client.disconnect()
        self.client.disconnect()

        mock_connection.close.assert_called_once()
        self.assertIsNone(self.client.connection)

    def test_context_manager(self, mock_connect):
        """Test that leaving the with-block disconnects."""
        mock_connection, _ = mock_cursor(mock_connect, description("a"), [{"a": 1}])

        with self.client as client:
            client.query("SELECT 1")

        mock_connection.close.assert_called_once()
        self.assertIsNone(self.client.connection)


@patch('pymysql.connect')
class TestIntrospection(unittest.TestCase):
    """Test the schema introspection helpers."""

    def setUp(self):
        """Set up test environment."""
        self.client = make_client()

    def test_get_databases(self, mock_connect):
        """Test SHOW DATABASES with the usual column name."""
        _, cursor = mock_cursor(mock_connect, description("Database"), [{"Database": "db1"}, {"Database": "db2"}])

        self.assertEqual(self.client.get_databases(), ["db1", "db2"])
        cursor.execute.assert_called_once_with("SHOW DATABASES", None)

    def test_get_databases_fallback_column(self, mock_connect):
        """Test SHOW DATABASES with the alternate column name."""
        mock_cursor(mock_connect, description("name"), [{"name": "db1"}])

        self.assertEqual(self.client.get_databases(), ["db1"])

    def test_get_tables(self, mock_connect):
        """Test SHOW TABLES FROM a database."""
        _, cursor = mock_cursor(mock_connect, description("Tables_in_sales"), [{"Tables_in_sales": "orders"}])

        self.assertEqual(self.client.get_tables("sales"), ["orders"])
        cursor.execute.assert_called_once_with("SHOW TABLES FROM `sales`", None)

    def test_get_tables_fallback_column(self, mock_connect):
        """Test SHOW TABLES with an unexpected column name."""
        mock_cursor(mock_connect, description("Table"), [{"Table": "orders"}])

        self.assertEqual(self.client.get_tables("sales"), ["orders"])

    def test_get_table_schema(self, mock_connect):
        """Test DESC on a table."""
        schema = [{"Field": "id", "Type": "INT"}, {"Field": "name", "Type": "VARCHAR(32)"}]
        _, cursor = mock_cursor(mock_connect, description("Field", "Type"), schema)

        self.assertEqual(self.client.get_table_schema("sales", "orders"), schema)
        cursor.execute.assert_called_once_with("DESC `sales`.`orders`", None)

    def test_identifier_quoting(self, mock_connect):
        """Test that backticks inside identifiers are escaped."""
        _, cursor = mock_cursor(mock_connect, description("Field"), [])

        self.client.get_table_schema("sales", "ord`ers")

        cursor.execute.assert_called_once_with("DESC `sales`.`ord``ers`", None)


class TestClusterStatus(unittest.TestCase):
    """Test the unauthenticated cluster status call."""

    @patch('requests.get')
    def test_get_cluster_status(self, mock_get):
        """Test fetching the cluster status."""
        mock_response = MagicMock()
        mock_response.json.return_value = {"frontends": [], "backends": []}
        mock_get.return_value = mock_response

        status = make_client().get_cluster_status("fe1", 8030)

        self.assertEqual(status, {"frontends": [], "backends": []})
        mock_get.assert_called_once_with("http://fe1:8030/api/cluster_status", timeout=(30.0, None))

    @patch('requests.get')
    def test_get_cluster_status_error(self, mock_get):
        """Test that HTTP failures are raised as HttpError."""
        mock_get.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(HttpError) as ctx:
            make_client().get_cluster_status("fe1", 8030)

        self.assertEqual(ctx.exception.kind, "http")
        self.assertIsNone(ctx.exception.status_code)


if __name__ == '__main__':
    unittest.main()
