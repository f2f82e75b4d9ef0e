"""
Pytest configuration for doris-cli tests.

Live tests read the cluster address from DORIS_TEST_HOST, DORIS_TEST_PORT,
DORIS_TEST_USER, DORIS_TEST_PASSWORD and DORIS_TEST_DATABASE and are skipped
when no server is reachable.
"""
import os
import sys
import pytest

# Add the parent directory to sys.path so we can import doris_cli
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from doris_cli.config import ConnectionConfig
from doris_cli.connection import DorisClient
from doris_cli.errors import DorisConnectionError


def live_config():
    """Connection config of the cluster used by live tests."""
    return ConnectionConfig(
        host=os.environ.get("DORIS_TEST_HOST", "127.0.0.1"),
        port=int(os.environ.get("DORIS_TEST_PORT", "9030")),
        user=os.environ.get("DORIS_TEST_USER", "root"),
        password=os.environ.get("DORIS_TEST_PASSWORD", ""),
        database=os.environ.get("DORIS_TEST_DATABASE", "information_schema"),
        timeout=3000,
    )


@pytest.fixture(scope="session")
def doris_client():
    """
    Create a client connected to Doris for testing.

    This fixture is session-scoped, meaning it will be created once per test session.
    """
    client = DorisClient(live_config())

    try:
        client.connect()
    except DorisConnectionError:
        pytest.skip("Could not connect to Doris. Skipping tests.")

    yield client

    client.disconnect()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run each test in an empty directory so stray config.json/mcp.json/.env files are not picked up."""
    monkeypatch.chdir(tmp_path)
    for key in ("DORIS_HOST", "DORIS_PORT", "DORIS_USER", "DORIS_PASSWORD", "DORIS_DATABASE"):
        monkeypatch.delenv(key, raising=False)
    yield tmp_path
