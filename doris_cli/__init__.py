#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
doris-cli - A command line and programmatic client for operating Apache Doris.

Features:
- Run SQL queries and inspect databases, tables and schemas
- Import data through bulk INSERT or Doris LOAD jobs, export results to files
- Query and manage cluster nodes through the FE HTTP API
- Interactive SQL shell
- Structured single-query adapter for automated callers
"""

__version__ = "1.0.0"

__all__ = [
    "AppConfig",
    "ConnectionConfig",
    "DorisClient",
    "DorisManager",
    "DorisError",
    "load_config",
    "resolve_connection_config",
    "doris_query",
    "display_results",
    "main",
]

from doris_cli.config import AppConfig, ConnectionConfig, load_config, resolve_connection_config
from doris_cli.errors import DorisError
from doris_cli.connection import DorisClient
from doris_cli.manager import DorisManager
from doris_cli.tool import doris_query
from doris_cli.display import display_results
from doris_cli.cli import main
