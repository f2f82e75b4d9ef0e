#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Single-query adapter for automated callers.

``doris_query`` never raises for connection, query, configuration or
validation failures; it returns a structured result instead.
"""
import sys
import json
import logging

from doris_cli.config import load_config
from doris_cli.connection import DorisClient
from doris_cli.errors import DorisError, ValidationError
from doris_cli.utils import parse_args

logger = logging.getLogger(__name__)


def doris_query(params, config_path=None):
    """Execute one SQL query and return a structured result.

    Args:
        params (dict): ``sql`` and an optional ``database`` overriding the configured one
        config_path (str, optional): Path to ``config.json``

    Returns:
        dict: ``{"success": True, "data": rows, "message": ...}`` or
        ``{"success": False, "error": ..., "kind": ..., "message": ...}``
    """
    client = None
    try:
        sql = (params or {}).get("sql")
        database = (params or {}).get("database")
        if not sql or not str(sql).strip():
            raise ValidationError("Parameter 'sql' is required")

        config = load_config(config_path)
        connection_config = config.doris.with_database(database) if database else config.doris

        client = DorisClient(connection_config)
        client.connect()
        result = client.query(sql)

        return {
            "success": True,
            "data": result.rows,
            "message": f"Query succeeded, returned {len(result.rows)} rows",
        }
    except DorisError as e:
        logger.debug("doris_query failed: %s", e)
        return {
            "success": False,
            "error": e.message,
            "kind": e.kind,
            "message": f"Query failed: {e.message}",
        }
    finally:
        if client is not None:
            client.disconnect()


def main(argv=None):
    """Console entry point: ``doris-query --sql "SELECT 1" [--database db] [--config file]``."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    params = {"sql": args.get("sql") if isinstance(args.get("sql"), str) else None}
    if isinstance(args.get("database"), str):
        params["database"] = args["database"]
    config_path = args.get("config") if isinstance(args.get("config"), str) else None

    result = doris_query(params, config_path)
    print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
