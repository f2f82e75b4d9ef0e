#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Cluster management for Apache Doris.

Wraps the FE HTTP API (authenticated with the SQL credentials) and a few
SQL-driven admin statements issued through a :class:`DorisClient`.
"""
import re
import logging
from urllib.parse import quote

import requests
from requests.auth import HTTPBasicAuth

from doris_cli.connection import DorisClient
from doris_cli.errors import DorisError, HttpError, ValidationError
from doris_cli.utils import quote_identifier

logger = logging.getLogger(__name__)

HOST_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$|^\[[0-9A-Fa-f:.]+\]$")


def _validate_host_port(host, port):
    if not host or not HOST_PATTERN.match(str(host)):
        raise ValidationError(f"Invalid host: {host!r}")
    try:
        port = int(port)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid port: {port!r}", e)
    if not 0 < port < 65536:
        raise ValidationError(f"Invalid port: {port!r}")
    return str(host), port


class DorisManager:
    """Cluster manager for Apache Doris."""

    def __init__(self, config, client=None):
        """Initialize a manager.

        Args:
            config (AppConfig): Connection and FE endpoint configuration
            client (DorisClient, optional): Client to share; one is created otherwise
        """
        self.config = config
        self.client = client or DorisClient(config.doris)
        self.auth = HTTPBasicAuth(config.doris.user, config.doris.password)

    def close(self):
        """Close the SQL connection held by the client."""
        self.client.disconnect()

    def _request(self, method, url, action):
        timeout = (self.config.doris.connect_timeout, None)
        try:
            if method == "POST":
                response = requests.post(url, json={}, auth=self.auth, timeout=timeout)
            else:
                response = requests.get(url, auth=self.auth, timeout=timeout)
            response.raise_for_status()
            return response
        except requests.RequestException as e:
            logger.error("Failed to %s: %s", action, e)
            response = getattr(e, "response", None)
            status_code = response.status_code if response is not None else None
            raise HttpError(f"Failed to {action}: {e}", e, status_code)

    def _get_json(self, path, action):
        response = self._request("GET", self.config.fe.base_url + path, action)
        try:
            return response.json()
        except ValueError as e:
            logger.error("Failed to %s: invalid JSON response: %s", action, e)
            raise HttpError(f"Failed to {action}: invalid JSON response", e, response.status_code)

    def _query(self, sql, action, params=None):
        try:
            return self.client.query(sql, params)
        except DorisError as e:
            logger.error("Failed to %s: %s", action, e)
            raise

    def get_cluster_status(self):
        """Get FE and BE node status.

        Returns:
            dict: The FE response, with ``frontends`` and ``backends`` lists
        """
        return self._get_json("/api/cluster_status", "get cluster status")

    def get_fe_nodes(self):
        """Get the FE node list."""
        return self.get_cluster_status().get("frontends") or []

    def get_be_nodes(self):
        """Get the BE node list."""
        return self.get_cluster_status().get("backends") or []

    def get_query_progress(self, query_id):
        """Get the profile of a query."""
        if not query_id:
            raise ValidationError("Query id must not be empty")
        path = "/api/query/{}/profile".format(quote(str(query_id), safe=""))
        return self._get_json(path, "get query progress")

    def get_resource_usage(self):
        """Get cluster resource metrics."""
        return self._get_json("/api/system/metrics", "get resource usage")

    def restart_fe_node(self, host, port):
        """Ask an FE node to restart.

        Args:
            host (str): FE host
            port (int): FE HTTP port

        Returns:
            bool: True once the request was accepted
        """
        host, port = _validate_host_port(host, port)
        self._request("POST", f"http://{host}:{port}/api/admin/restart", "restart FE node")
        return True

    def add_be_node(self, host, port):
        """Register a BE node by its heartbeat address."""
        host, port = _validate_host_port(host, port)
        self._query(f'ALTER SYSTEM ADD BACKEND "{host}:{port}"', "add BE node")
        return True

    def remove_be_node(self, host, port):
        """Drop a BE node by its heartbeat address."""
        host, port = _validate_host_port(host, port)
        self._query(f'ALTER SYSTEM DROP BACKEND "{host}:{port}"', "remove BE node")
        return True

    def get_table_partitions(self, database, table):
        """List the partitions of a table."""
        sql = "SHOW PARTITIONS FROM {}.{}".format(quote_identifier(database), quote_identifier(table))
        return self._query(sql, "get table partitions").rows

    def get_table_stats(self, database, table):
        """Get table statistics.

        Returns:
            dict: The first statistics row, or None when there is none
        """
        sql = "SHOW TABLE STATS {}.{}".format(quote_identifier(database), quote_identifier(table))
        rows = self._query(sql, "get table stats").rows
        return rows[0] if rows else None

    def get_running_queries(self):
        """List running queries."""
        return self._query("SHOW PROCESSLIST", "get running queries").rows

    def kill_query(self, query_id):
        """Kill a running query by id. The id is bound, never interpolated."""
        if query_id is None or str(query_id).strip() == "":
            raise ValidationError("Query id must not be empty")
        if isinstance(query_id, str) and query_id.isdigit():
            query_id = int(query_id)
        self._query("KILL QUERY %s", "kill query", (query_id,))
        return True

    def get_version(self):
        """Get the Doris version string."""
        rows = self._query("SHOW VARIABLES LIKE 'version_comment'", "get version").rows
        if rows and "Value" in rows[0]:
            return rows[0]["Value"]
        return None
