#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Error kinds raised by doris-cli.

Every failure is surfaced as one of a small closed set of exceptions so
callers can branch on ``kind`` instead of matching message text.
"""


class DorisError(Exception):
    """Base class for all doris-cli errors.

    Args:
        message (str): Human readable message
        original (Exception, optional): The driver or library error that caused it
    """

    kind = "error"

    def __init__(self, message, original=None):
        super().__init__(message)
        self.message = message
        self.original = original

    def to_dict(self):
        """Render the error as a dictionary."""
        return {
            "kind": self.kind,
            "message": self.message,
            "original": repr(self.original) if self.original else None,
        }


class DorisConnectionError(DorisError):
    """Opening the SQL connection failed."""

    kind = "connection"


class QueryError(DorisError):
    """A statement failed on the server or in the driver."""

    kind = "query"


class ValidationError(DorisError):
    """Input was rejected before anything was sent to the cluster."""

    kind = "validation"


class HttpError(DorisError):
    """A request to the FE HTTP API failed."""

    kind = "http"

    def __init__(self, message, original=None, status_code=None):
        super().__init__(message, original)
        self.status_code = status_code

    def to_dict(self):
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class ConfigError(DorisError):
    """Configuration could not be loaded or was invalid."""

    kind = "config"
