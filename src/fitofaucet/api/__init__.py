"""Public HTTP API."""

from .server import ApiServer, Services, create_app

__all__ = ["ApiServer", "Services", "create_app"]
