"""REST API layer for kubediscovery.

Exposes:
    create_app -- FastAPI application factory.
"""

from kubediscovery.api.app import API_PREFIX, create_app

__all__ = ["API_PREFIX", "create_app"]
