"""
Hearth Servers

- REST API: HTTP API for the context service and the bots
- Auth: caller identity for the authenticated endpoints
"""

from hearth.servers.api import app as api_app, create_app, main as api_main
from hearth.servers.auth import AuthProvider, HeaderAuthProvider

__all__ = [
    "api_app",
    "api_main",
    "create_app",
    "AuthProvider",
    "HeaderAuthProvider",
]
