# Copyright (c) Syntropy Systems
"""Web dashboard for evalboard."""

from .server import app, create_app

__all__ = ["app", "create_app"]
