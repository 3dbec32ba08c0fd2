"""
HTTP interface for the notification engine.
"""

from toastline.ui.http_server import create_app

__all__ = ["create_app"]
