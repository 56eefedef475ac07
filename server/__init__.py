"""Server package: FastAPI app and WebSocket route."""

from server.app import create_app

__all__ = ["create_app"]
