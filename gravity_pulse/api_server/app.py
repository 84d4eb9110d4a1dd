"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn gravity_pulse.api_server.app:app --host 0.0.0.0 --port 8080
"""

from gravity_pulse.api_server.server import app

__all__ = ["app"]
