"""ASGI entry point: `uvicorn orderlink.api.app:app`."""

from .factory import create_app

app = create_app()
