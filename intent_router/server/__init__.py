"""HTTP 표면 (Starlette + SSE)"""

from .app import create_app, main

__all__ = ["create_app", "main"]
