"""
Middleware components for request processing.

This package contains middleware for:
- Request context (request ID bound into the log context)
- CORS for the browser UI
"""

from app.middleware.cors import CORSMiddleware
from app.middleware.request_context import RequestContextMiddleware

__all__ = [
    "CORSMiddleware",
    "RequestContextMiddleware",
]
