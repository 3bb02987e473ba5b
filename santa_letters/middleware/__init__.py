"""
Middleware components for request processing.
"""

from santa_letters.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
