"""Framework adapters."""

from lokilog.adapters.frameworks.asgi import LokiRequestLoggingMiddleware

__all__ = ["LokiRequestLoggingMiddleware"]
