"""HTTP transport adapters implementing HTTPTransportPort."""

from lokilog.adapters.transport.httpx_transport import HttpxTransport

__all__ = ["HttpxTransport"]
