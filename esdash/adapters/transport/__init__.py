from esdash.adapters.transport.base import Transport, TransportResponse
from esdash.adapters.transport.httpx_transport import HttpxTransport

__all__ = ["Transport", "TransportResponse", "HttpxTransport"]
