"""Remote Operation Gateway: the only way the client talks to its backend."""

from .base import RemoteGateway
from .http_gateway import HttpGateway
from .operations import OPERATIONS

__all__ = ["RemoteGateway", "HttpGateway", "OPERATIONS"]
