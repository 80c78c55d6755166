"""
Remote administrative API used to provision a title.
"""

__all__ = ["AdminClient", "AdminClientProtocol"]

from .client import AdminClient
from .protocol import AdminClientProtocol
