"""Transport implementations for the broadcast and polling endpoints."""

from txclient.transactions.clients.base import BaseTransport, TransportResponse
from txclient.transactions.clients.http_client import HttpxTransport
from txclient.transactions.clients.mock_client import MockLedgerTransport

__all__ = ["BaseTransport", "TransportResponse", "HttpxTransport", "MockLedgerTransport"]
