"""
Transaction broadcast and polling module.

This module creates validated transactions, submits them to a
broadcast endpoint and polls their status until they settle.
"""

from txclient.transactions.client import TransactionClient
from txclient.transactions.clients.base import BaseTransport
from txclient.transactions.clients.http_client import HttpxTransport
from txclient.transactions.clients.mock_client import MockLedgerTransport
from txclient.transactions.config import PollingConfig, default_predicate
from txclient.transactions.errors import (
    AlreadyBroadcastError,
    HashNotFoundError,
    ResponseDecodeError,
    TransactionClientError,
    TransactionValidationError,
    TransportError,
    UnexpectedStatusError,
)
from txclient.transactions.models import (
    TERMINAL_STATUSES,
    Transaction,
    TransactionStatus,
    create_transaction,
)

__all__ = [
    "TransactionClient",
    "BaseTransport",
    "HttpxTransport",
    "MockLedgerTransport",
    "PollingConfig",
    "default_predicate",
    "Transaction",
    "TransactionStatus",
    "TERMINAL_STATUSES",
    "create_transaction",
    "TransactionClientError",
    "TransactionValidationError",
    "AlreadyBroadcastError",
    "HashNotFoundError",
    "UnexpectedStatusError",
    "TransportError",
    "ResponseDecodeError",
]
