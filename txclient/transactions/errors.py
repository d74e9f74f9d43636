"""
Errors raised by the transaction client.

Every failure of create, broadcast or poll surfaces as a subclass of
TransactionClientError so callers can catch the whole family at once.
Cancellation of a poll is not an error and never raises.
"""

from typing import Any, Dict, List, Optional


class TransactionClientError(Exception):
    """Base exception for transaction client errors."""

    pass


class TransactionValidationError(TransactionClientError):
    """Raised when a transaction is created with missing or invalid fields."""

    def __init__(self, fields: List[str], errors: Optional[List[Dict[str, Any]]] = None):
        self.fields = fields
        self.errors = errors or []
        super().__init__(f"Invalid transaction fields: {', '.join(fields)}")


class AlreadyBroadcastError(TransactionClientError):
    """Raised when broadcasting a transaction that already left INIT."""

    pass


class HashNotFoundError(TransactionClientError):
    """Raised when a broadcast response has no hash, or polling has no hash."""

    pass


class UnexpectedStatusError(TransactionClientError):
    """Raised when an endpoint answers with a non-success HTTP status."""

    def __init__(self, url: str, status_code: int, body: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"Unexpected HTTP status {status_code} from {url}")


class TransportError(TransactionClientError):
    """Raised when the request could not be exchanged with the endpoint."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Request to {url} failed: {message}")


class ResponseDecodeError(TransactionClientError):
    """Raised when a success response body does not match the expected shape."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Invalid response from {url}: {message}")


class InvalidTransitionError(TransactionClientError):
    """Raised on an illegal transaction status transition."""

    pass
