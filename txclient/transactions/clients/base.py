"""
Base transport interface.

Defines the request/response exchange the transaction client needs
from the broadcast and polling endpoints.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TransportResponse:
    """Response from an endpoint; body is None when it was not a JSON object."""

    status_code: int
    body: Optional[Dict[str, Any]] = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class BaseTransport(ABC):
    """
    Abstract base class for transports.

    Implementations raise TransportError when the exchange itself fails
    and return a TransportResponse for any answer, whatever its status.
    """

    def __init__(self, timeout: float = 30.0):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout

    @abstractmethod
    async def post_json(self, url: str, payload: Dict[str, Any]) -> TransportResponse:
        """
        Send payload as a JSON body to url.

        Raises:
            TransportError: If the request could not be completed
        """
        pass

    @abstractmethod
    async def get_json(self, url: str) -> TransportResponse:
        """
        Fetch url.

        Raises:
            TransportError: If the request could not be completed
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """
        Get the name of this transport.

        Returns:
            Transport identifier (e.g., 'http', 'mock')
        """
        pass

    async def aclose(self) -> None:
        """Release resources held by the transport."""
        return None
