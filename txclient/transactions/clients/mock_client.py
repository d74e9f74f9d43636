"""
Mock ledger transport for testing and development.

Keeps broadcast transactions in memory and answers status checks the
way a remote ledger would, without requiring a running service.
"""

import asyncio
import hashlib
import json
import random
from typing import Any, Dict, List, Optional, Tuple

from txclient.transactions.clients.base import BaseTransport, TransportResponse
from txclient.transactions.errors import TransportError
from txclient.transactions.models import TransactionStatus


class MockLedgerTransport(BaseTransport):
    """
    In-memory ledger answering broadcast and status requests.

    A broadcast payload gets a sha256 hash. Status checks for that hash
    answer PENDING `pending_polls` times, then `final_status`. Unknown
    hashes answer DNE. Every request is recorded in `requests`.
    """

    def __init__(
        self,
        pending_polls: int = 2,
        final_status: TransactionStatus = TransactionStatus.CONFIRMED,
        failure_rate: float = 0.0,
        latency_ms: int = 0,
        timeout: float = 30.0,
    ):
        """
        Initialize mock ledger.

        Args:
            pending_polls: Status checks answered PENDING before settling
            final_status: Status reported once settled
            failure_rate: Probability of simulated transport failure (0.0 to 1.0)
            latency_ms: Simulated network latency in milliseconds
            timeout: Ignored (mock doesn't make real requests)
        """
        super().__init__(timeout)
        self.pending_polls = pending_polls
        self.final_status = TransactionStatus(final_status)
        self.failure_rate = failure_rate
        self.latency_ms = latency_ms
        self.requests: List[Tuple[str, str]] = []
        self._ledger: Dict[str, int] = {}

    def get_name(self) -> str:
        return "mock"

    async def post_json(self, url: str, payload: Dict[str, Any]) -> TransportResponse:
        await self._simulate_exchange("POST", url)

        missing = [k for k in ("symbol", "price", "timestamp") if not payload.get(k)]
        if missing:
            return self._json_response(400, {"error": f"missing {', '.join(missing)}"})

        tx_hash = hashlib.sha256(
            json.dumps(payload, sort_keys=True).encode("utf-8")
        ).hexdigest()
        self._ledger.setdefault(tx_hash, 0)
        return self._json_response(200, {"tx_hash": tx_hash})

    async def get_json(self, url: str) -> TransportResponse:
        await self._simulate_exchange("GET", url)

        tx_hash = url.rstrip("/").rsplit("/", 1)[-1]
        if tx_hash not in self._ledger:
            return self._json_response(200, {"tx_status": TransactionStatus.DNE.value})

        self._ledger[tx_hash] += 1
        if self._ledger[tx_hash] <= self.pending_polls:
            status = TransactionStatus.PENDING
        else:
            status = self.final_status
        return self._json_response(200, {"tx_status": status.value})

    def status_checks(self, tx_hash: str) -> int:
        """Number of status checks answered for a known hash."""
        return self._ledger.get(tx_hash, 0)

    async def _simulate_exchange(self, method: str, url: str) -> None:
        self.requests.append((method, url))
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
        if random.random() < self.failure_rate:
            raise TransportError(url, "Simulated connection failure")

    @staticmethod
    def _json_response(status_code: int, body: Dict[str, Any]) -> TransportResponse:
        return TransportResponse(
            status_code=status_code, body=body, text=json.dumps(body)
        )
