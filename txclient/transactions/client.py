"""
Transaction broadcast and polling client.

Submits a transaction to the broadcast endpoint, then checks its status
on a fixed interval until the continuation predicate says stop, an
error occurs, or the caller cancels.
"""

import asyncio
import time
from typing import Optional
from urllib.parse import quote

import structlog

from txclient.core.config import Settings, get_settings
from txclient.transactions.clients.base import BaseTransport, TransportResponse
from txclient.transactions.clients.http_client import HttpxTransport
from txclient.transactions.clients.mock_client import MockLedgerTransport
from txclient.transactions.config import (
    DEFAULT_POLLING_CONFIG,
    PollingConfig,
    get_polling_config,
)
from txclient.transactions.errors import (
    AlreadyBroadcastError,
    HashNotFoundError,
    ResponseDecodeError,
    TransportError,
    UnexpectedStatusError,
)
from txclient.transactions.metrics import PollerMetrics, PollOutcome, PollRunMetrics
from txclient.transactions.models import (
    REMOTE_STATUSES,
    Transaction,
    TransactionStatus,
)

logger = structlog.get_logger()

# Response bodies are truncated to this many characters in logs and errors
BODY_EXCERPT_CHARS = 500


def join_url(base_url: str, segment: str) -> str:
    """Append segment to base_url as a single, percent-encoded path segment."""
    return f"{base_url.rstrip('/')}/{quote(segment, safe='')}"


class TransactionClient:
    """
    Client for the broadcast and polling endpoints of a ledger service.

    One client can serve many transactions, but each transaction must be
    driven by a single broadcast or poll call at a time.
    """

    def __init__(
        self,
        broadcast_url: str,
        polling_url: str,
        polling: Optional[PollingConfig] = None,
        transport: Optional[BaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            broadcast_url: Endpoint receiving transaction submissions
            polling_url: Base URL for status checks, the hash is appended
            polling: Default polling configuration for poll calls
            transport: Request transport (defaults to HttpxTransport)
            timeout: Request timeout for the default transport
        """
        self.broadcast_url = broadcast_url
        self.polling_url = polling_url
        self.polling = polling or DEFAULT_POLLING_CONFIG
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport(timeout=timeout)
        self.metrics = PollerMetrics()

        logger.debug(
            "client.initialized",
            broadcast_url=broadcast_url,
            polling_url=polling_url,
            transport=self.transport.get_name(),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TransactionClient":
        """Build a client from application settings."""
        settings = settings or get_settings()
        client = cls(
            broadcast_url=settings.BROADCAST_URL,
            polling_url=settings.POLLING_URL,
            polling=get_polling_config(settings),
            transport=cls._create_default_transport(settings),
        )
        # transport was created here, so the client closes it
        client._owns_transport = True
        return client

    @staticmethod
    def _create_default_transport(settings: Settings) -> BaseTransport:
        """Create the transport named in settings."""
        if settings.TRANSPORT == "mock":
            return MockLedgerTransport(
                pending_polls=settings.MOCK_PENDING_POLLS,
                final_status=TransactionStatus(settings.MOCK_FINAL_STATUS),
            )
        if settings.TRANSPORT != "http":
            logger.warning(
                "unknown_transport_type",
                type=settings.TRANSPORT,
                falling_back="http",
            )
        return HttpxTransport(timeout=settings.HTTP_TIMEOUT_SECONDS)

    async def aclose(self) -> None:
        if self._owns_transport:
            await self.transport.aclose()

    async def __aenter__(self) -> "TransactionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def broadcast(self, transaction: Transaction) -> None:
        """
        Submit a transaction to the broadcast endpoint.

        Sends exactly one request. On success the transaction gets its
        hash and moves to PENDING; on any error it stays at INIT.

        Raises:
            AlreadyBroadcastError: If the transaction already left INIT
            TransportError: If the request could not be completed
            UnexpectedStatusError: If the endpoint did not answer 200
            ResponseDecodeError: If the body is not a JSON object
            HashNotFoundError: If the body has no tx_hash
        """
        if transaction.status != TransactionStatus.INIT:
            raise AlreadyBroadcastError(
                f"Transaction already broadcast (hash={transaction.hash}, "
                f"status={transaction.status.value})"
            )

        url = self.broadcast_url
        log = logger.bind(url=url, symbol=transaction.symbol)
        log.info("broadcast.started")

        try:
            response = await self.transport.post_json(url, transaction.to_payload())
        except TransportError as e:
            log.error("broadcast.request_failed", error=str(e))
            raise

        self._check_response(url, response, "broadcast")

        if response.body is None:
            raise ResponseDecodeError(url, "expected a JSON object")
        tx_hash = response.body.get("tx_hash")
        if tx_hash is not None and not isinstance(tx_hash, str):
            raise ResponseDecodeError(url, f"tx_hash is not a string: {tx_hash!r}")
        if not tx_hash:
            log.error("broadcast.hash_not_found", response=response.text[:BODY_EXCERPT_CHARS])
            raise HashNotFoundError(f"Broadcast response from {url} has no tx_hash")

        transaction._mark_broadcast(tx_hash)
        log.info("broadcast.accepted", tx_hash=tx_hash, status=transaction.status.value)

    async def poll(
        self,
        transaction: Transaction,
        cancel: Optional[asyncio.Event] = None,
        polling: Optional[PollingConfig] = None,
    ) -> None:
        """
        Check the transaction status until told to stop.

        Every interval one status check is sent and its result assigned
        to the transaction. The loop returns when the predicate returns
        False, or as soon as `cancel` is set, leaving the status as last
        observed. There is no limit on the number of checks.

        Poll blocks the calling task. To keep working meanwhile:

            cancel = asyncio.Event()
            task = asyncio.create_task(client.poll(tx, cancel))
            # do something
            cancel.set()
            await task

        Args:
            transaction: A broadcast transaction
            cancel: Event that stops polling when set
            polling: Overrides the client's polling configuration

        Raises:
            HashNotFoundError: If the transaction was never broadcast
            TransportError: If a status check could not be completed
            UnexpectedStatusError: If the endpoint did not answer 200
            ResponseDecodeError: If the body has no valid tx_status
        """
        config = (polling or self.polling).resolve()

        if not transaction.hash:
            raise HashNotFoundError("Transaction has no hash, broadcast it before polling")

        url = join_url(self.polling_url, transaction.hash)
        cancel = cancel or asyncio.Event()

        run = self.metrics.start_run(transaction.hash)
        log = logger.bind(run_id=run.run_id, tx_hash=transaction.hash, url=url)
        log.info("poll.started", interval_seconds=config.interval)

        try:
            outcome = await self._polling_loop(transaction, url, cancel, config, run, log)
        except asyncio.CancelledError:
            log.info("poll.task_cancelled", status=transaction.status.value)
            self.metrics.end_run(run, PollOutcome.CANCELLED)
            raise
        except Exception as e:
            self.metrics.end_run(run, PollOutcome.FAILED, error=str(e))
            raise

        self.metrics.end_run(run, outcome)
        log.info("poll.completed", outcome=outcome.value, status=transaction.status.value)

    async def _polling_loop(
        self,
        transaction: Transaction,
        url: str,
        cancel: asyncio.Event,
        config: PollingConfig,
        run: PollRunMetrics,
        log,
    ) -> PollOutcome:
        loop = asyncio.get_running_loop()
        interval = config.interval
        next_tick = loop.time() + interval

        while True:
            if cancel.is_set():
                log.info("poll.cancelled", status=transaction.status.value)
                return PollOutcome.CANCELLED

            if await self._wait_for_cancel(cancel, next_tick - loop.time()):
                log.info("poll.cancelled", status=transaction.status.value)
                return PollOutcome.CANCELLED

            log.debug("poll.tick")
            status = await self._query_status(url, run, log)
            transaction._record_status(status)
            log.info("poll.status_updated", status=status.value)

            if not config.predicate(status):
                log.info("poll.stopped", status=status.value)
                return PollOutcome.STOPPED

            # Fixed schedule; ticks missed during a slow check are dropped
            next_tick += interval
            now = loop.time()
            if next_tick < now:
                missed = int((now - next_tick) // interval) + 1
                next_tick += missed * interval

    @staticmethod
    async def _wait_for_cancel(cancel: asyncio.Event, timeout: float) -> bool:
        """Wait until cancel is set or timeout elapses; True if cancelled."""
        try:
            await asyncio.wait_for(cancel.wait(), timeout=max(0.0, timeout))
        except asyncio.TimeoutError:
            return cancel.is_set()
        return True

    async def _query_status(self, url: str, run: PollRunMetrics, log) -> TransactionStatus:
        """Send one status check and decode the reported status."""
        started = time.perf_counter()
        try:
            response = await self.transport.get_json(url)
        except TransportError as e:
            self.metrics.record_request(run, time.perf_counter() - started)
            log.error("poll.request_failed", error=str(e))
            raise
        latency = time.perf_counter() - started

        try:
            self._check_response(url, response, "poll")
            status = self._decode_status(url, response)
        except Exception:
            self.metrics.record_request(run, latency)
            raise

        self.metrics.record_request(run, latency, status.value)
        return status

    @staticmethod
    def _check_response(url: str, response: TransportResponse, operation: str) -> None:
        if response.ok:
            return
        body = response.text[:BODY_EXCERPT_CHARS]
        logger.error(
            f"{operation}.unexpected_status",
            url=url,
            status_code=response.status_code,
            response=body,
        )
        raise UnexpectedStatusError(url, response.status_code, body)

    @staticmethod
    def _decode_status(url: str, response: TransportResponse) -> TransactionStatus:
        if response.body is None:
            raise ResponseDecodeError(url, "expected a JSON object")
        value = response.body.get("tx_status")
        try:
            status = TransactionStatus(value)
        except ValueError:
            raise ResponseDecodeError(url, f"unknown tx_status {value!r}") from None
        if status not in REMOTE_STATUSES:
            raise ResponseDecodeError(url, f"tx_status {value!r} cannot be reported remotely")
        return status
