import sys
from pathlib import Path
from typing import Any, List

import httpx
import pytest
import pytest_asyncio

# Ensure project root is on sys.path so `import txclient` works when running pytest from root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from txclient.core.config import get_settings  # noqa: E402
from txclient.transactions.client import TransactionClient  # noqa: E402
from txclient.transactions.clients.http_client import HttpxTransport  # noqa: E402
from txclient.transactions.config import PollingConfig  # noqa: E402
from txclient.transactions.models import Transaction  # noqa: E402

BROADCAST_URL = "http://ledger.test/broadcast"
POLLING_URL = "http://ledger.test/check"
TX_HASH = "abc123"


class FakeLedger:
    """
    Scripted ledger endpoint for httpx.MockTransport.

    `statuses` is consumed one item per status check; the last item keeps
    answering once the others are used up. An item is a status string,
    an httpx.Response, or an exception to raise.
    """

    def __init__(self, tx_hash: str = TX_HASH):
        self.broadcast_response: Any = httpx.Response(200, json={"tx_hash": tx_hash})
        self.statuses: List[Any] = []
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            item = self.broadcast_response
        else:
            item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]

        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json={"tx_status": item})

    @property
    def broadcast_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def status_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings so environment changes in a test take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest_asyncio.fixture
async def client(ledger):
    """Client talking to the fake ledger with a short poll interval."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(ledger.handler)) as http:
        yield TransactionClient(
            broadcast_url=BROADCAST_URL,
            polling_url=POLLING_URL,
            polling=PollingConfig(interval=0.01),
            transport=HttpxTransport(client=http),
        )


@pytest.fixture
def transaction() -> Transaction:
    return Transaction.create("ETH", 4500, 1709738070)


@pytest_asyncio.fixture
async def pending_transaction(client, ledger, transaction) -> Transaction:
    """A transaction broadcast with hash abc123; the ledger's request log is reset."""
    await client.broadcast(transaction)
    ledger.requests.clear()
    return transaction
