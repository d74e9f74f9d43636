"""
Transaction entity and status state machine.

A Transaction is created once with validated public fields and starts
at INIT. Its hash and status are read-only from the outside; only the
broadcast and poll operations of TransactionClient move it along

    INIT -> PENDING -> {CONFIRMED, FAILED, DNE}

A single Broadcast or Poll call owns the entity while it runs. Running
two of them concurrently on the same transaction is not supported.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from txclient.transactions.errors import InvalidTransitionError, TransactionValidationError

MAX_UINT64 = 2**64 - 1


class TransactionStatus(str, Enum):
    """Lifecycle status of a transaction, using the wire values."""

    INIT = "INIT"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    DNE = "DNE"  # does not exist on the remote side


TERMINAL_STATUSES = frozenset(
    {TransactionStatus.CONFIRMED, TransactionStatus.FAILED, TransactionStatus.DNE}
)

# Statuses the remote may report once a transaction has been broadcast.
REMOTE_STATUSES = frozenset({TransactionStatus.PENDING}) | TERMINAL_STATUSES

ALLOWED_TRANSITIONS = {
    TransactionStatus.INIT: {TransactionStatus.PENDING},
    TransactionStatus.PENDING: set(REMOTE_STATUSES),
    # the remote is authoritative, a later poll may report another value
    TransactionStatus.CONFIRMED: set(REMOTE_STATUSES),
    TransactionStatus.FAILED: set(REMOTE_STATUSES),
    TransactionStatus.DNE: set(REMOTE_STATUSES),
}


def assert_transition(old: TransactionStatus, new: TransactionStatus) -> None:
    if new not in ALLOWED_TRANSITIONS.get(old, set()):
        raise InvalidTransitionError(
            f"Illegal transaction transition: {old.value} -> {new.value}"
        )


class Transaction(BaseModel):
    """A transaction to broadcast and track until it settles."""

    model_config = ConfigDict(frozen=True)

    symbol: StrictStr = Field(min_length=1, description="Asset identifier, e.g. ETH")
    price: StrictInt = Field(gt=0, le=MAX_UINT64)
    timestamp: StrictInt = Field(gt=0, le=MAX_UINT64, description="Creation time marker")

    _hash: str = PrivateAttr(default="")
    _status: TransactionStatus = PrivateAttr(default=TransactionStatus.INIT)

    @classmethod
    def create(cls, symbol: str, price: int, timestamp: int) -> "Transaction":
        """
        Validate the inputs and return a new transaction at INIT.

        Raises:
            TransactionValidationError: listing every field that failed
        """
        try:
            return cls(symbol=symbol, price=price, timestamp=timestamp)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False)
            fields = sorted({str(err["loc"][0]) for err in errors if err["loc"]})
            raise TransactionValidationError(fields, errors) from None

    @property
    def hash(self) -> str:
        return self._hash

    @property
    def status(self) -> TransactionStatus:
        return self._status

    def to_payload(self) -> Dict[str, Any]:
        """Submission body sent to the broadcast endpoint."""
        return self.model_dump(include={"symbol", "price", "timestamp"})

    def _mark_broadcast(self, tx_hash: str) -> None:
        # The hash is assigned exactly once, on the only edge out of INIT
        if self._status is not TransactionStatus.INIT or self._hash:
            raise InvalidTransitionError(
                f"Transaction already broadcast (hash={self._hash!r}, "
                f"status={self._status.value})"
            )
        if not tx_hash:
            raise InvalidTransitionError("A broadcast transaction needs a hash")
        assert_transition(self._status, TransactionStatus.PENDING)
        self._hash = tx_hash
        self._status = TransactionStatus.PENDING

    def _record_status(self, status: TransactionStatus) -> None:
        # Only a broadcast may leave INIT
        if self._status is TransactionStatus.INIT:
            raise InvalidTransitionError(
                f"Illegal transaction transition: INIT -> {status.value} without broadcast"
            )
        assert_transition(self._status, status)
        self._status = status

    def __repr__(self) -> str:
        return (
            f"Transaction(symbol={self.symbol!r}, price={self.price}, "
            f"timestamp={self.timestamp}, hash={self._hash!r}, "
            f"status={self._status.value})"
        )


def create_transaction(symbol: str, price: int, timestamp: int) -> Transaction:
    """Create a validated transaction, see Transaction.create."""
    return Transaction.create(symbol, price, timestamp)
