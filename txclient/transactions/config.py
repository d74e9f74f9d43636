"""
Polling configuration.

Defines the tick interval and the continuation predicate used by
TransactionClient.poll, and how unset values fall back to defaults.
"""

from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from txclient.core.config import Settings, get_settings
from txclient.transactions.models import TransactionStatus

DEFAULT_INTERVAL_SECONDS = 5.0

PollingPredicate = Callable[[TransactionStatus], bool]


def default_predicate(status: TransactionStatus) -> bool:
    """Keep polling while the transaction is still pending."""
    return status == TransactionStatus.PENDING


class PollingConfig(BaseModel):
    """
    Interval and continuation predicate for a poll loop.

    The predicate receives every status reported by the remote and
    returns True to keep polling or False to stop.
    """

    model_config = ConfigDict(frozen=True)

    interval: Optional[float] = Field(
        default=None, ge=0, description="Seconds between status checks (0/None = default)"
    )
    predicate: Optional[PollingPredicate] = Field(
        default=None, description="Status -> keep polling? (None = continue while PENDING)"
    )

    def resolve(self) -> "PollingConfig":
        """Return a copy with unset interval and predicate filled with defaults."""
        return PollingConfig(
            interval=self.interval or DEFAULT_INTERVAL_SECONDS,
            predicate=self.predicate or default_predicate,
        )


# Default configuration instance
DEFAULT_POLLING_CONFIG = PollingConfig(
    interval=DEFAULT_INTERVAL_SECONDS, predicate=default_predicate
)


def get_polling_config(settings: Optional[Settings] = None) -> PollingConfig:
    """
    Build the client-wide polling configuration from settings.

    Only the interval is configurable from the environment; the
    predicate is always the default one.

    Args:
        settings: Settings to read (defaults to the cached application settings)
    """
    settings = settings or get_settings()
    if not settings.POLL_INTERVAL_SECONDS:
        return DEFAULT_POLLING_CONFIG
    return PollingConfig(interval=settings.POLL_INTERVAL_SECONDS)
