"""
Poll metrics.

Tracks every poll call made by a client: how many status checks it
issued, which statuses it observed and how it ended.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class PollOutcome(str, Enum):
    """How a poll call ended."""

    STOPPED = "stopped"  # predicate said stop
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class PollRunMetrics:
    """Metrics for a single poll call."""

    run_id: str
    tx_hash: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    outcome: Optional[PollOutcome] = None

    requests: int = 0
    statuses: List[str] = field(default_factory=list)
    final_status: Optional[str] = None

    duration_seconds: float = 0.0
    request_latency_seconds: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["ended_at"] = self.ended_at.isoformat() if self.ended_at else None
        data["outcome"] = self.outcome.value if self.outcome else None
        return data


@dataclass
class AggregateMetrics:
    """Aggregated metrics across poll calls."""

    total_runs: int = 0
    stopped_runs: int = 0
    cancelled_runs: int = 0
    failed_runs: int = 0
    total_requests: int = 0
    avg_requests_per_run: float = 0.0
    avg_duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PollerMetrics:
    """
    In-memory metrics tracker for poll calls.

    Keeps the runs in progress, keyed by run ID, and a bounded history
    of finished runs. Several polls may run at once on one client.
    """

    def __init__(self, history_size: int = 100):
        """
        Initialize metrics tracker.

        Args:
            history_size: Number of recent runs to keep in memory
        """
        self.history_size = history_size
        self._active_runs: Dict[str, PollRunMetrics] = {}
        self._history: List[PollRunMetrics] = []
        self._run_counter = 0

    def start_run(self, tx_hash: str) -> PollRunMetrics:
        """
        Start tracking a new poll call.

        Returns:
            The run to pass to record_request and end_run
        """
        self._run_counter += 1
        now = datetime.now(timezone.utc)
        run_id = f"poll-{now.strftime('%Y%m%d-%H%M%S')}-{self._run_counter}"
        run = PollRunMetrics(run_id=run_id, tx_hash=tx_hash, started_at=now)
        self._active_runs[run_id] = run
        return run

    def record_request(
        self, run: PollRunMetrics, latency_seconds: float, status: Optional[str] = None
    ):
        """Record a status check and, when it succeeded, the status it reported."""
        run.requests += 1
        run.request_latency_seconds += latency_seconds
        if status is not None:
            run.statuses.append(status)
            run.final_status = status

    def end_run(self, run: PollRunMetrics, outcome: PollOutcome, error: Optional[str] = None):
        """
        End a poll call and move it to the history.

        Args:
            run: Run returned by start_run
            outcome: How the call ended
            error: Error text for failed calls
        """
        if self._active_runs.pop(run.run_id, None) is None:
            return

        run.ended_at = datetime.now(timezone.utc)
        run.outcome = outcome
        run.error = error
        run.duration_seconds = (run.ended_at - run.started_at).total_seconds()

        self._history.append(run)
        if len(self._history) > self.history_size:
            self._history = self._history[-self.history_size :]

    def get_active_runs(self) -> List[PollRunMetrics]:
        """Runs still in progress, oldest first."""
        return list(self._active_runs.values())

    def get_last_run(self) -> Optional[PollRunMetrics]:
        return self._history[-1] if self._history else None

    def get_history(self, limit: Optional[int] = None) -> List[PollRunMetrics]:
        """
        Get recent run history.

        Args:
            limit: Maximum number of runs to return (defaults to all)

        Returns:
            List of poll run metrics, newest first
        """
        history = list(reversed(self._history))
        if limit:
            history = history[:limit]
        return history

    def get_aggregate_metrics(self) -> AggregateMetrics:
        runs = self._history
        metrics = AggregateMetrics(total_runs=len(runs))
        if not runs:
            return metrics

        for run in runs:
            if run.outcome == PollOutcome.STOPPED:
                metrics.stopped_runs += 1
            elif run.outcome == PollOutcome.CANCELLED:
                metrics.cancelled_runs += 1
            elif run.outcome == PollOutcome.FAILED:
                metrics.failed_runs += 1

        metrics.total_requests = sum(r.requests for r in runs)
        metrics.avg_requests_per_run = metrics.total_requests / metrics.total_runs
        metrics.avg_duration_seconds = (
            sum(r.duration_seconds for r in runs) / metrics.total_runs
        )
        return metrics

    def clear_history(self):
        """Clear all metrics history."""
        self._history.clear()
        self._active_runs.clear()
