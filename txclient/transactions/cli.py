"""
Transaction client CLI commands.

Provides command-line interface for broadcasting a transaction,
tracking it until it settles, and viewing the resolved configuration.
"""

import asyncio
import signal
import sys
import time
from typing import List, Optional

import structlog

from txclient.core.config import get_settings
from txclient.core.logging import configure_logging
from txclient.transactions.client import TransactionClient
from txclient.transactions.config import get_polling_config
from txclient.transactions.errors import TransactionClientError, TransactionValidationError
from txclient.transactions.models import Transaction, TERMINAL_STATUSES

logger = structlog.get_logger()


def print_transaction(tx: Transaction):
    """Pretty print a transaction."""
    print(f"Symbol: {tx.symbol}")
    print(f"Price: {tx.price}")
    print(f"Timestamp: {tx.timestamp}")
    print(f"Hash: {tx.hash or '-'}")
    print(f"Status: {tx.status.value}")


def print_poll_summary(client: TransactionClient):
    """Pretty print the last poll run."""
    run = client.metrics.get_last_run()
    if not run:
        return
    print("\n--- Poll ---")
    print(f"Run ID: {run.run_id}")
    print(f"Outcome: {run.outcome.value if run.outcome else '-'}")
    print(f"Checks: {run.requests}")
    print(f"Duration: {run.duration_seconds:.2f}s")


def parse_transaction(args: List[str]) -> Transaction:
    """Build a transaction from SYMBOL PRICE [TIMESTAMP] arguments."""
    if len(args) < 2:
        raise ValueError("expected SYMBOL PRICE [TIMESTAMP]")
    symbol = args[0]
    price = int(args[1])
    timestamp = int(args[2]) if len(args) > 2 else int(time.time())
    return Transaction.create(symbol, price, timestamp)


async def broadcast_command(args: List[str]):
    """Create and broadcast a transaction."""
    tx = parse_transaction(args)

    async with TransactionClient.from_settings() as client:
        await client.broadcast(tx)

    print("\nBroadcast accepted!")
    print_transaction(tx)
    return 0


async def track_command(args: List[str]):
    """Create, broadcast and poll a transaction until it settles."""
    tx = parse_transaction(args)
    cancel = asyncio.Event()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:
        # Windows event loops; Ctrl+C then interrupts the whole run
        pass

    async with TransactionClient.from_settings() as client:
        await client.broadcast(tx)
        print(f"Broadcast accepted, hash {tx.hash}")
        print(f"Polling every {client.polling.resolve().interval:g}s, press Ctrl+C to stop\n")

        await client.poll(tx, cancel)

    print("\n=== Transaction ===\n")
    print_transaction(tx)
    print_poll_summary(client)
    print()

    if cancel.is_set():
        print("Polling cancelled.")
        return 130
    return 0 if tx.status in TERMINAL_STATUSES else 1


async def config_command():
    """Show resolved configuration."""
    settings = get_settings()
    polling = get_polling_config(settings).resolve()
    print("\n=== Transaction Client Configuration ===\n")
    print(f"Environment: {settings.ENV}")
    print(f"Broadcast URL: {settings.BROADCAST_URL}")
    print(f"Polling URL: {settings.POLLING_URL}")
    print(f"Poll Interval: {polling.interval:g}s")
    print(f"HTTP Timeout: {settings.HTTP_TIMEOUT_SECONDS:g}s")
    print(f"Transport: {settings.TRANSPORT}")
    print()
    return 0


def print_usage():
    print("Usage: python -m txclient.transactions.cli <command> [options]")
    print("\nCommands:")
    print("  broadcast SYMBOL PRICE [TIMESTAMP]   Broadcast a transaction")
    print("  track SYMBOL PRICE [TIMESTAMP]       Broadcast and poll until settled")
    print("  config                               Show resolved configuration")
    print("\nExamples:")
    print("  python -m txclient.transactions.cli broadcast ETH 4500")
    print("  python -m txclient.transactions.cli track ETH 4500 1709738070")
    print("  TXCLIENT_TRANSPORT=mock python -m txclient.transactions.cli track ETH 4500")


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print_usage()
        return 1

    settings = get_settings()
    configure_logging(settings.ENV, debug=settings.DEBUG)

    command, args = argv[0], argv[1:]

    try:
        if command == "broadcast":
            return asyncio.run(broadcast_command(args))
        elif command == "track":
            return asyncio.run(track_command(args))
        elif command == "config":
            return asyncio.run(config_command())
        else:
            print(f"Unknown command: {command}")
            print_usage()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except TransactionValidationError as e:
        print(f"Invalid transaction: {', '.join(e.fields)}")
        return 1
    except TransactionClientError as e:
        print(f"Error: {e}")
        return 1
    except ValueError as e:
        print(f"Invalid arguments: {e}")
        return 1
    except Exception as e:
        print(f"Error: {str(e)}")
        logger.exception("cli_error", command=command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
