"""Broadcast a transaction to a ledger service and track it until it settles."""

__version__ = "0.1.0"
