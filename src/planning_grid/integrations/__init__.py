"""Adapters: HTTP transport, key-value stores, in-memory ledger, exports."""
