"""Reference ledger backend used for local runs and contract tests."""
