"""Commission ledger test suite."""
