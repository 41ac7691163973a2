"""Ledger error types"""


class LedgerError(Exception):
    """A ledger lookup failed (transport, RPC error, malformed payload)."""


class LedgerConfigError(LedgerError):
    """The ledger oracle cannot be built from the current configuration.

    Raised at startup only; the application must not run without an oracle.
    """
