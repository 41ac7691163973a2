"""Solana JSON-RPC ledger oracle."""

import itertools
from typing import Any, Optional

import httpx

from src.core.logging import get_logger
from src.core.ownership.address import is_valid_address, short_address
from src.core.ownership.errors import LedgerError
from src.services.ledger.base import LedgerOracle

logger = get_logger(__name__)


class SolanaRpcOracle(LedgerOracle):
    """Resolves the holder of a supply-1 SPL token (NFT) over JSON-RPC.

    Lookup is two round trips:
    1. getTokenLargestAccounts(mint) -> token accounts with a non-zero amount
    2. getAccountInfo(token_account, jsonParsed) -> the account's owner wallet
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the oracle.

        Args:
            rpc_url: JSON-RPC endpoint.
            commitment: Commitment level sent with every request.
            timeout: Per-request timeout in seconds.
            client: Pre-built httpx client (tests inject a MockTransport).
        """
        self._rpc_url = rpc_url
        self._commitment = commitment
        self._client = client or httpx.Client(timeout=timeout)
        self._request_ids = itertools.count(1)
        logger.info("SolanaRpcOracle initialized (commitment=%s)", commitment)

    @property
    def name(self) -> str:
        return "solana"

    def is_available(self) -> bool:
        return bool(self._rpc_url)

    def get_holder(self, token_ref: str) -> Optional[str]:
        if not is_valid_address(token_ref):
            raise LedgerError(f"Invalid mint address: {token_ref!r}")

        largest = self._call(
            "getTokenLargestAccounts",
            [token_ref, {"commitment": self._commitment}],
        )
        accounts = _value(largest, "getTokenLargestAccounts")
        if not isinstance(accounts, list):
            raise LedgerError("getTokenLargestAccounts: value is not a list")

        if not all(isinstance(acc, dict) for acc in accounts):
            raise LedgerError("getTokenLargestAccounts: account entry is not an object")
        holding = [acc for acc in accounts if str(acc.get("amount", "0")) != "0"]
        if not holding:
            logger.info("NFT %s: no holder account (burned?)", short_address(token_ref))
            return None
        if len(holding) > 1:
            logger.warning(
                "NFT %s: %d accounts hold a balance, holder is ambiguous",
                short_address(token_ref),
                len(holding),
            )
            return None

        token_account = holding[0].get("address")
        if not token_account:
            raise LedgerError("getTokenLargestAccounts: account without address")

        info = self._call(
            "getAccountInfo",
            [token_account, {"encoding": "jsonParsed", "commitment": self._commitment}],
        )
        account = _value(info, "getAccountInfo")
        if account is None:
            raise LedgerError(f"Token account {token_account} not found")

        try:
            owner = account["data"]["parsed"]["info"]["owner"]
        except (KeyError, TypeError) as exc:
            raise LedgerError(f"getAccountInfo: unexpected payload ({exc})") from exc
        return owner

    def close(self) -> None:
        self._client.close()

    def _call(self, method: str, params: list[Any]) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        try:
            response = self._client.post(self._rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise LedgerError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise LedgerError(f"{method} returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise LedgerError(f"{method}: response is not an object")
        error = body.get("error")
        if error:
            if not isinstance(error, dict):
                raise LedgerError(f"{method} RPC error: {error!r}")
            raise LedgerError(f"{method} RPC error {error.get('code')}: {error.get('message')}")
        return body


def _value(body: dict[str, Any], method: str) -> Any:
    result = body.get("result")
    if not isinstance(result, dict) or "value" not in result:
        raise LedgerError(f"{method}: missing result.value")
    return result["value"]
