import itertools
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from leader_inspector import config

logger = logging.getLogger(__name__)

headers = {'Content-Type': 'application/json'}

COMMITMENT = 'finalized'

# getBlock error codes meaning there is no block to read at that slot
BLOCK_NOT_AVAILABLE = -32004
SLOT_SKIPPED = -32007
LONG_TERM_STORAGE_SLOT_SKIPPED = -32009
NO_BLOCK_ERROR_CODES = (BLOCK_NOT_AVAILABLE, SLOT_SKIPPED, LONG_TERM_STORAGE_SLOT_SKIPPED)


class RpcError(Exception):
    """Solana RPC call failed: transport error, HTTP error or JSON-RPC error object."""

    def __init__(self, message, code=None):
        self.code = code
        super().__init__(message)


def get_domain_name(url):
    """Extract just the domain name from the RPC URL for concise logging"""
    if not url:
        return "unknown"
    if url.startswith(('http://', 'https://')):
        url = url.split('://', 1)[1]
    return url.split('/')[0].split('?')[0]


class SolanaRpcClient:
    """Minimal JSON-RPC 2.0 client for the handful of Solana calls the inspector needs."""

    def __init__(self, url: str = config.SOLANA_RPC_URL, timeout: float = config.REQUEST_TIMEOUT):
        self.url = url
        self.timeout = timeout
        self.domain = get_domain_name(url)
        self._ids = itertools.count(1)

        # Single attempt per call
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=4, max_retries=Retry(total=0, raise_on_status=False))
        self.session = requests.Session()
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """POST one JSON-RPC request and return its result, raising RpcError on any failure."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
        }
        if params is not None:
            payload["params"] = params

        try:
            response = self.session.post(self.url, headers=headers, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RpcError(f"{method} to {self.domain} failed: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            text = response.text[:200] if response.text else ''
            raise RpcError(f"{method} to {self.domain} returned HTTP {response.status_code}: {text}")

        try:
            response_json = response.json()
        except ValueError as e:
            raise RpcError(f"{method} to {self.domain} returned invalid JSON") from e

        if response_json.get("error") is not None:
            error_info = response_json["error"]
            raise RpcError(
                f"{method} error {error_info.get('code')}: {error_info.get('message', '')}",
                code=error_info.get("code"),
            )
        if "result" not in response_json:
            raise RpcError(f"{method} to {self.domain} returned no result")

        logger.debug(f"{method} [{self.domain}] ok")
        return response_json["result"]

    def get_epoch_info(self) -> Dict[str, int]:
        """epoch, absoluteSlot, slotIndex, slotsInEpoch, blockHeight, transactionCount"""
        return self.call("getEpochInfo", [{"commitment": COMMITMENT}])

    def get_epoch_schedule(self) -> Dict[str, Any]:
        return self.call("getEpochSchedule")

    def get_leader_schedule(self, slot: int) -> Optional[Dict[str, List[int]]]:
        """Leader schedule of the epoch containing slot; None when the node has none for it."""
        return self.call("getLeaderSchedule", [slot, {"commitment": COMMITMENT}])

    def get_blocks(self, start_slot: int, end_slot: int) -> List[int]:
        """Confirmed blocks between start_slot and end_slot, inclusive."""
        return self.call("getBlocks", [start_slot, end_slot, {"commitment": COMMITMENT}])

    def get_block(self, slot: int) -> Optional[Dict[str, Any]]:
        """Block header and rewards at slot, or None when the slot has no block."""
        params = [
            slot,
            {
                "commitment": COMMITMENT,
                "encoding": "json",
                "transactionDetails": "none",
                "rewards": True,
                "maxSupportedTransactionVersion": 0,
            },
        ]
        try:
            return self.call("getBlock", params)
        except RpcError as e:
            if e.code in NO_BLOCK_ERROR_CODES:
                logger.debug(f"Slot {slot} has no block: {e}")
                return None
            raise

    def get_block_proposer(self, slot: int) -> Optional[str]:
        """Identity that produced the block at slot, read from its fee reward recipient."""
        block = self.get_block(slot)
        if not block:
            return None
        rewards = block.get("rewards") or []
        for reward in rewards:
            if reward.get("rewardType") == "Fee":
                return reward.get("pubkey")
        return None

    def produced_slots(self, start_slot: int, end_slot: int) -> set:
        """Slots in the range that have a confirmed block."""
        return set(self.get_blocks(start_slot, end_slot))

    def close(self):
        self.session.close()
