"""web3.py chain gateway.

Talks JSON-RPC to a node (hardhat fork, anvil or a remote endpoint). Senders
are node-managed accounts: the node's own unlocked accounts, or addresses
impersonated through ``hardhat_impersonateAccount`` on forks.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3RPCError

from asdboot.contracts.gateway import ChainGateway
from asdboot.core.errors import (
    ConfigurationError,
    ConfirmationTimeout,
    NodeUnreachableError,
    TransactionFailure,
)
from asdboot.core.models import ContractHandle, ReadRequest, TransactionRequest, TxReceipt

logger = logging.getLogger(__name__)


def classify_failure(message: str) -> str:
    """Map a node error message to a TransactionFailure kind."""
    lowered = message.lower()
    if "nonce" in lowered:
        return "nonce_conflict"
    if "gas" in lowered:
        return "out_of_gas"
    if "revert" in lowered:
        return "revert"
    return "rejected"


class Web3Gateway(ChainGateway):
    """Chain gateway backed by web3.py's HTTPProvider."""

    def __init__(self):
        self._w3: Web3 | None = None
        self._url: str | None = None
        self._poll_interval = 0.5

    def configure(self, config: dict) -> None:
        """Connect to the network's RPC endpoint.

        Args:
            config: Network configuration (see NetworkConfig). ``reset_fork``
                with a ``forking`` section re-pins the fork before the run.
        """
        self._url = config["url"]
        self._poll_interval = config.get("poll_interval_seconds", self._poll_interval)
        self._w3 = Web3(Web3.HTTPProvider(self._url))

        forking = config.get("forking")
        if config.get("reset_fork") and forking and forking.get("enabled", True):
            params: dict[str, Any] = {"jsonRpcUrl": forking["url"]}
            if forking.get("block_number") is not None:
                params["blockNumber"] = forking["block_number"]
            logger.info("Resetting fork to block %s", forking.get("block_number", "latest"))
            self._rpc("hardhat_reset", [{"forking": params}])

    @property
    def w3(self) -> Web3:
        if self._w3 is None:
            raise ConfigurationError("Web3Gateway used before configure()")
        return self._w3

    def prepare_signer(self, address: str) -> None:
        self._rpc("hardhat_impersonateAccount", [Web3.to_checksum_address(address)])

    def accounts(self) -> list[str]:
        with self._reachable():
            return list(self.w3.eth.accounts)

    def chain_id(self) -> int:
        with self._reachable():
            return int(self.w3.eth.chain_id)

    def block_number(self) -> int:
        with self._reachable():
            return int(self.w3.eth.block_number)

    def submit(self, tx: TransactionRequest, sender: str) -> str:
        function = self._function(tx.contract, tx.function, tx.args)
        params = {"from": Web3.to_checksum_address(sender), "value": tx.value}
        try:
            built = function.build_transaction(params)
            tx_hash = self.w3.eth.send_transaction(built)
        except ContractLogicError as e:
            raise TransactionFailure(f"{tx.label()} reverted: {e}", kind="revert") from e
        except (Web3RPCError, ValueError) as e:
            message = str(e)
            raise TransactionFailure(f"{tx.label()} rejected: {message}", kind=classify_failure(message)) from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.debug("Submitted %s: %s", tx.label(), tx_hash_hex)
        return tx_hash_hex

    def wait_for_confirmation(self, tx_hash: str, confirmations: int, timeout: float) -> TxReceipt:
        deadline = time.monotonic() + timeout
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout, poll_latency=self._poll_interval
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(tx_hash, timeout) from e

        target_block = receipt["blockNumber"] + max(confirmations, 1) - 1
        while self.w3.eth.block_number < target_block:
            if time.monotonic() >= deadline:
                raise ConfirmationTimeout(tx_hash, timeout)
            time.sleep(self._poll_interval)

        return TxReceipt(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            status=receipt["status"],
            gas_used=receipt.get("gasUsed", 0),
        )

    def call(self, request: ReadRequest) -> Any:
        function = self._function(request.contract, request.function, request.args)
        block = request.block if request.block is not None else "latest"
        return function.call(block_identifier=block)

    def get_storage_at(self, address: str, slot: int) -> bytes:
        return bytes(self.w3.eth.get_storage_at(Web3.to_checksum_address(address), slot))

    def _function(self, contract: ContractHandle, name: str, args: tuple):
        instance = self.w3.eth.contract(address=Web3.to_checksum_address(contract.address), abi=contract.abi)
        return instance.get_function_by_name(name)(*args)

    @contextmanager
    def _reachable(self) -> Iterator[None]:
        """Re-raise transport failures from the HTTP provider as NodeUnreachableError."""
        try:
            yield
        except OSError as e:
            raise NodeUnreachableError(self._url, e) from e

    def _rpc(self, method: str, params: list) -> Any:
        with self._reachable():
            response = self.w3.provider.make_request(method, params)
        if "error" in response:
            raise ConfigurationError(f"{method} failed: {response['error']}")
        return response.get("result")
