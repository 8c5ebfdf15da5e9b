"""Chain gateway contract - transaction submission and chain reads.

Gateways are the only component that talks to a node. The pipeline submits
the transactions a step returns, then waits for their confirmation; steps use
the read methods for their idempotency probes.
"""

from abc import ABC, abstractmethod
from typing import Any

from asdboot.core.models import ReadRequest, TransactionRequest, TxReceipt


class ChainGateway(ABC):
    """Interface for chain client adapters (web3, in-memory fakes, etc.)."""

    def configure(self, config: dict) -> None:
        """Configure the gateway with the resolved network settings.

        Called once after instantiation, before any other method. Default
        implementation is a no-op.

        Args:
            config: Network configuration (url, chain_id, forking, ...)
        """
        pass

    def prepare_signer(self, address: str) -> None:
        """Make ``address`` usable as a sender (e.g., impersonation on forks).

        Default implementation is a no-op.
        """
        pass

    @abstractmethod
    def accounts(self) -> list[str]:
        """Accounts managed by the node, in index order."""
        ...

    @abstractmethod
    def chain_id(self) -> int:
        ...

    @abstractmethod
    def block_number(self) -> int:
        ...

    @abstractmethod
    def submit(self, tx: TransactionRequest, sender: str) -> str:
        """Sign and submit a transaction.

        Args:
            tx: Transaction to submit
            sender: Address that signs the transaction

        Returns:
            Transaction hash

        Raises:
            TransactionFailure: If the node rejects the transaction (revert on
                estimation, out of gas, nonce conflict)
        """
        ...

    @abstractmethod
    def wait_for_confirmation(self, tx_hash: str, confirmations: int, timeout: float) -> TxReceipt:
        """Block until ``tx_hash`` has ``confirmations`` confirmations.

        Raises:
            ConfirmationTimeout: If the wait exceeds ``timeout`` seconds
        """
        ...

    @abstractmethod
    def call(self, request: ReadRequest) -> Any:
        """Execute a read-only call and return the decoded result."""
        ...

    @abstractmethod
    def get_storage_at(self, address: str, slot: int) -> bytes:
        """Read a raw 32-byte storage slot."""
        ...
