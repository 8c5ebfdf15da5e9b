"""set-DRE - verify the node matches the selected network before anything else runs."""

import logging
from typing import Any

from asdboot.core.errors import ConfigurationError
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step

logger = logging.getLogger(__name__)


class VerifyNetworkStep(Step):
    """Checks chain id and fork pinning of the connected node.

    Submits nothing. A mismatch is a configuration failure, which skips every
    step that depends on it.
    """

    name = "set-DRE"

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        network = context.network
        gateway = context.gateway

        chain_id = gateway.chain_id()
        if network.chain_id is not None and chain_id != network.chain_id:
            raise ConfigurationError(
                f"Network '{context.network_name}' expects chain id {network.chain_id}, "
                f"node reports {chain_id}"
            )

        block = gateway.block_number()
        if network.is_fork and network.forking.block_number is not None:
            if block < network.forking.block_number:
                raise ConfigurationError(
                    f"Node is at block {block}, below the fork pin {network.forking.block_number}"
                )

        logger.info("Connected to %s (chain id %s, block %s)", context.network_name, chain_id, block)
        return True

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        return []
