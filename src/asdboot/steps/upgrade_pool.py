"""upgrade-pool - point the lending pool proxy at the ASD-aware implementation."""

import logging
from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import proxy_implementation, same_address

logger = logging.getLogger(__name__)


class UpgradePoolStep(Step):
    """Calls ``LendingPoolAddressesProvider.setLendingPoolImpl``.

    Already applied when the pool proxy's EIP-1967 slot holds the new
    implementation.
    """

    name = "upgrade-pool"
    depends_on = ("set-DRE",)

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (asd.addresses_provider, asd.pool_impl)

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        pool_proxy = context.read(handles[self.asd.addresses_provider], "getLendingPool")
        current = proxy_implementation(context, pool_proxy)
        logger.debug("Lending pool proxy %s implementation: %s", pool_proxy, current)
        return same_address(current, handles[self.asd.pool_impl].address)

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        return [
            TransactionRequest(
                contract=handles[self.asd.addresses_provider],
                function="setLendingPoolImpl",
                args=(handles[self.asd.pool_impl].address,),
                description="Upgrade lending pool implementation",
            )
        ]
