"""upgrade-stkAave - upgrade the staking module proxy to the ASD-discount implementation."""

from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import proxy_implementation, same_address


class UpgradeStkAaveStep(Step):
    """Calls ``upgradeToAndCall`` on the stkAave proxy.

    The signer must be the proxy admin; on forks this is usually an
    impersonated governance executor.
    """

    name = "upgrade-stkAave"
    depends_on = ("set-DRE",)

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (asd.stk_aave, asd.stk_aave_impl)

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        current = proxy_implementation(context, handles[self.asd.stk_aave].address)
        return same_address(current, handles[self.asd.stk_aave_impl].address)

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        init_data = bytes.fromhex(self.asd.stk_aave_init_data.removeprefix("0x"))
        return [
            TransactionRequest(
                contract=handles[self.asd.stk_aave],
                function="upgradeToAndCall",
                args=(handles[self.asd.stk_aave_impl].address, init_data),
                description="Upgrade stkAave implementation",
            )
        ]
