"""enable-asd-borrowing - turn on variable-rate borrowing of ASD."""

from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import (
    BORROWING_ENABLED_BIT,
    STABLE_BORROWING_ENABLED_BIT,
    read_reserve,
)


class EnableBorrowingStep(Step):
    """Calls ``LendingPoolConfigurator.enableBorrowingOnReserve``.

    Needs the reserve listed, a price source, and the upgraded pool.
    """

    name = "enable-asd-borrowing"
    depends_on = ("initialize-asd-reserve", "set-asd-oracle", "upgrade-pool")

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (asd.lending_pool, asd.configurator, asd.token)

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        reserve = read_reserve(context, handles[self.asd.lending_pool], handles[self.asd.token].address)
        if not reserve.flag(BORROWING_ENABLED_BIT):
            return False
        # Stable borrowing is only switched on, never off, by this step
        if self.asd.stable_borrow_rate_enabled:
            return reserve.flag(STABLE_BORROWING_ENABLED_BIT)
        return True

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        return [
            TransactionRequest(
                contract=handles[self.asd.configurator],
                function="enableBorrowingOnReserve",
                args=(handles[self.asd.token].address, self.asd.stable_borrow_rate_enabled),
                description="Enable ASD borrowing",
            )
        ]
