"""initialize-asd-reserve - list ASD as a reserve of the lending pool."""

import logging
from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import read_reserve

logger = logging.getLogger(__name__)


class InitializeReserveStep(Step):
    """Calls ``LendingPoolConfigurator.batchInitReserve`` with the ASD token implementations.

    Already applied when the pool reports a non-zero aToken for ASD.
    """

    name = "initialize-asd-reserve"
    depends_on = ("set-DRE",)

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (
            asd.lending_pool,
            asd.configurator,
            asd.token,
            asd.a_token_impl,
            asd.stable_debt_token_impl,
            asd.variable_debt_token_impl,
            asd.interest_rate_strategy,
        )

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        asset = handles[self.asd.token].address
        reserve = read_reserve(context, handles[self.asd.lending_pool], asset)
        return reserve.initialized

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        asd = self.asd
        init_input = (
            handles[asd.a_token_impl].address,
            handles[asd.stable_debt_token_impl].address,
            handles[asd.variable_debt_token_impl].address,
            asd.decimals,
            handles[asd.interest_rate_strategy].address,
            handles[asd.token].address,
            asd.treasury,
            asd.incentives_controller,
            asd.underlying_asset_name,
            asd.a_token_name,
            asd.a_token_symbol,
            asd.variable_debt_token_name,
            asd.variable_debt_token_symbol,
            asd.stable_debt_token_name,
            asd.stable_debt_token_symbol,
            b"",
        )
        logger.debug("batchInitReserve input: %s", init_input)
        return [
            TransactionRequest(
                contract=handles[asd.configurator],
                function="batchInitReserve",
                args=([init_input],),
                description=f"Initialize {asd.a_token_symbol} reserve",
            )
        ]
