"""add-asd-as-entity - allow the ASD aToken to mint ASD up to a limit."""

import logging
from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.errors import ConfigurationError
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import read_reserve

logger = logging.getLogger(__name__)


class AddEntityStep(Step):
    name = "add-asd-as-entity"
    depends_on = ("initialize-asd-reserve",)

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (asd.lending_pool, asd.token)

    def _entity_address(self, handles: dict[str, ContractHandle], context: Any) -> str:
        reserve = read_reserve(context, handles[self.asd.lending_pool], handles[self.asd.token].address)
        if not reserve.initialized:
            raise ConfigurationError("ASD reserve is not initialized; no aToken to register as entity")
        return reserve.a_token

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        entity = self._entity_address(handles, context)
        return bool(context.read(handles[self.asd.token], "isEntity", entity))

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        entity = self._entity_address(handles, context)
        logger.info("Registering %s as ASD entity '%s'", entity, self.asd.entity_label)
        return [
            TransactionRequest(
                contract=handles[self.asd.token],
                function="addEntity",
                args=(entity, self.asd.entity_label, self.asd.entity_mint_limit),
                description=f"Add entity '{self.asd.entity_label}'",
            )
        ]
