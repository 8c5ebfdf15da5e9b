"""set-asd-oracle - register the ASD price source in the protocol oracle."""

from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import same_address


class SetOracleStep(Step):
    name = "set-asd-oracle"
    depends_on = ("set-DRE",)

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (asd.aave_oracle, asd.token, asd.oracle_source)

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        current = context.read(handles[self.asd.aave_oracle], "getSourceOfAsset", handles[self.asd.token].address)
        return same_address(current, handles[self.asd.oracle_source].address)

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        return [
            TransactionRequest(
                contract=handles[self.asd.aave_oracle],
                function="setAssetSources",
                args=([handles[self.asd.token].address], [handles[self.asd.oracle_source].address]),
                description="Set ASD price source",
            )
        ]
