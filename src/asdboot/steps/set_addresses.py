"""set-asd-addresses - wire the ASD aToken and variable debt token to each other."""

from typing import Any

from asdboot.config.schema import AsdConfig
from asdboot.core.models import ContractHandle, TransactionRequest
from asdboot.steps.base import Step
from asdboot.steps.chain_reads import read_reserve, same_address


class SetAddressesStep(Step):
    """Sets ``aToken.setVariableDebtToken`` and ``variableDebtToken.setAToken``.

    The reserve tokens are proxies created by reserve initialization, so their
    addresses come from the pool and the ABIs from the implementation
    artifacts. Only links that are missing are submitted.
    """

    name = "set-asd-addresses"
    depends_on = ("initialize-asd-reserve",)

    def __init__(self, asd: AsdConfig):
        self.asd = asd
        self.contracts = (asd.lending_pool, asd.token, asd.a_token_impl, asd.variable_debt_token_impl)

    def _tokens(self, handles: dict[str, ContractHandle], context: Any) -> tuple[ContractHandle, ContractHandle]:
        reserve = read_reserve(context, handles[self.asd.lending_pool], handles[self.asd.token].address)
        a_token = handles[self.asd.a_token_impl].at(reserve.a_token)
        debt_token = handles[self.asd.variable_debt_token_impl].at(reserve.variable_debt_token)
        return a_token, debt_token

    def _missing(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        a_token, debt_token = self._tokens(handles, context)
        missing = []
        if not same_address(context.read(a_token, "getVariableDebtToken"), debt_token.address):
            missing.append(
                TransactionRequest(
                    contract=a_token,
                    function="setVariableDebtToken",
                    args=(debt_token.address,),
                    description="Set variable debt token on aASD",
                )
            )
        if not same_address(context.read(debt_token, "getAToken"), a_token.address):
            missing.append(
                TransactionRequest(
                    contract=debt_token,
                    function="setAToken",
                    args=(a_token.address,),
                    description="Set aToken on variableDebtASD",
                )
            )
        return missing

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        return not self._missing(handles, context)

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        return self._missing(handles, context)
