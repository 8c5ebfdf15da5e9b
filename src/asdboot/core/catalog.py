"""Pipeline catalogue - the named bootstrap pipelines.

``antei-setup`` runs every step. Each other pipeline runs its own step plus
the steps it transitively depends on; those dependencies cost nothing when
their probes report them already applied.
"""

from asdboot.config.schema import AsdConfig
from asdboot.core.errors import PipelineNotFoundError
from asdboot.core.pipeline import Pipeline
from asdboot.steps.add_entity import AddEntityStep
from asdboot.steps.base import Step
from asdboot.steps.enable_borrowing import EnableBorrowingStep
from asdboot.steps.initialize_reserve import InitializeReserveStep
from asdboot.steps.set_addresses import SetAddressesStep
from asdboot.steps.set_oracle import SetOracleStep
from asdboot.steps.upgrade_pool import UpgradePoolStep
from asdboot.steps.upgrade_stk_aave import UpgradeStkAaveStep
from asdboot.steps.verify_network import VerifyNetworkStep

FULL_SETUP = "antei-setup"

PIPELINE_DESCRIPTIONS = {
    "set-DRE": "Verify the node matches the selected network",
    FULL_SETUP: "Run the complete ASD bootstrap",
    "initialize-asd-reserve": "Initialize the ASD reserve in the lending pool",
    "set-asd-oracle": "Set the ASD price source in the protocol oracle",
    "enable-asd-borrowing": "Enable borrowing on the ASD reserve",
    "add-asd-as-entity": "Register the ASD aToken as a minting entity",
    "set-asd-addresses": "Wire the ASD aToken and variable debt token",
    "upgrade-pool": "Upgrade the lending pool implementation",
    "upgrade-stkAave": "Upgrade the stkAave implementation",
}


class PipelineBuilder:
    """Builds named pipelines from the ASD configuration."""

    def __init__(self, asd: AsdConfig | None = None):
        self.asd = asd or AsdConfig()

    def available(self) -> list[str]:
        return list(PIPELINE_DESCRIPTIONS.keys())

    def all_steps(self) -> list[Step]:
        """Every bootstrap step, in declaration order."""
        return [
            VerifyNetworkStep(),
            InitializeReserveStep(self.asd),
            SetOracleStep(self.asd),
            UpgradePoolStep(self.asd),
            EnableBorrowingStep(self.asd),
            AddEntityStep(self.asd),
            SetAddressesStep(self.asd),
            UpgradeStkAaveStep(self.asd),
        ]

    def build(self, name: str) -> Pipeline:
        """Build a pipeline by name.

        Raises:
            PipelineNotFoundError: If the name is not a known pipeline
        """
        if name not in PIPELINE_DESCRIPTIONS:
            raise PipelineNotFoundError(name, self.available())

        steps = self.all_steps()
        if name == FULL_SETUP:
            return Pipeline(name, steps)

        by_name = {step.name: step for step in steps}
        wanted = set()
        pending = [name]
        while pending:
            current = pending.pop()
            if current in wanted:
                continue
            wanted.add(current)
            pending.extend(by_name[current].depends_on)

        return Pipeline(name, [step for step in steps if step.name in wanted])
