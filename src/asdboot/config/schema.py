"""Project configuration schema - Pydantic models for asdboot.yaml.

asdboot.yaml holds everything a run needs besides the chain itself: network
endpoints (with optional fork pinning), named accounts, artifact paths,
execution limits and the parameters of the ASD bootstrap.
"""

from pathlib import Path
from typing import Any, Optional, Union
from pydantic import BaseModel, Field


# =============================================================================
# Networks
# =============================================================================


class ForkConfig(BaseModel):
    """Fork pinning - the node mirrors a real chain at a historical block."""

    url: str = Field(..., description="Upstream archive node the fork reads from")
    block_number: Optional[int] = Field(None, description="Historical block to pin state to")
    enabled: bool = Field(True, description="Whether the fork is active")


class NetworkConfig(BaseModel):
    """A named chain endpoint."""

    url: str = Field(..., description="JSON-RPC endpoint")
    chain_id: Optional[int] = Field(None, description="Expected chain id (checked by set-DRE)")
    forking: Optional[ForkConfig] = Field(None, description="Fork settings for local test networks")
    confirmations: int = Field(1, ge=0, description="Confirmations to wait for per transaction")
    tx_timeout_seconds: float = Field(120.0, gt=0, description="Per-transaction confirmation timeout")
    poll_interval_seconds: float = Field(0.5, gt=0, description="Receipt polling interval")
    reset_fork: bool = Field(False, description="Reset the fork to the pinned block before the run")
    impersonate: bool = Field(False, description="Impersonate literal signer addresses (fork only)")
    addresses: dict[str, str] = Field(
        default_factory=dict,
        description="Logical contract name -> address overrides for this network",
    )

    @property
    def is_fork(self) -> bool:
        return self.forking is not None and self.forking.enabled


# =============================================================================
# Project layout and execution
# =============================================================================


class PathsConfig(BaseModel):
    """Where compiled artifacts and deployment records live."""

    artifacts: str = Field("./artifacts", description="Compiled contract artifacts (ABI source)")
    deployments: str = Field("./deployments", description="Per-network deployment records")


class ExecutionConfig(BaseModel):
    """Scheduling limits for a run."""

    max_workers: int = Field(1, ge=1, description="Steps executed concurrently")


# =============================================================================
# ASD bootstrap parameters
# =============================================================================


class AsdConfig(BaseModel):
    """Parameters of the ASD bootstrap steps.

    Values ending in ``_impl``/``strategy``/``oracle_source`` and the contract
    names below are logical names resolved through the artifact registry.
    """

    # Existing protocol contracts
    lending_pool: str = "LendingPool"
    configurator: str = "LendingPoolConfigurator"
    addresses_provider: str = "LendingPoolAddressesProvider"
    aave_oracle: str = "AaveOracle"
    stk_aave: str = "StakedAave"

    # New ASD contracts
    token: str = "AnteiStableDollar"
    a_token_impl: str = "AnteiAToken"
    stable_debt_token_impl: str = "AnteiStableDebtToken"
    variable_debt_token_impl: str = "AnteiVariableDebtToken"
    interest_rate_strategy: str = "AnteiInterestRateStrategy"
    oracle_source: str = "AnteiOracle"
    pool_impl: str = "AnteiLendingPool"
    stk_aave_impl: str = "StakedTokenV2Rev4"

    # Reserve initialization
    decimals: int = 18
    treasury: str = "0x464C71f6c2F760DdA6093dCB91C24c39e5d6e18c"
    incentives_controller: str = "0xd784927Ff2f95ba542BfC824c8a8a98F3495f6b5"
    underlying_asset_name: str = "Antei Stable Dollar"
    a_token_name: str = "Antei ASD"
    a_token_symbol: str = "aASD"
    variable_debt_token_name: str = "Antei Variable Debt ASD"
    variable_debt_token_symbol: str = "variableDebtASD"
    stable_debt_token_name: str = "Antei Stable Debt ASD"
    stable_debt_token_symbol: str = "stableDebtASD"
    stable_borrow_rate_enabled: bool = False

    # Entity listing
    entity_label: str = "Aave V2 Mainnet Pool"
    entity_mint_limit: int = Field(100_000_000 * 10**18, ge=0)

    # stkAave upgrade
    stk_aave_init_data: str = Field("0x", description="Calldata for upgradeToAndCall")


# =============================================================================
# Root
# =============================================================================


class ProjectConfig(BaseModel):
    """Root of asdboot.yaml."""

    default_network: str = Field("hardhat", description="Network used when --network is omitted")
    networks: dict[str, NetworkConfig] = Field(default_factory=dict)
    named_accounts: dict[str, Union[int, str]] = Field(
        default_factory=lambda: {"deployer": 0},
        description="Signer name -> account index on the node or literal address",
    )
    paths: PathsConfig = Field(default_factory=PathsConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    addresses: dict[str, str] = Field(
        default_factory=dict,
        description="Logical contract name -> address overrides shared by all networks",
    )
    asd: AsdConfig = Field(default_factory=AsdConfig)

    def registry_config(self, network_name: str, project_root: Any) -> dict[str, Any]:
        """Build the artifact registry configuration for a network."""
        root = Path(project_root)
        network = self.networks[network_name]
        return {
            "network": network_name,
            "deployments_dir": str(root / self.paths.deployments),
            "artifacts_dir": str(root / self.paths.artifacts),
            "addresses": {**self.addresses, **network.addresses},
        }
