"""Project configuration loader.

The project file (asdboot.yaml) defines:
- Networks (RPC endpoints, fork pinning, confirmation/timeout settings)
- Named accounts (signer selection)
- Artifact and deployment paths
- ASD bootstrap parameters
"""

import os
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateError
from pydantic import ValidationError

from asdboot.config.loader import ConfigLoader
from asdboot.config.schema import NetworkConfig, ProjectConfig
from asdboot.core.errors import ConfigurationError, UnknownNetworkError

CONFIG_FILENAME = "asdboot.yaml"

# Mainnet fork used for local testing.
FORK_BLOCK_NUMBER = 14781440

DEFAULT_CONFIG = f"""
default_network: hardhat

networks:
  hardhat:
    url: "{{{{ env_var('HARDHAT_RPC_URL', 'http://127.0.0.1:8545') }}}}"
    chain_id: 31337
    impersonate: true
    forking:
      url: "https://eth-mainnet.alchemyapi.io/v2/{{{{ env_var('ALCHEMY_KEY', '') }}}}"
      block_number: {FORK_BLOCK_NUMBER}
  localhost:
    url: "http://127.0.0.1:8545"
    chain_id: 31337
    impersonate: true
    forking:
      url: "https://eth-mainnet.alchemyapi.io/v2/{{{{ env_var('ALCHEMY_KEY', '') }}}}"
      block_number: {FORK_BLOCK_NUMBER}

named_accounts:
  deployer: 0

paths:
  artifacts: ./artifacts
  deployments: ./deployments
"""


class ProjectConfigLoader:
    """Loads, renders and validates asdboot.yaml.

    The file can be located in:
    1. Explicit path via ASDBOOT_CONFIG env var
    2. Project root: ./asdboot.yaml
    3. User home: ~/.asdboot/asdboot.yaml

    When none exists the builtin defaults are used (hardhat and localhost,
    both forking mainnet at block 14781440).
    """

    def __init__(self, project_root: Path, runtime_vars: dict[str, str] | None = None):
        self.project_root = Path(project_root)
        self.runtime_vars = runtime_vars or {}
        self._config_cache: ProjectConfig | None = None

    def load(self) -> ProjectConfig:
        """Load the project configuration.

        Raises:
            ConfigurationError: If the file cannot be parsed, rendered or validated
        """
        if self._config_cache is not None:
            return self._config_cache

        config_path = self.find_config_file()
        if config_path is None:
            raw = yaml.safe_load(DEFAULT_CONFIG)
            source = "builtin defaults"
        else:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
            source = str(config_path)

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{source}: top level must be a mapping")

        try:
            rendered = ConfigLoader(runtime_vars=self.runtime_vars).render_dict(raw)
        except KeyError as e:
            raise ConfigurationError(f"{source}: {e.args[0]}") from e
        except TemplateError as e:
            raise ConfigurationError(f"{source}: template error: {e}") from e

        try:
            self._config_cache = ProjectConfig(**rendered)
        except ValidationError as e:
            raise ConfigurationError(f"{source}: invalid configuration\n{e}") from e

        return self._config_cache

    def find_config_file(self) -> Path | None:
        """Find asdboot.yaml following the search order."""
        env_path = os.environ.get("ASDBOOT_CONFIG")
        if env_path:
            env_path = Path(env_path)
            if env_path.exists():
                return env_path
            raise ConfigurationError(f"ASDBOOT_CONFIG points to a missing file: {env_path}")

        project_config = self.project_root / CONFIG_FILENAME
        if project_config.exists():
            return project_config

        home_config = Path.home() / ".asdboot" / CONFIG_FILENAME
        if home_config.exists():
            return home_config

        return None

    def resolve_network(self, network: str | None = None) -> tuple[str, NetworkConfig]:
        """Resolve a network by name (default: ``default_network``).

        Raises:
            UnknownNetworkError: If the network is not configured
        """
        config = self.load()
        name = network or config.default_network
        if name not in config.networks:
            raise UnknownNetworkError(name, sorted(config.networks.keys()))
        return name, config.networks[name]

    def describe(self) -> dict[str, Any]:
        """Summary used by ``asdboot debug``."""
        config = self.load()
        path = self.find_config_file()
        return {
            "source": str(path) if path else "builtin defaults",
            "default_network": config.default_network,
            "networks": sorted(config.networks.keys()),
            "named_accounts": dict(config.named_accounts),
        }
