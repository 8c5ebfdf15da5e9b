"""Plugin registry for discovering and loading asdboot adapters via entry_points."""

from importlib.metadata import entry_points
from typing import Any

from asdboot.core.errors import ConfigurationError

GATEWAYS = "asdboot.gateways"
ARTIFACT_REGISTRIES = "asdboot.artifact_registries"

PLUGIN_GROUPS = [GATEWAYS, ARTIFACT_REGISTRIES]


class MissingAdapterError(ConfigurationError):
    """Raised when a required adapter is not installed."""

    def __init__(self, group: str, name: str, available: list[str]):
        self.group = group
        self.name = name
        super().__init__(
            f"No adapter '{name}' found in group '{group}'. "
            f"Installed: {available or 'none'}"
        )


class PluginRegistry:
    """Registry for discovering and instantiating asdboot plugins.

    Adapters declare themselves in pyproject.toml:

    [project.entry-points."asdboot.gateways"]
    web3 = "asdboot.builtins.web3_gateway:Web3Gateway"

    [project.entry-points."asdboot.artifact_registries"]
    deployments = "asdboot.builtins.deployments_registry:DeploymentsRegistry"
    """

    def __init__(self):
        self._cache: dict[tuple[str, str], Any] = {}

    def get(self, group: str, name: str) -> Any:
        """Load and instantiate a plugin by group and name.

        Raises:
            MissingAdapterError: If plugin not found

        Examples:
            >>> registry = PluginRegistry()
            >>> gateway = registry.get("asdboot.gateways", "web3")
        """
        cache_key = (group, name)
        if cache_key in self._cache:
            return self._cache[cache_key]

        plugin_ep = None
        for ep in entry_points(group=group):
            if ep.name == name:
                plugin_ep = ep
                break

        if plugin_ep is None:
            raise MissingAdapterError(group, name, self.list_group(group))

        plugin_class = plugin_ep.load()
        plugin_instance = plugin_class()

        self._cache[cache_key] = plugin_instance
        return plugin_instance

    def list_group(self, group: str) -> list[str]:
        """List all plugins in a specific group."""
        return sorted(ep.name for ep in entry_points(group=group))

    def list_installed(self) -> dict[str, list[str]]:
        """List all installed plugins by group."""
        result: dict[str, list[str]] = {}
        for group in PLUGIN_GROUPS:
            names = self.list_group(group)
            if names:
                result[group] = names
        return result

    def clear_cache(self):
        """Clear the plugin instance cache."""
        self._cache.clear()
