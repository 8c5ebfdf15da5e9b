"""Configuration rendering with Jinja2 templating support.

Supports template functions in asdboot.yaml:
- {{ env_var('KEY') }} - Read from environment variable
- {{ var('KEY') }} - Read from runtime variables (--vars)
"""

import os
from typing import Any
from jinja2 import Environment, StrictUndefined


class ConfigLoader:
    """Renders configuration values with Jinja2."""

    def __init__(self, runtime_vars: dict[str, str] | None = None):
        """Initialize config loader.

        Args:
            runtime_vars: Variables passed via CLI (--vars key=value)
        """
        self.runtime_vars = runtime_vars or {}

        self.jinja_env = Environment(
            undefined=StrictUndefined,  # Error on undefined variables
            autoescape=False,  # Don't escape for YAML
        )

        self.jinja_env.globals['env_var'] = self._env_var
        self.jinja_env.globals['var'] = self._var

    def render_string(self, template_string: str) -> str:
        """Render a template string with Jinja2.

        Example:
            >>> loader = ConfigLoader(runtime_vars={"block": "14781440"})
            >>> loader.render_string("{{ var('block') }}")
            '14781440'
        """
        if "{{" not in template_string and "{%" not in template_string:
            return template_string
        template = self.jinja_env.from_string(template_string)
        return template.render()

    def render_dict(self, config_dict: dict) -> dict:
        """Recursively render all string values in a dictionary."""
        result = {}
        for key, value in config_dict.items():
            result[key] = self._render_value(value)
        return result

    def _render_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.render_string(value)
        if isinstance(value, dict):
            return self.render_dict(value)
        if isinstance(value, list):
            return [self._render_value(item) for item in value]
        return value

    def _env_var(self, key: str, default: str | None = None) -> str:
        """Template function: Read from environment variable.

        Usage in YAML:
            url: "https://eth-mainnet.alchemyapi.io/v2/{{ env_var('ALCHEMY_KEY') }}"
            url: "{{ env_var('RPC_URL', 'http://127.0.0.1:8545') }}"

        Raises:
            KeyError: If variable not set and no default provided
        """
        value = os.environ.get(key)
        if value is None:
            if default is not None:
                return default
            raise KeyError(f"Environment variable '{key}' not set and no default provided")
        return value

    def _var(self, key: str, default: str | None = None) -> str:
        """Template function: Read from runtime variables.

        Runtime variables are passed via CLI:
            asdboot antei-setup --vars fork_block=14781440

        Raises:
            KeyError: If variable not set and no default provided
        """
        value = self.runtime_vars.get(key)
        if value is None:
            if default is not None:
                return default
            raise KeyError(
                f"Runtime variable '{key}' not set and no default provided. "
                f"Pass it with: --vars {key}=<value>"
            )
        return value
