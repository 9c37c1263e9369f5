"""
Parsers for operator supplied port and environment variable overrides.
"""
from typing import Dict, Iterable, List
from dotenv import dotenv_values
from ..MODELS.run_config import PortOverride
from ..errors import ConfigurationError


class OverrideParser:
    """
    Parser for `--port-override`, `--env-var-override` and `--env-file` values.
    """
    @staticmethod
    def parse_port_override(value: str) -> PortOverride:
        """
        Parses a `containerPort:hostPort` pair.

        Args:
            value (str): The raw flag value.

        Returns:
            PortOverride: The parsed mapping.
        """
        parts = value.split(':')
        if len(parts) != 2:
            raise ConfigurationError(f"port override {value!r} must be in the form containerPort:hostPort")
        container_port, host_port = (p.strip() for p in parts)
        for port in (container_port, host_port):
            if not port.isdigit() or not 0 < int(port) < 65536:
                raise ConfigurationError(f"port override {value!r}: {port!r} is not a valid port")
        return PortOverride(container_port=container_port, host_port=host_port)

    @staticmethod
    def parse_port_overrides(values: Iterable[str]) -> List[PortOverride]:
        return [OverrideParser.parse_port_override(v) for v in values]

    @staticmethod
    def parse_env_override(value: str) -> Dict[str, str]:
        """
        Parses a `[container:]KEY=VALUE` pair.
        The container prefix stays part of the returned key.
        """
        if '=' not in value:
            raise ConfigurationError(f"env var override {value!r} must be in the form [container:]KEY=VALUE")
        key, val = value.split('=', 1)
        key = key.strip()
        name = key.split(':', 1)[-1]
        if not name:
            raise ConfigurationError(f"env var override {value!r} has an empty variable name")
        return {key: val}

    @staticmethod
    def parse_env_overrides(values: Iterable[str]) -> Dict[str, str]:
        overrides = {}
        for v in values:
            overrides.update(OverrideParser.parse_env_override(v))
        return overrides

    @staticmethod
    def parse_env_file(path: str) -> Dict[str, str]:
        """
        Reads overrides from a .env file.
        Keys may carry a `container:` prefix like flag overrides.
        """
        values = dotenv_values(path)
        # A bare `KEY` line without `=` has no value to override with
        return {k: v for k, v in values.items() if v is not None}
