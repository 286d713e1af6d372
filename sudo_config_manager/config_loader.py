"""Library settings loading from the bundled local-config.yaml."""

import os
from pathlib import Path
from typing import Any, Dict, Optional
from importlib.resources import files

import yaml

from .errors import InvalidConfigError


class ConfigLoader:
    """
    Handles two-tier configuration: library settings + platform config.

    Tier 1 is local-config.yaml, bundled with the package. It holds the
    library's own infrastructure settings (where the platform config lives,
    S3 timeouts and fetch parallelism).

    Tier 2 is the platform config document (sudoplatformconfig.json). This
    class only resolves its location; parsing is done by ConfigStore.
    """

    DEFAULT_PLATFORM_CONFIG_FILENAME = "sudoplatformconfig.json"
    DEFAULT_ENDPOINT_TEMPLATE = "https://{bucket}.s3.{region}.amazonaws.com"
    DEFAULT_TIMEOUT_SECONDS = 10.0
    DEFAULT_MAX_FETCH_WORKERS = 4

    def __init__(self, local_config_path: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            local_config_path: Optional path to an alternative
                local-config.yaml. Defaults to the file bundled in the
                sudo_config_manager package.

        Raises:
            InvalidConfigError: If the settings file cannot be read or is
                not a YAML mapping
        """
        if local_config_path is None:
            config_file = files('sudo_config_manager').joinpath('local-config.yaml')
            self.local_config_path = str(config_file)
            with config_file.open('r') as f:
                self.local_config = self._parse(f)
        else:
            self.local_config_path = str(local_config_path)
            try:
                with open(local_config_path) as f:
                    self.local_config = self._parse(f)
            except OSError as e:
                raise InvalidConfigError(f"Cannot read {self.local_config_path}: {e}") from e

    def _parse(self, stream) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(stream)
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"Invalid YAML in {self.local_config_path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InvalidConfigError(
                f"Expected a mapping in {self.local_config_path}, got {type(data).__name__}"
            )
        return data

    def get_local_config(self) -> Dict[str, Any]:
        """Get library configuration (tier 1)."""
        return self.local_config

    def get_platform_config_path(self) -> Path:
        """
        Resolve the platform config document path.

        Relative directories are resolved against the current working
        directory, matching how an application ships its config next to
        itself.
        """
        directory = self.local_config.get('platform_config_directory') or '.'
        filename = (self.local_config.get('platform_config_filename')
                    or self.DEFAULT_PLATFORM_CONFIG_FILENAME)
        return Path(os.path.expanduser(str(directory))) / filename

    def _s3_config(self) -> Dict[str, Any]:
        s3 = self.local_config.get('s3') or {}
        if not isinstance(s3, dict):
            raise InvalidConfigError("'s3' section of local config must be a mapping")
        return s3

    def get_endpoint_template(self) -> str:
        """Get the S3 endpoint URL template ({bucket} and {region} placeholders)."""
        return self._s3_config().get('endpoint_template', self.DEFAULT_ENDPOINT_TEMPLATE)

    def get_timeout_seconds(self) -> float:
        """Get the per-request timeout for S3 calls."""
        value = self._s3_config().get('timeout_seconds', self.DEFAULT_TIMEOUT_SECONDS)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise InvalidConfigError(f"s3.timeout_seconds must be a positive number, got {value!r}")
        return float(value)

    def get_max_fetch_workers(self) -> int:
        """
        Get the number of parallel fetches during validation.

        Returns:
            Worker count, 1 meaning sequential fetches
        """
        value = self._s3_config().get('max_fetch_workers', self.DEFAULT_MAX_FETCH_WORKERS)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidConfigError(f"s3.max_fetch_workers must be an integer >= 1, got {value!r}")
        return value
