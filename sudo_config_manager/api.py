"""
Public API for sudo-config-manager

This is the "front door" - the entry point other SDKs use to read their
platform configuration and check it against the deployed backend.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

from .compatibility import CompatibilityValidator
from .config_loader import ConfigLoader
from .config_store import ConfigStore
from .json_value import opt_str
from .models import ValidationResult
from .s3_client import DefaultS3Client, S3Client

logger = logging.getLogger(__name__)

CONFIG_NAMESPACE_IDENTITY_SERVICE = "identityService"
CONFIG_REGION = "region"
CONFIG_SERVICE_INFO_BUCKET = "serviceInfoBucket"


class SudoConfigManager(ABC):
    """
    APIs common to all configuration manager implementations.

    A configuration manager locates the platform config file
    (sudoplatformconfig.json), parses it and returns the configuration set
    for a given namespace.
    """

    @abstractmethod
    def get_config_set(self, namespace: str) -> Optional[Dict[str, Any]]:
        """
        Return the configuration set under the specified namespace.

        Args:
            namespace: Configuration namespace

        Returns:
            Dict of configuration parameters, or None if the namespace does
            not exist
        """

    @abstractmethod
    def validate_config(self) -> ValidationResult:
        """
        Validate the client configuration against the deployed backend
        services.

        Returns:
            ValidationResult with incompatible and deprecated services

        Raises:
            TransportError: If the service info bucket cannot be reached
        """


class DefaultSudoConfigManager(SudoConfigManager):
    """
    Default SudoConfigManager implementation.

    Example:
        from sudo_config_manager import DefaultSudoConfigManager

        manager = DefaultSudoConfigManager()
        identity = manager.get_config_set("identityService")

        result = manager.validate_config()
        if not result.is_compatible:
            for info in result.incompatible:
                print(f"{info.name} needs config version {info.min_supported_version}")
    """

    def __init__(self, config_path=None, log: Optional[logging.Logger] = None,
                 s3_client: Optional[S3Client] = None,
                 local_config_path: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Initialize config manager.

        The platform config is loaded once, here. If it cannot be loaded the
        manager still constructs: lookups return None and validation has
        nothing to check.

        Args:
            config_path: Path to sudoplatformconfig.json. Defaults to the
                location set in the bundled local-config.yaml.
            log: Optional logger (defaults to this module's logger)
            s3_client: Optional client for the service info bucket. Used only
                when identityService has both region and serviceInfoBucket;
                if None, a DefaultS3Client is created from those settings.
            local_config_path: Optional alternative local-config.yaml
            timeout: Per-request S3 timeout in seconds, overriding
                local-config.yaml

        Raises:
            InvalidConfigError: If local-config.yaml is invalid
        """
        self._log = log or logger
        self._executor: Optional[ThreadPoolExecutor] = None

        self.config_loader = ConfigLoader(local_config_path)
        if config_path is None:
            config_path = self.config_loader.get_platform_config_path()
        self.config_path = config_path

        self.store = ConfigStore.from_path(config_path, log=self._log)
        self._owns_s3_client = False
        self.s3_client = self._resolve_s3_client(s3_client, timeout)

        self.validator = CompatibilityValidator(
            self.store,
            self.s3_client,
            max_workers=self.config_loader.get_max_fetch_workers(),
            log=self._log,
        )

    def _resolve_s3_client(self, s3_client: Optional[S3Client],
                           timeout: Optional[float]) -> Optional[S3Client]:
        """
        Pick the client for the service info bucket.

        Validation only applies when identityService names both a region
        and a service info bucket. Without them there is no client, even if
        one was injected.
        """
        identity_service_config = self.store.get_raw(CONFIG_NAMESPACE_IDENTITY_SERVICE)
        region = opt_str(identity_service_config, CONFIG_REGION)
        service_info_bucket = opt_str(identity_service_config, CONFIG_SERVICE_INFO_BUCKET)

        if region is None or service_info_bucket is None:
            self._log.debug("identityService has no region/serviceInfoBucket, validation disabled")
            return None

        if s3_client is not None:
            return s3_client

        self._owns_s3_client = True
        return DefaultS3Client(
            region,
            service_info_bucket,
            endpoint_template=self.config_loader.get_endpoint_template(),
            timeout=timeout if timeout is not None else self.config_loader.get_timeout_seconds(),
            log=self._log,
        )

    def get_config_set(self, namespace: str) -> Optional[Dict[str, Any]]:
        return self.store.get_config_set(namespace)

    def validate_config(self) -> ValidationResult:
        return self.validator.validate()

    def validate_config_async(self) -> "Future[ValidationResult]":
        """
        Run validate_config() in the background.

        Returns:
            Future resolving to the ValidationResult, or raising
            TransportError. Use future.result(timeout=...) to bound the wait.

        Example:
            future = manager.validate_config_async()
            result = future.result(timeout=30)
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="sudo-config-validate"
            )
        return self._executor.submit(self.validate_config)

    @property
    def validation_enabled(self) -> bool:
        """True when a service info bucket is available for validation."""
        return self.s3_client is not None

    def close(self) -> None:
        """
        Shut down the background validation thread and close the S3 client
        if this manager created it. Injected clients are left open.

        Safe to call multiple times or when validate_config_async() was
        never used.
        """
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._owns_s3_client:
            self.s3_client.close()
            self._owns_s3_client = False

    def __enter__(self) -> "DefaultSudoConfigManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
