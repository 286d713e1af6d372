"""
sudo-config-manager: platform configuration access for Sudo Platform SDKs

This library provides:
- Loading of the platform config document (sudoplatformconfig.json)
- Namespaced configuration lookup for calling SDKs
- Validation of service config versions against the compatibility info
  published in the service info bucket

Example:
    from sudo_config_manager import DefaultSudoConfigManager

    manager = DefaultSudoConfigManager()
    identity = manager.get_config_set("identityService")
    result = manager.validate_config()
"""

from .api import DefaultSudoConfigManager, SudoConfigManager
from .errors import (
    ConfigLoadError,
    FailedError,
    InvalidConfigError,
    MalformedServiceInfoError,
    SudoConfigManagerError,
    TransportError,
)
from .models import ServiceCompatibilityInfo, ValidationResult
from .s3_client import DefaultS3Client, S3Client

__version__ = "0.1.0"
__all__ = [
    "SudoConfigManager",
    "DefaultSudoConfigManager",
    "ServiceCompatibilityInfo",
    "ValidationResult",
    "S3Client",
    "DefaultS3Client",
    "SudoConfigManagerError",
    "FailedError",
    "InvalidConfigError",
    "ConfigLoadError",
    "TransportError",
    "MalformedServiceInfoError",
]
