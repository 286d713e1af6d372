"""Result types returned by config validation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def grace_from_millis(millis: Optional[float]) -> Optional[datetime]:
    """Convert an epoch-milliseconds timestamp to an aware UTC datetime.

    -1 is the "no grace period" sentinel used by service info documents.
    """
    if millis is None or millis == -1:
        return None
    return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)


def grace_to_millis(grace: Optional[datetime]) -> Optional[int]:
    if grace is None:
        return None
    return int(grace.timestamp() * 1000)


@dataclass(frozen=True)
class ServiceCompatibilityInfo:
    """
    Compatibility information for one service.

    Attributes:
        name: Service name. Matches a namespace in sudoplatformconfig.json.
        config_version: Version of the service config in
            sudoplatformconfig.json. Defaults to 1 if not present.
        min_supported_version: Minimum service config version currently
            supported by the backend.
        deprecated_version: Any service config version less than or equal
            to this version is deprecated and may stop being supported
            after the deprecation grace.
        deprecation_grace: After this time deprecated service config
            versions are no longer compatible with the backend.
    """

    name: str
    config_version: int
    min_supported_version: Optional[int] = None
    deprecated_version: Optional[int] = None
    deprecation_grace: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "config_version": self.config_version,
            "min_supported_version": self.min_supported_version,
            "deprecated_version": self.deprecated_version,
            "deprecation_grace": grace_to_millis(self.deprecation_grace),
        }


@dataclass
class ValidationResult:
    """
    Outcome of validating the client config against deployed services.

    Attributes:
        incompatible: Services the client must be upgraded for before use.
        deprecated: Services that will become incompatible after their
            deprecation grace. Users should be warned ahead of that time.
    """

    incompatible: List[ServiceCompatibilityInfo] = field(default_factory=list)
    deprecated: List[ServiceCompatibilityInfo] = field(default_factory=list)

    @property
    def is_compatible(self) -> bool:
        """True when no service is incompatible (deprecations are allowed)."""
        return not self.incompatible

    def to_dict(self) -> Dict[str, Any]:
        return {
            "incompatible": [info.to_dict() for info in self.incompatible],
            "deprecated": [info.to_dict() for info in self.deprecated],
        }
