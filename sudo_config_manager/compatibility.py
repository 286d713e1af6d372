"""Client config compatibility validation against published service info."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft4Validator, ValidationError

from .config_store import ConfigStore
from .errors import FailedError, MalformedServiceInfoError, SudoConfigManagerError
from .json_value import opt_int, opt_millis
from .models import ServiceCompatibilityInfo, ValidationResult, grace_from_millis
from .s3_client import S3Client

logger = logging.getLogger(__name__)

SERVICE_INFO_SUFFIX = ".json"
DEFAULT_CONFIG_VERSION = 1

# Draft 4 keeps "integer" strict: 2.0 is a number but not an integer.
SERVICE_INFO_DOCUMENT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "object",
    "minProperties": 1,
}

SERVICE_INFO_SCHEMA = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "object",
    "properties": {
        "minVersion": {"type": "integer"},
        "deprecated": {"type": "integer"},
    },
}

_document_validator = Draft4Validator(SERVICE_INFO_DOCUMENT_SCHEMA)
_service_info_validator = Draft4Validator(SERVICE_INFO_SCHEMA)


def parse_service_info(data: bytes) -> Tuple[str, Dict[str, Any]]:
    """
    Parse a service info document.

    The document holds a single top-level key, the service name, mapping to
    the service's compatibility info:

        {"sudoService": {"minVersion": 2, "deprecated": 1, "deprecationGrace": 1700000000000}}

    Args:
        data: Raw document bytes

    Returns:
        Tuple of (service name, service info object)

    Raises:
        MalformedServiceInfoError: If the document does not have that shape
    """
    try:
        document = json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedServiceInfoError(f"Not a JSON document: {e}") from e

    try:
        _document_validator.validate(document)
        service_name = next(iter(document))
        service_info = document[service_name]
        _service_info_validator.validate(service_info)
    except ValidationError as e:
        raise MalformedServiceInfoError(e.message) from e

    return service_name, service_info


class CompatibilityValidator:
    """
    Compares service config versions in the platform config against the
    service info documents published in the service info bucket.
    """

    def __init__(self, store: ConfigStore, s3_client: Optional[S3Client],
                 max_workers: int = 1, log: Optional[logging.Logger] = None):
        """
        Initialize compatibility validator.

        Args:
            store: Platform config store
            s3_client: Client for the service info bucket, or None when no
                bucket is configured (validation is then not applicable)
            max_workers: Parallel fetches of service info documents
            log: Optional logger
        """
        self.store = store
        self.s3_client = s3_client
        self.max_workers = max(1, max_workers)
        self._log = log or logger

    def validate(self) -> ValidationResult:
        """
        Validate the platform config against the deployed services.

        Returns:
            ValidationResult listing incompatible and deprecated services.
            Both lists are empty when no service info bucket is configured.

        Raises:
            TransportError: If the bucket cannot be listed or a document
                cannot be fetched
            FailedError: If the S3 client fails in any other way
        """
        self._log.info("Validating client configuration against backend.")

        result = ValidationResult()
        if self.s3_client is None:
            self._log.info("No service info bucket configured, skipping validation")
            return result

        try:
            keys = self.s3_client.list_objects()

            # Only fetch service info for services present in the client config.
            to_fetch = [key for key in keys if self._is_configured_service_key(key)]
            self._log.debug(
                f"Fetching {len(to_fetch)} of {len(keys)} service info documents",
                extra={'keys': to_fetch},
            )
            documents = self._fetch_all(to_fetch)
        except SudoConfigManagerError:
            raise
        except Exception as e:
            raise FailedError(f"Failed to read service info bucket {self.s3_client.bucket}: {e}") from e

        for key, data in zip(to_fetch, documents):
            info = self._compatibility_info(key, data)
            if info is None:
                continue

            # Below the minimum supported version: the client is incompatible.
            if info.config_version < (info.min_supported_version or 0):
                result.incompatible.append(info)

            # At or below the deprecated version: incompatible after the grace.
            if info.config_version <= (info.deprecated_version or 0):
                result.deprecated.append(info)

        self._log.info(
            "Client configuration validated",
            extra={
                'incompatible': [info.name for info in result.incompatible],
                'deprecated': [info.name for info in result.deprecated],
            },
        )
        return result

    def _is_configured_service_key(self, key: str) -> bool:
        if not key.endswith(SERVICE_INFO_SUFFIX):
            return False
        return self.store.has_namespace(key[:-len(SERVICE_INFO_SUFFIX)])

    def _fetch_all(self, keys: List[str]) -> List[bytes]:
        """Fetch documents, preserving the order of keys."""
        if self.max_workers == 1 or len(keys) <= 1:
            return [self.s3_client.get_object(key) for key in keys]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(keys))) as pool:
            futures = [pool.submit(self.s3_client.get_object, key) for key in keys]
            return [f.result() for f in futures]

    def _compatibility_info(self, key: str, data: bytes) -> Optional[ServiceCompatibilityInfo]:
        try:
            service_name, service_info = parse_service_info(data)
        except MalformedServiceInfoError as e:
            self._log.warning(f"Skipping malformed service info document {key}: {e}")
            return None

        service_config = self.store.get_raw(service_name)
        if service_config is None:
            self._log.warning(
                f"Skipping service info document {key}: "
                f"service '{service_name}' is not configured as an object"
            )
            return None

        current_version = opt_int(service_config, 'version')
        if current_version is None:
            current_version = DEFAULT_CONFIG_VERSION

        # deprecationGrace is optional; an unreadable value means no grace.
        try:
            deprecation_grace = grace_from_millis(opt_millis(service_info, 'deprecationGrace'))
        except (OverflowError, OSError, ValueError) as e:
            self._log.warning(f"Ignoring deprecationGrace in {key}: {e}")
            deprecation_grace = None

        return ServiceCompatibilityInfo(
            name=service_name,
            config_version=current_version,
            min_supported_version=opt_int(service_info, 'minVersion'),
            deprecated_version=opt_int(service_info, 'deprecated'),
            deprecation_grace=deprecation_grace,
        )
