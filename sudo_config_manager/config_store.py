"""Platform configuration document store with namespace lookup."""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigLoadError
from .json_value import opt_object

logger = logging.getLogger(__name__)


class ConfigStore:
    """
    Owns the parsed platform config document (sudoplatformconfig.json).

    The document is loaded once, at construction, and never mutated.
    Lookups return copies of the stored sub-objects.

    A document that cannot be loaded does not make construction fail: the
    error is logged and kept in `load_error`, and every lookup returns None.
    """

    def __init__(self, document: Optional[Mapping[str, Any]] = None,
                 load_error: Optional[ConfigLoadError] = None,
                 log: Optional[logging.Logger] = None):
        self._log = log or logger
        self._document: Dict[str, Any] = dict(document) if document is not None else {}
        self._load_error = load_error

    @classmethod
    def from_path(cls, path, log: Optional[logging.Logger] = None) -> "ConfigStore":
        """
        Load the platform config document from a file.

        Args:
            path: Path to sudoplatformconfig.json
            log: Optional logger (defaults to this module's logger)

        Returns:
            ConfigStore, possibly in the failed-load state
        """
        log = log or logger
        try:
            document = cls._read_document(Path(path))
        except ConfigLoadError as e:
            log.error(f"Failed to load platform config: {e}", extra={'path': str(path)})
            return cls(load_error=e, log=log)

        log.info("Loaded the platform config", extra={
            'path': str(path),
            'namespaces': list(document.keys()),
        })
        return cls(document, log=log)

    @classmethod
    def from_document(cls, document: Mapping[str, Any],
                      log: Optional[logging.Logger] = None) -> "ConfigStore":
        """Build a store from an already parsed document."""
        return cls(copy.deepcopy(dict(document)), log=log)

    @staticmethod
    def _read_document(path: Path) -> Dict[str, Any]:
        try:
            raw = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigLoadError(f"Cannot read {path}: {e}") from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigLoadError(f"Invalid JSON in {path}: {e}") from e

        if not isinstance(document, dict):
            raise ConfigLoadError(
                f"Expected a JSON object at the top level of {path}, got {type(document).__name__}"
            )
        return document

    @property
    def loaded(self) -> bool:
        return self._load_error is None

    @property
    def load_error(self) -> Optional[ConfigLoadError]:
        return self._load_error

    def namespaces(self) -> List[str]:
        """Return the top-level namespaces in document order."""
        return list(self._document.keys())

    def has_namespace(self, namespace: str) -> bool:
        return namespace in self._document

    def get_config_set(self, namespace: str) -> Optional[Dict[str, Any]]:
        """
        Return the configuration set under the specified namespace.

        Args:
            namespace: Configuration namespace (e.g. "identityService")

        Returns:
            Copy of the namespace's JSON object, or None if the namespace
            does not exist, is not an object, or the document failed to load
        """
        config_set = opt_object(self._document, namespace)
        if config_set is None:
            self._log.info(f"Namespace: '{namespace}' does not exist")
            return None
        return copy.deepcopy(config_set)

    def get_raw(self, namespace: str) -> Optional[Dict[str, Any]]:
        """Like get_config_set() but without copying or logging. Internal use."""
        return opt_object(self._document, namespace)
