"""Exception hierarchy for sudo-config-manager."""


class SudoConfigManagerError(Exception):
    """Base class for all sudo-config-manager errors."""


class FailedError(SudoConfigManagerError):
    """Wraps an unexpected failure."""


class InvalidConfigError(SudoConfigManagerError):
    """The library or client configuration is invalid."""


class ConfigLoadError(SudoConfigManagerError):
    """The platform configuration document could not be loaded or parsed."""


class TransportError(SudoConfigManagerError):
    """The object store could not be reached or returned an error."""


class MalformedServiceInfoError(SudoConfigManagerError):
    """A remote service info document does not have the expected shape."""
