class KeymonError(Exception):
    """Base class for keymon failures."""


class PermissionDeniedError(KeymonError):
    """The OS refused to deliver global input events to this process."""


class ConfigError(KeymonError):
    """Invalid configuration (e.g. an unknown backend name)."""
