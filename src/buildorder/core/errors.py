"""Exception hierarchy for buildorder."""


class BuildOrderError(Exception):
    """Base exception for build order enrichment errors."""

    pass


class FilterConfigError(BuildOrderError, ValueError):
    """Raised when command filter settings are malformed."""

    pass


class ReferenceDataError(BuildOrderError):
    """Raised when a mandatory blueprint database cannot be loaded."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class ReplayFormatError(BuildOrderError, ValueError):
    """Raised when decoded replay JSON does not have the expected shape."""

    pass


class ConfigError(BuildOrderError, ValueError):
    """Raised when a config file cannot be read or holds values of the wrong type or range."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
