class EntrailsError(RuntimeError):
    pass


class ConfigError(EntrailsError):
    """Invalid scan configuration."""


class ScanError(EntrailsError):
    """The archive could not be explored; the run cannot continue."""
