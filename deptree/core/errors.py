class DeptreeError(Exception):
    """Base class for errors that abort the whole run."""


class SetupError(DeptreeError):
    """The throwaway workspace could not be prepared."""


class GraphError(DeptreeError):
    """The package manager's graph command failed."""


class ReadError(DeptreeError):
    """The edge list stream could not be consumed."""


class ConfigError(DeptreeError):
    pass


class NoProjectError(DeptreeError):
    pass


class DescriptionError(Exception):
    """A single metadata lookup failed. Never leaves the enricher."""
