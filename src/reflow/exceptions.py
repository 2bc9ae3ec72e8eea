"""Custom exceptions for reflow.

Only the boundaries raise these (input loading, configuration, the scenario
catalog). The scheduling core reports problems through its result instead.
"""


class ReflowError(Exception):
    """Base exception for all reflow errors."""

    pass


class InputError(ReflowError):
    """Raised when a schedule input file cannot be read or validated."""

    pass


class ConfigError(ReflowError):
    """Raised when a configuration file is invalid."""

    pass


class ScenarioNotFoundError(ReflowError):
    """Raised when a scenario key is not in the catalog."""

    pass
