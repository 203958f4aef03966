"""Exceptions for the model zoo service."""


class ModelZooError(Exception):
    """Base exception for model zoo errors."""

    pass


class ConfigurationError(ModelZooError):
    """Invalid configuration file or environment override."""

    pass


class ArchiveError(ModelZooError):
    """Model archive could not be read or written."""

    pass


class SpecificationError(ModelZooError):
    """Model description is missing fields or inconsistent."""

    pass


class AxesError(ModelZooError):
    """Axes string does not describe the image it belongs to."""

    pass


class TilingError(ModelZooError):
    """Image cannot be split into tiles the model accepts."""

    pass


class MissingLibraryError(ModelZooError):
    """Runtime library needed for a weights format is not installed."""

    pass


class PredictionError(ModelZooError):
    """Prediction was misconfigured or the backend failed."""

    pass


class ModuleError(ModelZooError):
    """Command module could not be created, resolved or run."""

    pass
