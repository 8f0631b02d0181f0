"""Exceptions raised by the solar package."""


class SolarError(Exception):
    """Base exception for solar-value errors."""
    pass


class TransientFetchFailure(SolarError):
    """A network or parsing failure on one data source.

    Always recoverable: the caller falls back to the next source or treats
    the source as having contributed nothing.
    """
    pass


class NoDataAvailable(SolarError):
    """Every data source, including the local cache, came up empty."""
    pass


class InvalidRecordShape(SolarError):
    """A raw daily record does not hold 96 non-negative slot readings."""
    pass


class PersistError(SolarError):
    """Writing or committing the persisted dataset failed."""
    pass
