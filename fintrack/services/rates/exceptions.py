"""
Rate Source Exceptions

These never leave the rates package: the converter absorbs them and
answers with a fallback rate instead.

A stale cache entry is not an error. It reads as absent and the
converter simply fetches again.
"""


class RateError(Exception):
    """Base exception for rate source failures."""

    def __init__(self, pair: str, message: str):
        self.pair = pair
        super().__init__(message)


class NetworkError(RateError):
    """Transport failure, timeout or non-success status from the rate source."""
    pass


class ParseError(RateError):
    """The rate source answered, but the body is not a usable rate."""
    pass
