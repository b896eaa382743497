# bms_dashboard/errors.py
from __future__ import annotations


class BmsError(Exception):
    """Root of every error raised by the acquisition pipeline."""


# ----------------------------------------------------------------------
# Leg errors: raised inside a single fetch-decode-aggregate pipeline.
# ----------------------------------------------------------------------

class LegError(BmsError):
    pass


class TransportError(LegError):
    """Connection, DNS or HTTP status failure talking to the controller."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class BodyDecodeError(LegError):
    def __init__(self, url: str, encoding: str):
        super().__init__(f"{url}: response body is not valid {encoding} text")
        self.url = url
        self.encoding = encoding


class MalformedDocument(LegError):
    """The expected `key = "..."` assignment is missing or ambiguous."""

    def __init__(self, key: str, reason: str = "not found"):
        super().__init__(f"assignment '{key}' {reason} in document")
        self.key = key


class FieldMissing(LegError):
    def __init__(self, index: int, name: str):
        super().__init__(f"field {index} ({name}) missing from payload")
        self.index = index
        self.name = name


class FieldUnparseable(LegError):
    def __init__(self, index: int, name: str, raw: str):
        super().__init__(f"field {index} ({name}) is not numeric: {raw!r}")
        self.index = index
        self.name = name
        self.raw = raw


class EmptySeries(LegError):
    def __init__(self, what: str = "series"):
        super().__init__(f"cannot aggregate empty {what}")
        self.what = what


# ----------------------------------------------------------------------
# Acquisition errors: what FetchRequest.join() raises.
# ----------------------------------------------------------------------

class AcquisitionError(BmsError):
    def __init__(self, leg: str, cause: BaseException):
        super().__init__(f"{leg}: {cause}")
        self.leg = leg
        self.cause = cause


class FetchFailed(AcquisitionError):
    """The controller or the network misbehaved."""


class UnexpectedFailure(AcquisitionError):
    """The acquisition code itself misbehaved."""
