# showcase/core/errors.py
# Version 01.00.00.00 dated 20261019
"""
Error taxonomy and the channel every engine failure is routed through.

Failures are never raised at callers (unless strict mode is on). Each one
is turned into ``"<code> - <message>"``, stored on the Instance, broadcast
as an ``error`` notification and logged. Load failures are additionally
shown inside the overlay itself ("self-hosted").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

logger = logging.getLogger(__name__)

SELF_HOSTED_PREFIX = "An error has occurred:\n"


class ShowcaseError(Exception):
    """Base class of every reported Showcase error."""

    tag = "UNKNOWN"
    code = "000"

    def __init__(self, message: str = "", detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def text(self) -> str:
        return f"{self.code} - {self.message}"


class UnavailableError(ShowcaseError):
    pass


class InvalidOptionsError(ShowcaseError):
    pass


class InvalidCallbackError(ShowcaseError):
    pass


class BusyConflictError(ShowcaseError):
    pass


class DataLoadError(ShowcaseError):
    pass


class MediaLoadError(ShowcaseError):
    pass


class InvalidDefaultKeyError(ShowcaseError):
    pass


class InvalidEventRegistrationError(ShowcaseError):
    pass


@dataclass(frozen=True)
class ErrorEntry:
    tag: str
    code: str
    message: str
    kind: Type[ShowcaseError]


ERRORS: Dict[str, ErrorEntry] = {entry.tag: entry for entry in (
    ErrorEntry("UNAVAILABLE", "001",
              "The Showcase engine was called before it was available.", UnavailableError),
    ErrorEntry("OPTIONS", "002",
              "Invalid options argument supplied to the Showcase engine.", InvalidOptionsError),
    ErrorEntry("CALLBACK", "003",
              "Invalid callback argument supplied to the Showcase engine.", InvalidCallbackError),
    ErrorEntry("BUSY", "004",
              "The Showcase instance is currently busy. Please use the force_load option.",
              BusyConflictError),
    ErrorEntry("DATALOAD", "005",
              "The Showcase engine was unable to load the data content.", DataLoadError),
    ErrorEntry("MEDIALOAD", "006",
              "The Showcase engine was unable to load the media content.", MediaLoadError),
    ErrorEntry("NODEFAULT", "010",
              'The default option "{var}" does not exist for the Showcase engine.',
              InvalidDefaultKeyError),
    ErrorEntry("ONEVENT", "011",
              "Invalid event type for the .on() Showcase method.", InvalidEventRegistrationError),
    ErrorEntry("ONHANDLER", "012",
              "Invalid handler function for the .on() Showcase method.",
              InvalidEventRegistrationError),
    ErrorEntry("OFFEVENT", "013",
              "Invalid event type for the .off() Showcase method.", InvalidEventRegistrationError),
)}


def build_error(tag: str, detail: Any = None, var: Optional[str] = None) -> ShowcaseError:
    """Instantiate the ShowcaseError subclass registered for *tag*."""
    entry = ERRORS[tag]
    message = entry.message.replace("{var}", var) if var is not None else entry.message
    error = entry.kind(message, detail)
    error.tag = entry.tag
    error.code = entry.code
    return error


def from_exception(exc: BaseException) -> ShowcaseError:
    """Map an arbitrary exception onto the taxonomy (code 000 if unknown)."""
    if isinstance(exc, ShowcaseError):
        return exc
    error = ShowcaseError(str(exc) or type(exc).__name__, detail=exc)
    return error


class ErrorChannel:
    """Routes failures to the Instance error slot, listeners, the log and the overlay."""

    def __init__(self, instance, notify: Callable[..., Any], strict: bool = False):
        self._instance = instance
        self._notify = notify
        self.strict = strict
        self._presenter: Optional[Callable[[str], Any]] = None
        self._is_ready: Callable[[], bool] = lambda: False

    def bind_presenter(self, presenter: Callable[[str], Any],
                       is_ready: Callable[[], bool]) -> None:
        """Where self-hosted messages go once the engine is usable."""
        self._presenter = presenter
        self._is_ready = is_ready

    def report(self, error: Any, detail: Any = None, *, self_host: bool = False,
               var: Optional[str] = None) -> str:
        """Record and broadcast *error* (a tag or an exception); returns its text."""
        if isinstance(error, str):
            error = build_error(error, detail, var)
        else:
            error = from_exception(error)

        text = error.text
        self._instance.error = text
        if isinstance(error, (DataLoadError, MediaLoadError)) or error.code == "000":
            logger.error("[ErrorChannel] %s (%s)", text, error.detail if error.detail is not None else "-")
        else:
            logger.warning("[ErrorChannel] %s", text)

        self._notify("error", {"tag": error.tag, "code": error.code, "message": text,
                               "detail": error.detail})

        if self.strict:
            raise error

        if self_host and self._presenter is not None and self._is_ready():
            self.present(SELF_HOSTED_PREFIX + text)
        return text

    def capture(self, reason: Any) -> None:
        """Rejection handler for pipeline completions."""
        if isinstance(reason, BaseException):
            self.report(reason)
        else:
            self.report(ShowcaseError(str(reason)))

    def present(self, message: str) -> None:
        if self._presenter is None:
            logger.warning("[ErrorChannel] No presenter bound for: %s", message)
            return
        self._presenter(message)
