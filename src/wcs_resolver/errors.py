"""Error taxonomy for wcs-header-resolver.

Every resolver either returns a value or raises exactly one of the errors
below. There is no partial result and no local recovery: the first failure
aborts the resolution path and reaches the caller unchanged, carrying enough
context (keyword, projection name, reason) to diagnose the header without
re-parsing it.

Downstream applications that need a serializable form can call
``WcsResolverError.to_envelope()``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    MANDATORY_KEYWORDS_MISSING = "MANDATORY_KEYWORDS_MISSING"
    UNRECOGNIZED_REFERENCE_FRAME = "UNRECOGNIZED_REFERENCE_FRAME"
    UNSUPPORTED_PROJECTION = "UNSUPPORTED_PROJECTION"
    INIT_PROJECTION = "INIT_PROJECTION"
    NUMERIC_PARSE_FAILURE = "NUMERIC_PARSE_FAILURE"


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ErrorType
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


class WcsResolverError(Exception):
    """Base class for all resolution failures."""

    error_type: ErrorType

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context)

    def __str__(self) -> str:
        return self.message

    def to_envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(type=self.error_type, message=self.message, context=self.context)


class MandatoryKeywordsMissing(WcsResolverError, KeyError):
    """A structurally required keyword is absent from the header."""

    error_type = ErrorType.MANDATORY_KEYWORDS_MISSING

    def __init__(self, keyword: str) -> None:
        self.keyword = keyword
        super().__init__(f"Mandatory WCS keyword missing: {keyword}", keyword=keyword)


class UnrecognizedReferenceFrame(WcsResolverError):
    """A RADESYS value outside the fixed table of frame families."""

    error_type = ErrorType.UNRECOGNIZED_REFERENCE_FRAME

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Unrecognized RADESYS value: {value!r}", value=value)


class UnsupportedProjection(WcsResolverError):
    """A projection code with no constructor in the dispatch table."""

    error_type = ErrorType.UNSUPPORTED_PROJECTION

    def __init__(self, code: str, detail: str | None = None) -> None:
        self.code = code
        message = f"Unsupported projection: {code!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, code=code)


class InitProjection(WcsResolverError):
    """A projection's own parameter constraints are violated."""

    error_type = ErrorType.INIT_PROJECTION

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot initialize {name} projection: {reason}", name=name, reason=reason)


class NumericParseFailure(WcsResolverError, ValueError):
    """A value that must be numeric (or integral) is not."""

    error_type = ErrorType.NUMERIC_PARSE_FAILURE

    def __init__(self, keyword: str, value: Any) -> None:
        self.keyword = keyword
        self.value = value
        super().__init__(
            f"Cannot parse value of {keyword} as a number: {value!r}",
            keyword=keyword,
            value=str(value),
        )
