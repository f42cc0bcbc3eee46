"""Typed packaging error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    UNRESOLVED_LINK = "E_UNRESOLVED_LINK"
    MISSING_LOCATION = "E_MISSING_LOCATION"
    FETCH = "E_FETCH"
    REPRODUCIBILITY = "E_REPRODUCIBILITY"
    BIN_DIRECTORY = "E_BIN_DIRECTORY"
    BUILD_EXECUTION = "E_BUILD_EXECUTION"


class ShellpackError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(ShellpackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class UnresolvedLinkError(ShellpackError):
    """A traced identifier has no usable link entry in the cache."""

    def __init__(
        self,
        message: str,
        *,
        identifier: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.UNRESOLVED_LINK,
            hint=hint,
            context={"identifier": identifier, **(context or {})},
        )
        self.identifier = identifier


class MissingLocationError(ShellpackError):
    """A traced identifier has a link entry but no location metadata."""

    def __init__(
        self,
        message: str,
        *,
        identifier: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.MISSING_LOCATION,
            hint=hint,
            context={"identifier": identifier, **(context or {})},
        )
        self.identifier = identifier


class FetchError(ShellpackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FETCH, hint=hint, context=context)


class ReproducibilityError(ShellpackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.REPRODUCIBILITY, hint=hint, context=context)


class BinDirectoryError(ShellpackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BIN_DIRECTORY, hint=hint, context=context)


class BuildExecutionError(ShellpackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BUILD_EXECUTION, hint=hint, context=context)


__all__ = [
    "BinDirectoryError",
    "BuildExecutionError",
    "ErrorCode",
    "FetchError",
    "MissingLocationError",
    "ReproducibilityError",
    "ShellpackError",
    "UnresolvedLinkError",
    "ValidationError",
]
