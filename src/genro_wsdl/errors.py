# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Structured errors and diagnostics for WSDL/XSD compilation.

Every error carries an ErrorContext with the offending element or type name,
its namespace, the referencing context, the source document and an
actionable suggestion. to_user_message() formats all of it on multiple lines.

Fatal kinds:
    UnresolvedReferenceError - a type/element/attribute name matches no
        declaration (fatal only when fail_on_unresolved is set)
    MalformedContentModelError - a particle tree or derivation is broken
    AmbiguousNameCollisionError - two declarations share a canonical name
    SchemaSetError - the supplied documents cannot form a Schema Set

Under the lenient policy an unresolved reference becomes a Diagnostic
recorded in the Catalog instead of an exception.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened and what to do about it."""

    element: str | None = None
    namespace: str | None = None
    referenced_by: str | None = None
    file: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ErrorContext:
        return cls(**data)


class WsdlCompilationError(Exception):
    """Base class for structured compilation errors.

    Args:
        message: Human readable description of the failure.
        context: Optional ErrorContext with location and suggestion.

    Example:
        >>> err = WsdlCompilationError("Type not found", ErrorContext(element="Foo"))
        >>> print(err.to_user_message())
        Type not found
          Element: Foo
    """

    kind = "compilation"

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def to_user_message(self) -> str:
        """Format the error into a multi-line message."""
        parts = [self.message]
        ctx = self.context
        if ctx.element:
            parts.append(f"  Element: {ctx.element}")
        if ctx.namespace:
            parts.append(f"  Namespace: {ctx.namespace}")
        if ctx.referenced_by:
            parts.append(f"  Referenced by: {ctx.referenced_by}")
        if ctx.file:
            parts.append(f"  File: {ctx.file}")
        if ctx.suggestion:
            parts.append(f"  Suggestion: {ctx.suggestion}")
        return "\n".join(parts)


class UnresolvedReferenceError(WsdlCompilationError):
    """A declared type or element name could not be matched."""

    kind = "unresolved-reference"


class MalformedContentModelError(WsdlCompilationError):
    """A content model or derivation violates structural expectations."""

    kind = "malformed-content-model"


class AmbiguousNameCollisionError(WsdlCompilationError):
    """Two distinct declarations resolve to the same canonical name."""

    kind = "ambiguous-name-collision"


class SchemaSetError(WsdlCompilationError):
    """The supplied documents cannot be assembled into a Schema Set."""

    kind = "schema-set"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal condition recorded during compilation."""

    kind: str
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)

    @classmethod
    def from_error(cls, error: WsdlCompilationError) -> Diagnostic:
        return cls(kind=error.kind, message=error.message, context=error.context)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "context": self.context.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Diagnostic:
        return cls(
            kind=data["kind"],
            message=data["message"],
            context=ErrorContext.from_dict(data.get("context", {})),
        )
