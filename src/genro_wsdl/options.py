# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Compiler configuration.

CompilerOptions collects every switch the schema compiler understands. The
defaults favour correctness over convenience: values that could lose
precision across the wire (64-bit and arbitrary precision integers, decimals,
dates) are kept as text, choices become all-optional properties and
unresolved references are reported without aborting.

Options:
    int64: strategy for xs:long / xs:unsignedLong
    big_integer: strategy for xs:integer and its unbounded derivations
    decimal: strategy for xs:decimal
    date: strategy for dates, times and durations
    choice: 'all-optional' or 'union'
    fail_on_unresolved: abort on the first unresolved reference
    nillable_as_optional: treat nillable elements as optional properties
    attributes_key: key of the attribute bag in generated runtime code
    client_name: display name override for the generated client

Example:
    >>> from genro_wsdl.options import resolve_options
    >>>
    >>> opts = resolve_options({'choice': 'union'}, fail_on_unresolved=True)
    >>> opts.choice, opts.int64
    ('union', 'text')
    >>>
    >>> # camelCase configuration keys are accepted too
    >>> resolve_options({'primitive': {'int64As': 'text'}, 'clientName': 'Weather'}).client_name
    'Weather'
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

# strategy name -> scalar kind used for the value kinds prone to precision loss
PRIMITIVE_STRATEGIES: dict[str, str] = {
    "text": "text",
}

CHOICE_POLICIES = ("all-optional", "union")

_STRATEGY_FIELDS = ("int64", "big_integer", "decimal", "date")

_CAMEL_KEYS = {
    "int64As": "int64",
    "bigIntegerAs": "big_integer",
    "decimalAs": "decimal",
    "dateAs": "date",
    "failOnUnresolved": "fail_on_unresolved",
    "nillableAsOptional": "nillable_as_optional",
    "attributesKey": "attributes_key",
    "clientName": "client_name",
}


@dataclass(frozen=True)
class CompilerOptions:
    """Resolved compiler configuration (immutable)."""

    int64: str = "text"
    big_integer: str = "text"
    decimal: str = "text"
    date: str = "text"
    choice: str = "all-optional"
    fail_on_unresolved: bool = False
    nillable_as_optional: bool = False
    attributes_key: str = "$attributes"
    client_name: str | None = None

    def __post_init__(self) -> None:
        for name in _STRATEGY_FIELDS:
            value = getattr(self, name)
            if value not in PRIMITIVE_STRATEGIES:
                allowed = ", ".join(sorted(PRIMITIVE_STRATEGIES))
                raise ValueError(f"Invalid {name} strategy '{value}': expected one of {allowed}")
        if self.choice not in CHOICE_POLICIES:
            raise ValueError(
                f"Invalid choice policy '{self.choice}': expected one of {', '.join(CHOICE_POLICIES)}"
            )
        if not self.attributes_key:
            raise ValueError("attributes_key must be a non-empty string")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CompilerOptions:
        return resolve_options(data)


def resolve_options(
    options: Mapping[str, Any] | CompilerOptions | None = None, **overrides: Any
) -> CompilerOptions:
    """Merge defaults, a mapping of options and keyword overrides.

    Args:
        options: Partial options as a mapping (snake_case or
            camelCase keys, optionally with a nested 'primitive' mapping), or
            an existing CompilerOptions.
        **overrides: Individual options, applied last.

    Returns:
        A validated CompilerOptions.

    Raises:
        ValueError: On unknown option names or invalid values.
    """
    merged: dict[str, Any] = {}
    if isinstance(options, CompilerOptions):
        merged.update(options.to_dict())
    elif options:
        merged.update(_normalize_keys(options))
    merged.update(_normalize_keys(overrides))

    known = {f.name for f in fields(CompilerOptions)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ValueError(f"Unknown compiler options: {', '.join(unknown)}")
    return CompilerOptions(**merged)


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key == "primitive" and isinstance(value, Mapping):
            out.update(_normalize_keys(value))
            continue
        out[_CAMEL_KEYS.get(key, key)] = value
    return out
