# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Marshalling Metadata Builder and catalog analysis helpers.

Generated runtime code sees untyped data at the wire boundary. It decides
attribute vs element and which type governs a nested value from three
tables derived here, keyed by structural type name:

    attributes  property names serialized as XML attributes
    children    element name -> alias/structure name to recurse into
    properties  element name -> declared type, min, max, nillable

build_metadata() is a pure function of the type list.

The analysis helpers recognise array wrappers (the SOAP idiom ArrayOfX
holding one repeatable X) and unwrap them in payloads, using only the
public shape of the tables.

Example:
    >>> meta = build_metadata(catalog.types)
    >>> meta.children['ForecastReturn']['ForecastResult']
    'ArrayOfForecast'
    >>> detect_array_wrappers(catalog.types)['ArrayOfForecast']
    'Forecast'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from ..catalog import MarshallingMetadata, PropertyInfo, StructuralType


def build_metadata(types: Iterable[StructuralType]) -> MarshallingMetadata:
    """Derive the marshalling tables from compiled structural types."""
    attributes: dict[str, tuple[str, ...]] = {}
    children: dict[str, Mapping[str, str]] = {}
    properties: dict[str, Mapping[str, PropertyInfo]] = {}

    for structural_type in types:
        attributes[structural_type.name] = structural_type.attribute_names
        children[structural_type.name] = MappingProxyType({
            element.name: element.type_ref.name
            for element in structural_type.elements
            if element.type_ref.is_named
        })
        properties[structural_type.name] = MappingProxyType({
            element.name: PropertyInfo(
                declared_type=element.declared_type,
                min_occurs=element.min_occurs,
                max_occurs=element.max_occurs,
                nillable=element.nillable,
            )
            for element in structural_type.elements
        })

    return MarshallingMetadata(
        attributes=MappingProxyType(attributes),
        children=MappingProxyType(children),
        properties=MappingProxyType(properties),
    )


def detect_array_wrappers(types: Iterable[StructuralType]) -> dict[str, str]:
    """Return {wrapper type name: inner element name}.

    A wrapper has no attributes and exactly one element whose maximum
    occurrence is unbounded or greater than one.
    """
    wrappers: dict[str, str] = {}
    for structural_type in types:
        if structural_type.is_array_wrapper:
            wrappers[structural_type.name] = structural_type.elements[0].name
    return wrappers


def children_types(
    children: Mapping[str, Mapping[str, str]], wrappers: Mapping[str, str]
) -> dict[str, dict[str, str]]:
    """Child-routing entries of every type that is not an array wrapper."""
    return {
        type_name: dict(routes)
        for type_name, routes in children.items()
        if type_name not in wrappers
    }


def unwrap_array_wrappers(
    data: Mapping[str, Any],
    type_name: str,
    children: Mapping[str, Mapping[str, str]],
    wrappers: Mapping[str, str],
) -> dict[str, Any]:
    """Replace wrapper objects in a payload with the list they hold.

    {'ForecastResult': {'Forecast': [...]}} becomes
    {'ForecastResult': [...]} when ForecastResult is routed to a wrapper.
    Nested objects are processed recursively following 'children'.

    Args:
        data: Payload object of type 'type_name'.
        type_name: Structural type governing 'data'.
        children: Child-routing table (MarshallingMetadata.children).
        wrappers: Result of detect_array_wrappers().

    Returns:
        A new dict; 'data' is not modified.
    """
    routes = children.get(type_name)
    if not routes:
        return dict(data)

    result: dict[str, Any] = {}
    for key, value in data.items():
        child_type = routes.get(key)
        if child_type is None:
            result[key] = value
        elif isinstance(value, list):
            result[key] = [_unwrap_value(item, child_type, children, wrappers) for item in value]
        else:
            result[key] = _unwrap_value(value, child_type, children, wrappers)
    return result


def _unwrap_value(
    value: Any,
    type_name: str,
    children: Mapping[str, Mapping[str, str]],
    wrappers: Mapping[str, str],
) -> Any:
    if not isinstance(value, Mapping):
        return value
    if type_name not in wrappers:
        return unwrap_array_wrappers(value, type_name, children, wrappers)

    inner_key = wrappers[type_name]
    inner = value.get(inner_key)
    if inner is None:
        return []
    items = inner if isinstance(inner, list) else [inner]
    item_type = children.get(type_name, {}).get(inner_key)
    if item_type is None:
        return list(items)
    return [_unwrap_value(item, item_type, children, wrappers) for item in items]
