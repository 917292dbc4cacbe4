# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Catalog serialization.

The Catalog crosses process boundaries between compilation and emission,
so it serializes losslessly to plain structures:

- **dict**: catalog_to_dict() / catalog_from_dict(), JSON-compatible values
- **JSON**: to_json() / from_json()
- **TYTX**: to_tytx() / from_tytx(), typed transport over JSON or
  MessagePack (genro-tytx)

Unbounded maximum occurrences are written as the string 'unbounded'.
Local member lists are written as names; their values are the matching
entries of the full view.

Example:
    >>> from genro_wsdl.serialization import to_json, from_json
    >>>
    >>> text = to_json(catalog)
    >>> from_json(text) == catalog
    True
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from .catalog import (
    Attribute,
    Catalog,
    ChoiceGroup,
    ChoiceMember,
    Element,
    MarshallingMetadata,
    Operation,
    PropertyInfo,
    QName,
    ScalarAlias,
    StructuralType,
    TypeRef,
)
from .errors import Diagnostic
from .options import resolve_options

UNBOUNDED = "unbounded"

FORMAT_VERSION = 1


# =============================================================================
# Scalars
# =============================================================================


def _max_out(value: int | None) -> int | str:
    return UNBOUNDED if value is None else value


def _max_in(value: int | str) -> int | None:
    return None if value == UNBOUNDED else int(value)


def _qname_out(qname: QName | None) -> dict[str, str] | None:
    if qname is None:
        return None
    return {"namespace": qname.namespace, "local": qname.local}


def _qname_in(data: Mapping[str, str] | None) -> QName | None:
    if data is None:
        return None
    return QName(data["namespace"], data["local"])


def _tuple_or_none(values: list[str] | None) -> tuple[str, ...] | None:
    return tuple(values) if values is not None else None


# =============================================================================
# Model -> dict
# =============================================================================


def _type_ref_out(ref: TypeRef) -> dict[str, Any]:
    return {
        "kind": ref.kind,
        "declared": ref.declared,
        "scalar": ref.scalar,
        "name": ref.name,
        "enumeration": list(ref.enumeration) if ref.enumeration is not None else None,
        "is_list": ref.is_list,
    }


def _attribute_out(attribute: Attribute) -> dict[str, Any]:
    return {
        "name": attribute.name,
        "declared_type": attribute.declared_type,
        "use": attribute.use,
        "type_ref": _type_ref_out(attribute.type_ref),
    }


def _element_out(element: Element) -> dict[str, Any]:
    return {
        "name": element.name,
        "declared_type": element.declared_type,
        "type_ref": _type_ref_out(element.type_ref),
        "min": element.min_occurs,
        "max": _max_out(element.max_occurs),
        "nillable": element.nillable,
        "optional": element.optional,
        "choice": (
            {"group": element.choice.group, "branch": element.choice.branch} if element.choice else None
        ),
    }


def _type_out(structural_type: StructuralType) -> dict[str, Any]:
    return {
        "name": structural_type.name,
        "qname": _qname_out(structural_type.qname),
        "base": structural_type.base,
        "mixed": structural_type.mixed,
        "simple_content": structural_type.simple_content,
        "anonymous": structural_type.anonymous,
        "documentation": structural_type.documentation,
        "attributes": [_attribute_out(a) for a in structural_type.attributes],
        "elements": [_element_out(e) for e in structural_type.elements],
        "local_attributes": [a.name for a in structural_type.local_attributes],
        "local_elements": [e.name for e in structural_type.local_elements],
        "choices": [
            {
                "index": c.index,
                "min": c.min_occurs,
                "max": _max_out(c.max_occurs),
                "branches": [list(branch) for branch in c.branches],
            }
            for c in structural_type.choices
        ],
    }


def _alias_out(alias: ScalarAlias) -> dict[str, Any]:
    return {
        "name": alias.name,
        "qname": _qname_out(alias.qname),
        "scalar": alias.scalar,
        "base": alias.base,
        "enumeration": list(alias.enumeration) if alias.enumeration is not None else None,
        "is_list": alias.is_list,
        "documentation": alias.documentation,
    }


def _operation_out(operation: Operation) -> dict[str, Any]:
    return {
        "name": operation.name,
        "action": operation.action,
        "input_element": _qname_out(operation.input_element),
        "output_element": _qname_out(operation.output_element),
        "input_type": operation.input_type,
        "output_type": operation.output_type,
        "security_hints": list(operation.security_hints),
        "style": operation.style,
        "documentation": operation.documentation,
    }


def _metadata_out(metadata: MarshallingMetadata) -> dict[str, Any]:
    return {
        "attributes": {name: list(attrs) for name, attrs in metadata.attributes.items()},
        "children": {name: dict(routes) for name, routes in metadata.children.items()},
        "properties": {
            name: {
                element: {
                    "declared_type": info.declared_type,
                    "min": info.min_occurs,
                    "max": _max_out(info.max_occurs),
                    "nillable": info.nillable,
                }
                for element, info in props.items()
            }
            for name, props in metadata.properties.items()
        },
    }


def catalog_to_dict(catalog: Catalog) -> dict[str, Any]:
    """Convert a Catalog to JSON-compatible plain structures."""
    return {
        "format_version": FORMAT_VERSION,
        "source": catalog.source,
        "service_name": catalog.service_name,
        "display_name": catalog.display_name,
        "target_namespace": catalog.target_namespace,
        "options": catalog.options.to_dict(),
        "aliases": [_alias_out(a) for a in catalog.aliases],
        "types": [_type_out(t) for t in catalog.types],
        "operations": [_operation_out(o) for o in catalog.operations],
        "metadata": _metadata_out(catalog.metadata),
        "diagnostics": [d.to_dict() for d in catalog.diagnostics],
        "unresolved": list(catalog.unresolved),
    }


# =============================================================================
# dict -> Model
# =============================================================================


def _type_ref_in(data: Mapping[str, Any]) -> TypeRef:
    return TypeRef(
        kind=data["kind"],
        declared=data["declared"],
        scalar=data.get("scalar", "opaque"),
        name=data.get("name"),
        enumeration=_tuple_or_none(data.get("enumeration")),
        is_list=data.get("is_list", False),
    )


def _attribute_in(data: Mapping[str, Any]) -> Attribute:
    return Attribute(
        name=data["name"],
        declared_type=data["declared_type"],
        type_ref=_type_ref_in(data["type_ref"]),
        use=data.get("use", "optional"),
    )


def _element_in(data: Mapping[str, Any]) -> Element:
    choice = data.get("choice")
    return Element(
        name=data["name"],
        declared_type=data["declared_type"],
        type_ref=_type_ref_in(data["type_ref"]),
        min_occurs=data["min"],
        max_occurs=_max_in(data["max"]),
        nillable=data.get("nillable", False),
        optional=data.get("optional", False),
        choice=ChoiceMember(choice["group"], choice["branch"]) if choice else None,
    )


def _type_in(data: Mapping[str, Any]) -> StructuralType:
    attributes = tuple(_attribute_in(a) for a in data["attributes"])
    elements = tuple(_element_in(e) for e in data["elements"])
    by_attr = {a.name: a for a in attributes}
    by_elem = {e.name: e for e in elements}
    return StructuralType(
        name=data["name"],
        qname=_qname_in(data["qname"]),
        attributes=attributes,
        elements=elements,
        local_attributes=tuple(by_attr[name] for name in data["local_attributes"]),
        local_elements=tuple(by_elem[name] for name in data["local_elements"]),
        base=data.get("base"),
        mixed=data.get("mixed", False),
        simple_content=data.get("simple_content", False),
        choices=tuple(
            ChoiceGroup(
                index=c["index"],
                min_occurs=c["min"],
                max_occurs=_max_in(c["max"]),
                branches=tuple(tuple(branch) for branch in c["branches"]),
            )
            for c in data.get("choices", [])
        ),
        documentation=data.get("documentation"),
        anonymous=data.get("anonymous", False),
    )


def _alias_in(data: Mapping[str, Any]) -> ScalarAlias:
    return ScalarAlias(
        name=data["name"],
        qname=_qname_in(data["qname"]),
        scalar=data["scalar"],
        base=data["base"],
        enumeration=_tuple_or_none(data.get("enumeration")),
        is_list=data.get("is_list", False),
        documentation=data.get("documentation"),
    )


def _operation_in(data: Mapping[str, Any]) -> Operation:
    return Operation(
        name=data["name"],
        action=data.get("action", ""),
        input_element=_qname_in(data.get("input_element")),
        output_element=_qname_in(data.get("output_element")),
        input_type=data.get("input_type"),
        output_type=data.get("output_type"),
        security_hints=tuple(data.get("security_hints", ())),
        style=data.get("style", "document"),
        documentation=data.get("documentation"),
    )


def _metadata_in(data: Mapping[str, Any]) -> MarshallingMetadata:
    return MarshallingMetadata(
        attributes=MappingProxyType({
            name: tuple(attrs) for name, attrs in data.get("attributes", {}).items()
        }),
        children=MappingProxyType({
            name: MappingProxyType(dict(routes)) for name, routes in data.get("children", {}).items()
        }),
        properties=MappingProxyType({
            name: MappingProxyType({
                element: PropertyInfo(
                    declared_type=info["declared_type"],
                    min_occurs=info["min"],
                    max_occurs=_max_in(info["max"]),
                    nillable=info["nillable"],
                )
                for element, info in props.items()
            })
            for name, props in data.get("properties", {}).items()
        }),
    )


def catalog_from_dict(data: Mapping[str, Any]) -> Catalog:
    """Rebuild a Catalog from catalog_to_dict() output.

    Raises:
        ValueError: If the format version is not supported.
    """
    version = data.get("format_version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported catalog format version {version}")
    return Catalog(
        aliases=tuple(_alias_in(a) for a in data.get("aliases", [])),
        types=tuple(_type_in(t) for t in data.get("types", [])),
        operations=tuple(_operation_in(o) for o in data.get("operations", [])),
        metadata=_metadata_in(data.get("metadata", {})),
        options=resolve_options(data.get("options")),
        source=data["source"],
        service_name=data.get("service_name"),
        display_name=data["display_name"],
        target_namespace=data.get("target_namespace", ""),
        diagnostics=tuple(Diagnostic.from_dict(d) for d in data.get("diagnostics", [])),
        unresolved=tuple(data.get("unresolved", [])),
    )


# =============================================================================
# JSON / TYTX
# =============================================================================


def to_json(catalog: Catalog, indent: int | None = 2) -> str:
    """Serialize a Catalog to a JSON string (stable key order)."""
    return json.dumps(catalog_to_dict(catalog), indent=indent, ensure_ascii=False)


def from_json(source: str | bytes) -> Catalog:
    """Deserialize a Catalog from to_json() output."""
    return catalog_from_dict(json.loads(source))


def to_tytx(
    catalog: Catalog,
    transport: Literal["json", "msgpack"] = "json",
) -> str | bytes:
    """Serialize a Catalog to TYTX.

    Args:
        catalog: The Catalog to serialize.
        transport: 'json' for a JSON string, 'msgpack' for binary bytes.

    Returns:
        Serialized data (str for json, bytes for msgpack).
    """
    from genro_tytx import to_tytx as tytx_encode

    # genro_tytx uses transport=None for JSON
    tytx_transport = None if transport == "json" else transport
    return tytx_encode(catalog_to_dict(catalog), transport=tytx_transport)


def from_tytx(
    data: str | bytes,
    transport: Literal["json", "msgpack"] = "json",
) -> Catalog:
    """Deserialize a Catalog from to_tytx() output."""
    from genro_tytx import from_tytx as tytx_decode

    parsed = tytx_decode(data, transport=transport if transport != "json" else None)
    return catalog_from_dict(parsed)
