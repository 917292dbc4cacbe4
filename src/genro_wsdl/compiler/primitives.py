# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Primitive & Enumeration Mapper.

Maps XML Schema built-in types to the four scalar kinds of the catalog
(text, numeric, boolean, opaque) and describes user simple types
(restriction, enumeration, list, union).

Four value kinds can lose precision or range once they leave XML text, so
each has its own strategy switch in CompilerOptions:

    int64        xs:long, xs:unsignedLong
    big_integer  xs:integer and its unbounded derivations
    decimal      xs:decimal
    date         dates, times, g* calendar fragments and durations

A strategy name is looked up in PRIMITIVE_STRATEGIES to obtain the scalar
kind. Only 'text' is defined today, which keeps the exact source lexical
form; adding a strategy means adding an entry there.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..catalog import QName, ScalarKind, TypeRef
from ..options import PRIMITIVE_STRATEGIES, CompilerOptions
from ..schema_set import SchemaDocument
from ..xml_tree import XSD_NS, XmlNode

# built-in local name -> scalar kind, or 'strategy:<option>' for configurable kinds
BUILTIN_MAP: dict[str, str] = {
    # string-like
    "string": "text",
    "normalizedString": "text",
    "token": "text",
    "language": "text",
    "Name": "text",
    "NCName": "text",
    "NMTOKEN": "text",
    "NMTOKENS": "text",
    "ID": "text",
    "IDREF": "text",
    "IDREFS": "text",
    "ENTITY": "text",
    "ENTITIES": "text",
    "anyURI": "text",
    "QName": "text",
    "NOTATION": "text",
    "hexBinary": "text",
    "base64Binary": "text",
    # boolean
    "boolean": "boolean",
    # fixed-width numerics
    "byte": "numeric",
    "unsignedByte": "numeric",
    "short": "numeric",
    "unsignedShort": "numeric",
    "int": "numeric",
    "unsignedInt": "numeric",
    "float": "numeric",
    "double": "numeric",
    # precision-sensitive
    "long": "strategy:int64",
    "unsignedLong": "strategy:int64",
    "integer": "strategy:big_integer",
    "nonPositiveInteger": "strategy:big_integer",
    "negativeInteger": "strategy:big_integer",
    "nonNegativeInteger": "strategy:big_integer",
    "positiveInteger": "strategy:big_integer",
    "decimal": "strategy:decimal",
    "date": "strategy:date",
    "dateTime": "strategy:date",
    "dateTimeStamp": "strategy:date",
    "time": "strategy:date",
    "gYear": "strategy:date",
    "gYearMonth": "strategy:date",
    "gMonth": "strategy:date",
    "gMonthDay": "strategy:date",
    "gDay": "strategy:date",
    "duration": "strategy:date",
    "dayTimeDuration": "strategy:date",
    "yearMonthDuration": "strategy:date",
    # untyped
    "anyType": "opaque",
    "anySimpleType": "opaque",
}


@dataclass(frozen=True)
class SimpleShape:
    """What a simple type carries once its derivation chain is resolved."""

    scalar: ScalarKind
    base: str
    enumeration: tuple[str, ...] | None = None
    is_list: bool = False

    def to_ref(self, declared: str | None = None) -> TypeRef:
        return TypeRef.scalar_ref(
            declared or self.base, self.scalar, enumeration=self.enumeration, is_list=self.is_list
        )


# (reference, node, document) -> shape of the referenced simple type
ShapeResolver = Callable[[str, XmlNode, SchemaDocument], SimpleShape]


class PrimitiveMapper:
    """Built-in scalar mapping and simple type description."""

    def __init__(self, options: CompilerOptions):
        self.options = options

    def scalar_for(self, local: str) -> ScalarKind:
        """Scalar kind of the built-in 'local'; unknown built-ins map to text.

        Example:
            >>> PrimitiveMapper(CompilerOptions()).scalar_for('short')
            'numeric'
            >>> PrimitiveMapper(CompilerOptions()).scalar_for('long')
            'text'
        """
        kind = BUILTIN_MAP.get(local, "text")
        if kind.startswith("strategy:"):
            strategy = getattr(self.options, kind.split(":", 1)[1])
            return PRIMITIVE_STRATEGIES[strategy]  # type: ignore[return-value]
        return kind  # type: ignore[return-value]

    def is_builtin(self, local: str) -> bool:
        return local in BUILTIN_MAP

    def builtin_shape(self, qname: QName) -> SimpleShape:
        return SimpleShape(scalar=self.scalar_for(qname.local), base=qname.label)

    def builtin_ref(self, qname: QName) -> TypeRef:
        return self.builtin_shape(qname).to_ref()

    def describe(self, node: XmlNode, document: SchemaDocument, resolve: ShapeResolver) -> SimpleShape:
        """Describe an xs:simpleType (named or inline).

        Args:
            node: The xs:simpleType element.
            document: The document holding it.
            resolve: Callback resolving a referenced simple type to its shape.

        Returns:
            SimpleShape with scalar kind, declared base label, enumeration
            values (own facets, else inherited from the base) and list flag.
        """
        restriction = node.find(XSD_NS, "restriction")
        if restriction is not None:
            return self._describe_restriction(restriction, document, resolve)

        list_node = node.find(XSD_NS, "list")
        if list_node is not None:
            item_type = list_node.get("itemType")
            if item_type:
                item = resolve(item_type, list_node, document)
            else:
                inline = list_node.find(XSD_NS, "simpleType")
                item = self.describe(inline, document, resolve) if inline is not None else None
            if item is None:
                return SimpleShape(scalar="text", base="xs:string", is_list=True)
            return SimpleShape(scalar=item.scalar, base=item.base, enumeration=item.enumeration, is_list=True)

        if node.find(XSD_NS, "union") is not None:
            return SimpleShape(scalar="text", base="xs:string")

        return SimpleShape(scalar="text", base="xs:string")

    def _describe_restriction(
        self, restriction: XmlNode, document: SchemaDocument, resolve: ShapeResolver
    ) -> SimpleShape:
        base_ref = restriction.get("base")
        if base_ref:
            base = resolve(base_ref, restriction, document)
        else:
            inline = restriction.find(XSD_NS, "simpleType")
            if inline is not None:
                base = self.describe(inline, document, resolve)
            else:
                base = SimpleShape(scalar="text", base="xs:string")

        values = tuple(
            facet.get("value", "") for facet in restriction.iter_children(XSD_NS, "enumeration")
        )
        if values:
            return SimpleShape(scalar=base.scalar, base=base.base, enumeration=values, is_list=base.is_list)
        return base
