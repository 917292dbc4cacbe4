# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Compiled Catalog - the sole output of the schema compiler.

The Catalog is what every emitter (client stubs, OpenAPI components, gateway
routes, generated tests) reads. It is built once per compilation and never
mutated afterwards: all model classes are frozen dataclasses and collections
are tuples or read-only mappings.

Types are referenced by canonical name only, never embedded. A recursive
content model (a Forecast holding an ArrayOfForecast holding Forecasts) is
just a set of names pointing at each other.

Model:
    QName - (namespace, local) pair
    TypeRef - resolved representation of a declared type
    ScalarAlias - named simple type
    Attribute, Element - flattened members of a structural type
    ChoiceGroup, ChoiceMember - branch bookkeeping for the 'union' policy
    StructuralType - named (or named-after-owner) complex type
    Operation - one SOAP entry point
    PropertyInfo, MarshallingMetadata - runtime lookup tables
    Catalog - root aggregate

Cardinality:
    max_occurs None means unbounded. An element is optional when
    min_occurs == 0 (or nillable under nillable_as_optional), array-valued
    when max_occurs is None or greater than 1.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

from .errors import Diagnostic
from .options import CompilerOptions
from .xml_tree import XSD_NS

ScalarKind = Literal["text", "numeric", "boolean", "opaque"]
RefKind = Literal["scalar", "alias", "structure", "unknown"]
AttributeUse = Literal["required", "optional", "prohibited"]

# Reserved element name holding simple/mixed text content
TEXT_SLOT = "$value"


@dataclass(frozen=True, order=True)
class QName:
    """Namespace-qualified name. Equality is structural."""

    namespace: str
    local: str

    @property
    def key(self) -> str:
        """Clark notation: '{namespace}local'."""
        return f"{{{self.namespace}}}{self.local}"

    @property
    def label(self) -> str:
        """'xs:local' for XML Schema built-ins, Clark notation otherwise."""
        if self.namespace == XSD_NS:
            return f"xs:{self.local}"
        return self.key

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class TypeRef:
    """Resolved representation of a declared type.

    Attributes:
        kind: 'scalar' (built-in or inline simple type), 'alias' (named
            simple type), 'structure' (complex type) or 'unknown'
            (unresolved reference).
        declared: Source type label ('xs:int', '{ns}Local').
        scalar: Scalar kind carried by the value; 'opaque' for structures
            and unknown references.
        name: Canonical name for 'alias' and 'structure'.
        enumeration: Literal values of an inline enumerated simple type.
        is_list: True for xs:list simple types.
    """

    kind: RefKind
    declared: str
    scalar: ScalarKind = "opaque"
    name: str | None = None
    enumeration: tuple[str, ...] | None = None
    is_list: bool = False

    @property
    def unresolved(self) -> bool:
        return self.kind == "unknown"

    @property
    def is_named(self) -> bool:
        """True when the representation is a catalog entry (alias or structure)."""
        return self.kind in ("alias", "structure")

    @classmethod
    def scalar_ref(
        cls,
        declared: str,
        scalar: ScalarKind,
        enumeration: tuple[str, ...] | None = None,
        is_list: bool = False,
    ) -> TypeRef:
        return cls(kind="scalar", declared=declared, scalar=scalar, enumeration=enumeration, is_list=is_list)

    @classmethod
    def alias_ref(cls, alias: ScalarAlias) -> TypeRef:
        return cls(kind="alias", declared=alias.qname.label, scalar=alias.scalar, name=alias.name,
                   is_list=alias.is_list)

    @classmethod
    def structure_ref(cls, name: str, declared: str) -> TypeRef:
        return cls(kind="structure", declared=declared, name=name)

    @classmethod
    def unknown_ref(cls, declared: str) -> TypeRef:
        return cls(kind="unknown", declared=declared)


@dataclass(frozen=True)
class ScalarAlias:
    """Named simple type."""

    name: str
    qname: QName
    scalar: ScalarKind
    base: str
    enumeration: tuple[str, ...] | None = None
    is_list: bool = False
    documentation: str | None = None


@dataclass(frozen=True)
class Attribute:
    """XML attribute of a structural type."""

    name: str
    declared_type: str
    type_ref: TypeRef
    use: AttributeUse = "optional"

    @property
    def required(self) -> bool:
        return self.use == "required"


@dataclass(frozen=True)
class ChoiceMember:
    """Position of an element inside a choice group ('union' policy)."""

    group: int
    branch: int


@dataclass(frozen=True)
class ChoiceGroup:
    """A choice kept distinguishable for tagged-variant emitters.

    Attributes:
        index: Group number within the owning type.
        min_occurs: Effective minimum occurrence of the whole choice.
        max_occurs: Effective maximum (None = unbounded).
        branches: Element names reachable through each branch, in order.
    """

    index: int
    min_occurs: int
    max_occurs: int | None
    branches: tuple[tuple[str, ...], ...]


@dataclass(frozen=True)
class Element:
    """Child element (particle leaf after flattening)."""

    name: str
    declared_type: str
    type_ref: TypeRef
    min_occurs: int = 1
    max_occurs: int | None = 1
    nillable: bool = False
    optional: bool = False
    choice: ChoiceMember | None = None

    @property
    def is_array(self) -> bool:
        return self.max_occurs is None or self.max_occurs > 1

    @property
    def required(self) -> bool:
        return not self.optional

    @property
    def is_text(self) -> bool:
        return self.name == TEXT_SLOT


@dataclass(frozen=True)
class StructuralType:
    """Named complex type.

    attributes/elements hold the full (inherited + local) view, inherited
    members first. local_attributes/local_elements hold what this type
    declares itself; for a type without base they equal the full view.
    """

    name: str
    qname: QName
    attributes: tuple[Attribute, ...] = ()
    elements: tuple[Element, ...] = ()
    local_attributes: tuple[Attribute, ...] = ()
    local_elements: tuple[Element, ...] = ()
    base: str | None = None
    mixed: bool = False
    simple_content: bool = False
    choices: tuple[ChoiceGroup, ...] = ()
    documentation: str | None = None
    anonymous: bool = False

    @property
    def attribute_names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.attributes)

    @property
    def element_names(self) -> tuple[str, ...]:
        return tuple(e.name for e in self.elements)

    @property
    def text_slot(self) -> Element | None:
        """The '$value' element, present for simple or mixed content."""
        for element in self.elements:
            if element.is_text:
                return element
        return None

    @property
    def is_array_wrapper(self) -> bool:
        """No attributes and exactly one repeatable element."""
        return not self.attributes and len(self.elements) == 1 and self.elements[0].is_array

    def is_inherited(self, name: str) -> bool:
        """True when the member 'name' comes from the base chain."""
        local = {a.name for a in self.local_attributes} | {e.name for e in self.local_elements}
        return name not in local and (name in self.attribute_names or name in self.element_names)


@dataclass(frozen=True)
class Operation:
    """One RPC-style entry point of the service."""

    name: str
    action: str = ""
    input_element: QName | None = None
    output_element: QName | None = None
    input_type: str | None = None
    output_type: str | None = None
    security_hints: tuple[str, ...] = ()
    style: str = "document"
    documentation: str | None = None


@dataclass(frozen=True)
class PropertyInfo:
    """Per-element facts re-exported for generated runtime code."""

    declared_type: str
    min_occurs: int
    max_occurs: int | None
    nillable: bool


@dataclass(frozen=True)
class MarshallingMetadata:
    """Lookup tables for wire <-> object conversion without reflection.

    Attributes:
        attributes: type name -> property names serialized as XML attributes.
        children: type name -> {element name -> alias/structure name}.
        properties: type name -> {element name -> PropertyInfo}.
    """

    attributes: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    children: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: MappingProxyType({}))
    properties: Mapping[str, Mapping[str, PropertyInfo]] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True)
class Catalog:
    """Root aggregate of a compilation.

    Attributes:
        aliases: Named simple types, alphabetical.
        types: Structural types, alphabetical.
        operations: Operations, alphabetical.
        metadata: Marshalling lookup tables derived from types.
        options: The resolved compiler options.
        source: Identifier of the entry document.
        service_name: wsdl:service name, if any.
        display_name: client_name override, else service name, else a name
            derived from the source.
        target_namespace: Target namespace of the WSDL (or first schema).
        diagnostics: Non-fatal conditions, sorted by kind, file, element,
            referencing type and message.
        unresolved: Sorted keys of references left unresolved. Clark
            notation '{ns}local' when the namespace is known; a reference
            whose prefix is unbound keeps its written 'prefix:local' form.
    """

    aliases: tuple[ScalarAlias, ...]
    types: tuple[StructuralType, ...]
    operations: tuple[Operation, ...]
    metadata: MarshallingMetadata
    options: CompilerOptions
    source: str
    service_name: str | None
    display_name: str
    target_namespace: str
    diagnostics: tuple[Diagnostic, ...] = ()
    unresolved: tuple[str, ...] = ()

    def get_type(self, name: str) -> StructuralType | None:
        """Return the structural type with canonical name 'name'."""
        for structural_type in self.types:
            if structural_type.name == name:
                return structural_type
        return None

    def get_alias(self, name: str) -> ScalarAlias | None:
        """Return the scalar alias with canonical name 'name'."""
        for alias in self.aliases:
            if alias.name == name:
                return alias
        return None

    def get_operation(self, name: str) -> Operation | None:
        """Return the operation called 'name'."""
        for operation in self.operations:
            if operation.name == name:
                return operation
        return None

    @property
    def type_names(self) -> tuple[str, ...]:
        return tuple(t.name for t in self.types)

    @property
    def alias_names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.aliases)
