# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Type Graph Compiler.

SchemaCompiler turns a SchemaSet into a Catalog in two passes over an owned
TypeRegistry:

1. reserve - every named simple and complex type, and every global element
   with an anonymous complex type, gets its canonical name;
2. compile - each reservation is compiled once. References become names
   (TypeRef.structure_ref / alias_ref), never compiled bodies, so
   self-referential and mutually referential types need no special care.

Anonymous complex types met inside content models are named after their
owner and element (Forecast/Temperatures -> ForecastTemperatures) and are
compiled on discovery. Named simple types are compiled on demand because a
restriction needs the shape of its base.

After the types, the Inheritance Resolver computes the full views, the
Operation Extractor reads the WSDL part and the Marshalling Metadata
Builder derives the lookup tables. Any fatal error propagates and the
registry is dropped with the compiler, so no partial Catalog exists.

Example:
    >>> from genro_wsdl import SchemaSet, compile_catalog
    >>>
    >>> catalog = compile_catalog(SchemaSet.from_string(wsdl_text), {'choice': 'union'})
    >>> catalog.get_type('ArrayOfForecast').is_array_wrapper
    True
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from ..catalog import Catalog, QName, ScalarAlias, StructuralType, TypeRef
from ..errors import (
    Diagnostic,
    ErrorContext,
    MalformedContentModelError,
    UnresolvedReferenceError,
)
from ..options import CompilerOptions, resolve_options
from ..schema_set import SchemaDocument, SchemaSet
from ..xml_tree import SOAP_ENC_NS, WSDL_NS, XML_NS, XSD_NS, XmlNode, documentation_of
from .flattener import ContentModelFlattener
from .inheritance import InheritanceResolver
from .metadata import build_metadata
from .names import Declaration, DeclarationIndex, NameResolver, pascal, split_prefixed
from .operations import OperationExtractor
from .primitives import PrimitiveMapper, SimpleShape
from .registry import TypeRegistry, anonymous_owner, element_owner, type_owner

logger = logging.getLogger(__name__)

ANY_TYPE = QName(XSD_NS, "anyType")
STRING_TYPE = QName(XSD_NS, "string")

_ARRAY_DIMENSIONS_RE = re.compile(r"(\[[\d,\s]*\])+$")


class SchemaCompiler:
    """Compile one SchemaSet. Instances are single use.

    Args:
        schema_set: The assembled Schema Set.
        options: CompilerOptions, a mapping of options or None for defaults.

    Attributes:
        index: Global declarations by symbol space.
        registry: The arena of reserved names and compiled entries.
        diagnostics: Non-fatal conditions in discovery order (sorted in the
            Catalog).
        unresolved: Keys of unresolved references, in Clark notation or, for
            an unbound prefix, as written (sorted in the Catalog).
    """

    def __init__(
        self,
        schema_set: SchemaSet,
        options: CompilerOptions | Mapping[str, Any] | None = None,
    ):
        self.schema_set = schema_set
        self.options = options if isinstance(options, CompilerOptions) else resolve_options(options)
        self.index = DeclarationIndex(schema_set)
        self.names = NameResolver()
        self.registry = TypeRegistry()
        self.mapper = PrimitiveMapper(self.options)
        self.inheritance = InheritanceResolver(self)
        self.diagnostics: list[Diagnostic] = []
        self.unresolved: dict[str, None] = {}
        self._alias_stack: list[QName] = []

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def compile(self) -> Catalog:
        """Run the whole pipeline and return the immutable Catalog."""
        self._reserve()
        self._compile_declarations()
        self.registry.types = self.inheritance.expand(self.registry.types)

        operations, service_name = OperationExtractor(self).extract()
        aliases, types = self.registry.freeze()
        metadata = build_metadata(types)

        source = self.schema_set.location
        display_name = self.options.client_name or service_name or source_stem(source)
        logger.info(
            "Compiled %s: %d aliases, %d types, %d operations, %d diagnostics",
            source,
            len(aliases),
            len(types),
            len(operations),
            len(self.diagnostics),
        )
        return Catalog(
            aliases=aliases,
            types=types,
            operations=operations,
            metadata=metadata,
            options=self.options,
            source=source,
            service_name=service_name,
            display_name=display_name,
            target_namespace=self.schema_set.target_namespace,
            diagnostics=tuple(sorted(self.diagnostics, key=_diagnostic_key)),
            unresolved=tuple(sorted(self.unresolved)),
        )

    def _reserve(self) -> None:
        for decl in self.index.declarations("type"):
            self.registry.reserve(type_owner(decl.qname), pascal(decl.qname.local), decl.qname)
        for decl in self.index.declarations("element"):
            if _has_anonymous_complex(decl.node):
                self.registry.reserve(element_owner(decl.qname), pascal(decl.qname.local), decl.qname)
        logger.debug("Reserved %d canonical names", len(self.registry))

    def _compile_declarations(self) -> None:
        for decl in self.index.declarations("type"):
            if decl.kind == "simpleType":
                self._ensure_alias(decl)
                continue
            name = self.registry.name_for(type_owner(decl.qname))
            if not self.registry.is_compiled(name):
                self.compile_complex(name, decl.qname, decl.node, decl.document, anonymous=False)
        for decl in self.index.declarations("element"):
            if not _has_anonymous_complex(decl.node):
                continue
            name = self.registry.name_for(element_owner(decl.qname))
            if not self.registry.is_compiled(name):
                complex_node = decl.node.find(XSD_NS, "complexType")
                self.compile_complex(name, decl.qname, complex_node, decl.document, anonymous=True)

    # -------------------------------------------------------------------------
    # Unresolved-reference policy
    # -------------------------------------------------------------------------

    def unresolved_reference(self, error: UnresolvedReferenceError, key: str) -> TypeRef:
        """Apply the unresolved-reference policy.

        Fail-fast re-raises 'error'. Lenient logs a warning, records a
        Diagnostic and the key, and returns an 'unknown' TypeRef.
        """
        if self.options.fail_on_unresolved:
            raise error
        logger.warning("%s", error.to_user_message())
        self.diagnostics.append(Diagnostic.from_error(error))
        self.unresolved[key] = None
        return TypeRef.unknown_ref(error.context.element or key)

    def qualify(
        self, reference: str, node: XmlNode, document: SchemaDocument, referenced_by: str
    ) -> QName | None:
        """QName of 'reference', or None when its prefix is unbound (lenient)."""
        try:
            return self.names.qualify(reference, node, document)
        except UnresolvedReferenceError as exc:
            error = UnresolvedReferenceError(
                exc.message,
                ErrorContext(
                    element=reference,
                    namespace=exc.context.namespace,
                    referenced_by=referenced_by,
                    file=document.location,
                    suggestion=exc.context.suggestion,
                ),
            )
            self.unresolved_reference(error, reference)
            return None

    def _missing(
        self, what: str, qname: QName, document: SchemaDocument, referenced_by: str
    ) -> TypeRef:
        error = UnresolvedReferenceError(
            f"{what} '{qname.local}' is not declared in namespace '{qname.namespace}'",
            ErrorContext(
                element=qname.label,
                namespace=qname.namespace,
                referenced_by=referenced_by,
                file=document.location,
                suggestion=f"Check the {what.lower()} name and that its schema is imported",
            ),
        )
        return self.unresolved_reference(error, qname.key)

    def lookup(
        self,
        space: str,
        reference: str,
        node: XmlNode,
        document: SchemaDocument,
        referenced_by: str,
    ) -> Declaration | None:
        """Global declaration named by 'reference'; None if unresolved (lenient)."""
        qname = self.qualify(reference, node, document, referenced_by)
        if qname is None:
            return None
        decl = self.index.lookup(space, qname)
        if decl is None:
            self._missing(_SPACE_LABELS[space], qname, document, referenced_by)
        return decl

    # -------------------------------------------------------------------------
    # Type references
    # -------------------------------------------------------------------------

    def resolve_type(
        self, reference: str, node: XmlNode, document: SchemaDocument, referenced_by: str
    ) -> TypeRef:
        """Resolve a type reference to a scalar, alias, structure or unknown ref."""
        qname = self.qualify(reference, node, document, referenced_by)
        if qname is None:
            return TypeRef.unknown_ref(reference)
        if qname.namespace == XSD_NS:
            return self.mapper.builtin_ref(qname)
        if qname.namespace == SOAP_ENC_NS:
            if self.mapper.is_builtin(qname.local):
                return self.mapper.builtin_ref(qname)
            return TypeRef.scalar_ref(qname.label, "opaque")

        decl = self.index.lookup("type", qname)
        if decl is None:
            return self._missing("Type", qname, document, referenced_by)
        if decl.kind == "simpleType":
            return TypeRef.alias_ref(self._ensure_alias(decl))
        return TypeRef.structure_ref(self.registry.name_for(type_owner(qname)), qname.label)

    def _shape_resolver(self, owner: str):
        def resolve(reference: str, node: XmlNode, document: SchemaDocument) -> SimpleShape:
            ref = self.resolve_type(reference, node, document, owner)
            if ref.kind == "alias":
                alias = self.registry.aliases[ref.name]
                return SimpleShape(alias.scalar, alias.qname.label, alias.enumeration, alias.is_list)
            if ref.kind == "structure":
                raise MalformedContentModelError(
                    f"Simple type '{owner}' derives from complex type '{ref.declared}'",
                    ErrorContext(
                        element=owner,
                        namespace=document.target_namespace,
                        referenced_by=ref.declared,
                        file=document.location,
                    ),
                )
            return SimpleShape(ref.scalar, ref.declared, ref.enumeration, ref.is_list)

        return resolve

    def _inline_simple(self, node: XmlNode, document: SchemaDocument, owner: str) -> TypeRef:
        return self.mapper.describe(node, document, self._shape_resolver(owner)).to_ref()

    def _ensure_alias(self, decl: Declaration) -> ScalarAlias:
        name = self.registry.name_for(type_owner(decl.qname))
        alias = self.registry.aliases.get(name)
        if alias is not None:
            return alias
        if decl.qname in self._alias_stack:
            raise MalformedContentModelError(
                f"Circular simple type derivation through '{decl.qname.local}'",
                ErrorContext(
                    element=decl.qname.local,
                    namespace=decl.qname.namespace,
                    file=decl.document.location,
                    suggestion="Break the cycle between the simple type restrictions",
                ),
            )
        self._alias_stack.append(decl.qname)
        try:
            shape = self.mapper.describe(decl.node, decl.document, self._shape_resolver(name))
        finally:
            self._alias_stack.pop()
        alias = ScalarAlias(
            name=name,
            qname=decl.qname,
            scalar=shape.scalar,
            base=shape.base,
            enumeration=shape.enumeration,
            is_list=shape.is_list,
            documentation=documentation_of(decl.node),
        )
        self.registry.add_alias(alias)
        return alias

    # -------------------------------------------------------------------------
    # Elements and attributes
    # -------------------------------------------------------------------------

    def element_type(self, node: XmlNode, document: SchemaDocument, owner: str) -> tuple[str, TypeRef]:
        """(declared type label, representation) of a local element declaration."""
        type_attr = node.get("type")
        if type_attr:
            ref = self.resolve_type(type_attr, node, document, owner)
            return ref.declared, ref

        complex_node = node.find(XSD_NS, "complexType")
        if complex_node is not None:
            element_name = node.get("name")
            qname = QName(document.target_namespace, owner + pascal(element_name))
            name = self.registry.reserve(anonymous_owner(owner, element_name), qname.local, qname)
            if not self.registry.is_compiled(name):
                self.compile_complex(name, qname, complex_node, document, anonymous=True)
            return qname.label, TypeRef.structure_ref(name, qname.label)

        simple_node = node.find(XSD_NS, "simpleType")
        if simple_node is not None:
            ref = self._inline_simple(simple_node, document, owner)
            return ref.declared, ref

        return ANY_TYPE.label, self.mapper.builtin_ref(ANY_TYPE)

    def global_element_type(self, decl: Declaration, referenced_by: str) -> tuple[str, TypeRef]:
        """(declared type label, representation) of a global element."""
        type_attr = decl.node.get("type")
        if type_attr:
            ref = self.resolve_type(type_attr, decl.node, decl.document, referenced_by)
            return ref.declared, ref
        if _has_anonymous_complex(decl.node):
            name = self.registry.name_for(element_owner(decl.qname))
            return decl.qname.label, TypeRef.structure_ref(name, decl.qname.label)
        simple_node = decl.node.find(XSD_NS, "simpleType")
        if simple_node is not None:
            ref = self._inline_simple(simple_node, decl.document, decl.qname.local)
            return ref.declared, ref
        return ANY_TYPE.label, self.mapper.builtin_ref(ANY_TYPE)

    def resolve_element_ref(
        self, reference: str, node: XmlNode, document: SchemaDocument, owner: str
    ) -> tuple[str, str, TypeRef, bool]:
        """(name, declared type, representation, nillable) of an element ref."""
        decl = self.lookup("element", reference, node, document, owner)
        if decl is None:
            local = split_prefixed(reference)[1]
            return local, reference, TypeRef.unknown_ref(reference), False
        declared, ref = self.global_element_type(decl, owner)
        return decl.qname.local, declared, ref, decl.node.get("nillable") == "true"

    def attribute_type(self, node: XmlNode, document: SchemaDocument, owner: str) -> tuple[str, TypeRef]:
        """(declared type label, representation) of an attribute declaration."""
        type_attr = node.get("type")
        if type_attr:
            ref = self.resolve_type(type_attr, node, document, owner)
            return ref.declared, ref
        simple_node = node.find(XSD_NS, "simpleType")
        if simple_node is not None:
            ref = self._inline_simple(simple_node, document, owner)
            return ref.declared, ref
        return STRING_TYPE.label, self.mapper.builtin_ref(STRING_TYPE)

    def encoded_array_item(
        self, node: XmlNode, document: SchemaDocument, owner: str
    ) -> tuple[str, TypeRef] | None:
        """(declared type, representation) of a SOAP-encoded array item.

        SOAP 1.1 encoded arrays restrict soapenc:Array and carry the item
        type on the soapenc:arrayType attribute ref, as wsdl:arrayType="tns:Item[]".
        None when 'node' is not that attribute ref.
        """
        reference = node.get("ref")
        if split_prefixed(reference)[1] != "arrayType":
            return None
        try:
            qname = self.names.qualify(reference, node, document)
        except UnresolvedReferenceError:
            # unbound prefix, reported by resolve_attribute_ref()
            return None
        if qname.namespace != SOAP_ENC_NS:
            return None
        array_type = node.get(f"{{{WSDL_NS}}}arrayType")
        if not array_type:
            return ANY_TYPE.label, self.mapper.builtin_ref(ANY_TYPE)
        ref = self.resolve_type(_ARRAY_DIMENSIONS_RE.sub("", array_type.strip()), node, document, owner)
        return ref.declared, ref

    def resolve_attribute_ref(
        self, reference: str, node: XmlNode, document: SchemaDocument, owner: str
    ) -> tuple[str, str, TypeRef]:
        """(name, declared type, representation) of an attribute ref."""
        qname = self.qualify(reference, node, document, owner)
        if qname is None:
            local = split_prefixed(reference)[1]
            return local, reference, TypeRef.unknown_ref(reference)
        if qname.namespace == XML_NS:
            return qname.local, STRING_TYPE.label, self.mapper.builtin_ref(STRING_TYPE)
        decl = self.index.lookup("attribute", qname)
        if decl is None:
            return qname.local, qname.label, self._missing("Attribute", qname, document, owner)
        declared, ref = self.attribute_type(decl.node, decl.document, owner)
        return qname.local, declared, ref

    # -------------------------------------------------------------------------
    # Complex types
    # -------------------------------------------------------------------------

    def compile_complex(
        self,
        name: str,
        qname: QName,
        node: XmlNode,
        document: SchemaDocument,
        anonymous: bool,
    ) -> StructuralType:
        """Compile one xs:complexType body and register it under 'name'."""
        flattener = ContentModelFlattener(self, name)
        mixed = node.get("mixed") == "true"
        base: str | None = None
        simple_content = False

        simple_node = node.find(XSD_NS, "simpleContent")
        complex_content = node.find(XSD_NS, "complexContent")
        if simple_node is not None:
            derivation = _derivation(simple_node, name, document)
            flattener.add_attributes(derivation, document)
            flattener.set_text(self.inheritance.simple_content_ref(derivation, document, name))
            simple_content = True
        elif complex_content is not None:
            mixed = mixed or complex_content.get("mixed") == "true"
            derivation = _derivation(complex_content, name, document)
            if derivation.tag == "extension":
                base = self.inheritance.complex_base(derivation, document, name)
            flattener.add_particles(derivation, document)
            flattener.add_attributes(derivation, document)
        else:
            flattener.add_particles(node, document)
            flattener.add_attributes(node, document)

        if mixed and not simple_content:
            flattener.set_text(self.mapper.builtin_ref(STRING_TYPE))

        content = flattener.result()
        structural_type = StructuralType(
            name=name,
            qname=qname,
            attributes=content.attributes,
            elements=content.elements,
            local_attributes=content.attributes,
            local_elements=content.elements,
            base=base,
            mixed=mixed,
            simple_content=simple_content,
            choices=content.choices,
            documentation=documentation_of(node),
            anonymous=anonymous,
        )
        self.registry.add_type(structural_type)
        logger.debug(
            "Compiled %s: %d attributes, %d elements", name, len(content.attributes), len(content.elements)
        )
        return structural_type


_SPACE_LABELS = {
    "type": "Type",
    "element": "Element",
    "attribute": "Attribute",
    "group": "Group",
    "attributeGroup": "Attribute group",
}


def _diagnostic_key(diagnostic: Diagnostic) -> tuple[str, ...]:
    context = diagnostic.context
    return (
        diagnostic.kind,
        context.file or "",
        context.element or "",
        context.referenced_by or "",
        diagnostic.message,
    )


def _has_anonymous_complex(element: XmlNode) -> bool:
    return not element.get("type") and element.find(XSD_NS, "complexType") is not None


def _derivation(content: XmlNode, owner: str, document: SchemaDocument) -> XmlNode:
    derivation = content.find(XSD_NS, "extension") or content.find(XSD_NS, "restriction")
    if derivation is None:
        raise MalformedContentModelError(
            f"xs:{content.tag} of '{owner}' has neither extension nor restriction",
            ErrorContext(
                element=owner,
                namespace=document.target_namespace,
                file=document.location,
                suggestion="Add an xs:extension or xs:restriction child",
            ),
        )
    return derivation


def source_stem(location: str) -> str:
    """Display name derived from a source location ('/x/weather.wsdl' -> 'Weather')."""
    path = urlsplit(location).path or location
    stem = posixpath.splitext(posixpath.basename(path.split("#", 1)[0]))[0]
    return pascal(stem) or "Service"


def compile_catalog(
    schema_set: SchemaSet,
    options: CompilerOptions | Mapping[str, Any] | None = None,
) -> Catalog:
    """Compile a Schema Set into a Catalog.

    Args:
        schema_set: The assembled Schema Set.
        options: CompilerOptions, or a mapping accepted by resolve_options().

    Returns:
        The immutable Catalog.

    Raises:
        UnresolvedReferenceError: Under fail_on_unresolved, on the first
            reference that matches no declaration.
        MalformedContentModelError: On a broken particle tree or derivation.
        AmbiguousNameCollisionError: When two declarations share a
            canonical name.
    """
    return SchemaCompiler(schema_set, options).compile()
