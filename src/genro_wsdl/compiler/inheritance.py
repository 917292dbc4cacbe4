# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Inheritance Resolver.

complexContent extension:
    The derived type records its base by canonical name and compiles only
    its own (local) members. Once every type is compiled, expand() walks
    each base chain and builds the full view: inherited attributes and
    elements first, local ones after, the '$value' slot last. A local member
    that repeats a name of the base's full view is folded into the inherited
    one when the declared types agree, and rejected otherwise.

complexContent restriction:
    The restriction restates the whole content model, so it compiles as a
    standalone type without a base link.

simpleContent extension / restriction:
    The type becomes a single '$value' element whose type_ref is the base's
    representation (a built-in scalar, an alias or another structural type)
    plus the attributes declared locally. Whether a named base should read
    as a subtype is left to emitters.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from ..catalog import StructuralType, TypeRef
from ..errors import ErrorContext, MalformedContentModelError
from ..schema_set import SchemaDocument
from ..xml_tree import XmlNode
from .flattener import merge_occ

if TYPE_CHECKING:
    from .schema_compiler import SchemaCompiler

logger = logging.getLogger(__name__)

ANY_TYPE = "xs:anyType"


class InheritanceResolver:
    """Resolve derivation bases and compute the inherited views."""

    def __init__(self, compiler: SchemaCompiler):
        self.compiler = compiler

    def _base_ref(self, derivation: XmlNode, document: SchemaDocument, owner: str) -> TypeRef:
        base = derivation.get("base")
        if not base:
            raise MalformedContentModelError(
                f"xs:{derivation.tag} without base in '{owner}'",
                ErrorContext(
                    element=owner,
                    namespace=document.target_namespace,
                    file=document.location,
                    suggestion="Add a base attribute to the derivation",
                ),
            )
        return self.compiler.resolve_type(base, derivation, document, owner)

    def complex_base(self, derivation: XmlNode, document: SchemaDocument, owner: str) -> str | None:
        """Canonical name of a complexContent base, or None.

        None is returned for xs:anyType and for an unresolved base (the
        unresolved-reference policy has already been applied).

        Raises:
            MalformedContentModelError: If the base is a simple type.
        """
        ref = self._base_ref(derivation, document, owner)
        if ref.kind == "structure":
            return ref.name
        if ref.unresolved or ref.declared == ANY_TYPE:
            return None
        raise MalformedContentModelError(
            f"complexContent base '{ref.declared}' of '{owner}' is not a complex type",
            ErrorContext(
                element=owner,
                namespace=document.target_namespace,
                referenced_by=ref.declared,
                file=document.location,
                suggestion="Use simpleContent to derive from a simple type",
            ),
        )

    def simple_content_ref(self, derivation: XmlNode, document: SchemaDocument, owner: str) -> TypeRef:
        """Representation carried by the '$value' slot of a simpleContent type."""
        return self._base_ref(derivation, document, owner)

    # -------------------------------------------------------------------------
    # Full views
    # -------------------------------------------------------------------------

    def expand(self, types: dict[str, StructuralType]) -> dict[str, StructuralType]:
        """Return every type with its full (inherited + local) view.

        Raises:
            MalformedContentModelError: On a circular base chain, or when a
                local member repeats an inherited name with another type.
        """
        full: dict[str, StructuralType] = {}
        for name in types:
            self._resolve(name, types, full, [])
        return full

    def _resolve(
        self,
        name: str,
        types: dict[str, StructuralType],
        full: dict[str, StructuralType],
        chain: list[str],
    ) -> StructuralType:
        done = full.get(name)
        if done is not None:
            return done
        structural_type = types[name]
        if structural_type.base is None:
            full[name] = structural_type
            return structural_type
        if name in chain:
            cycle = " -> ".join([*chain, name])
            raise MalformedContentModelError(
                f"Circular type derivation: {cycle}",
                ErrorContext(
                    element=name,
                    namespace=structural_type.qname.namespace,
                    suggestion="Break the cycle in the base chain",
                ),
            )
        base = self._resolve(structural_type.base, types, full, [*chain, name])
        full[name] = compose(structural_type, base)
        logger.debug("Resolved %s extends %s", name, base.name)
        return full[name]


def compose(derived: StructuralType, base: StructuralType) -> StructuralType:
    """Merge a base's full view with the local members of 'derived'.

    A local member repeating an inherited name with the same declared type is
    folded into the inherited slot and stops being local: elements take the
    union of both occurrences, attributes take the local 'use'.

    Raises:
        MalformedContentModelError: If the repeated member changes the
            declared type.
    """
    attributes = {a.name: a for a in base.attributes}
    local_attributes = []
    for attribute in derived.local_attributes:
        inherited = attributes.get(attribute.name)
        if inherited is None:
            local_attributes.append(attribute)
            attributes[attribute.name] = attribute
            continue
        _check_redeclared(derived, base, attribute.name, inherited.declared_type, attribute.declared_type)
        attributes[attribute.name] = replace(inherited, use=attribute.use)

    shift = len(base.choices)
    elements = {e.name: e for e in base.elements if not e.is_text}
    local_elements = []
    for element in derived.local_elements:
        if element.choice:
            element = replace(element, choice=replace(element.choice, group=element.choice.group + shift))
        inherited = None if element.is_text else elements.get(element.name)
        if inherited is None:
            local_elements.append(element)
            continue
        _check_redeclared(derived, base, element.name, inherited.declared_type, element.declared_type)
        min_occurs, max_occurs = merge_occ(
            (inherited.min_occurs, inherited.max_occurs), (element.min_occurs, element.max_occurs)
        )
        elements[element.name] = replace(
            inherited,
            min_occurs=min_occurs,
            max_occurs=max_occurs,
            nillable=inherited.nillable or element.nillable,
            optional=inherited.optional or element.optional,
        )
        logger.debug("%s folds '%s' into the member inherited from %s", derived.name, element.name, base.name)

    text = next((e for e in local_elements if e.is_text), None) or base.text_slot
    full = [*elements.values(), *(e for e in local_elements if not e.is_text)]
    if text is not None:
        full.append(text)

    return replace(
        derived,
        attributes=tuple(attributes.values()),
        elements=tuple(full),
        local_attributes=tuple(local_attributes),
        local_elements=tuple(local_elements),
        choices=base.choices + tuple(replace(c, index=c.index + shift) for c in derived.choices),
        mixed=derived.mixed or base.mixed,
    )


def _check_redeclared(
    derived: StructuralType, base: StructuralType, member: str, inherited: str, declared: str
) -> None:
    if inherited == declared:
        return
    raise MalformedContentModelError(
        f"'{derived.name}' redeclares '{member}' inherited from '{base.name}' "
        f"with a different type ({inherited} and {declared})",
        ErrorContext(
            element=member,
            namespace=derived.qname.namespace,
            referenced_by=derived.name,
            suggestion="Keep the inherited type, rename the local member or derive by restriction",
        ),
    )
