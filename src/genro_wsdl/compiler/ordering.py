# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Deterministic emission ordering.

Catalog collections are already alphabetical. Inside a type, emitters list
members inherited-before-local, required-before-optional, then by name,
with the '$value' slot always last. Keeping this order stable keeps
generated artifacts diff-friendly.
"""

from __future__ import annotations

from ..catalog import Attribute, Catalog, Element, StructuralType


def _type(catalog: Catalog, structural_type: StructuralType | str) -> StructuralType:
    if isinstance(structural_type, StructuralType):
        return structural_type
    found = catalog.get_type(structural_type)
    if found is None:
        raise KeyError(f"Unknown structural type '{structural_type}'")
    return found


def ordered_members(catalog: Catalog, structural_type: StructuralType | str) -> list[Element]:
    """Elements of a type in emission order."""
    stype = _type(catalog, structural_type)
    return sorted(
        stype.elements,
        key=lambda e: (e.is_text, not stype.is_inherited(e.name), e.optional, e.name),
    )


def ordered_attributes(catalog: Catalog, structural_type: StructuralType | str) -> list[Attribute]:
    """Attributes of a type in emission order."""
    stype = _type(catalog, structural_type)
    return sorted(
        stype.attributes,
        key=lambda a: (not stype.is_inherited(a.name), not a.required, a.name),
    )
