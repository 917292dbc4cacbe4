# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Type registry - the arena of one compilation.

Every declaration that becomes a catalog entry first reserves its canonical
name here, keyed by an owner key that identifies the declaration:

    type:{ns}local      named simple or complex type
    element:{ns}local   global element with an anonymous complex type
    anon:Owner/element  anonymous complex type nested in a content model

Compiled bodies are stored by canonical name. Types refer to each other by
name only, so the registry never holds nested values and recursive content
models need no special handling.

The registry is owned by a single SchemaCompiler and discarded after
freeze(); a failed compilation leaves nothing behind.
"""

from __future__ import annotations

from ..catalog import QName, ScalarAlias, StructuralType
from ..errors import AmbiguousNameCollisionError, ErrorContext


class TypeRegistry:
    """Name reservations plus compiled aliases and structural types."""

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}
        self._names: dict[str, tuple[str, QName]] = {}
        self.aliases: dict[str, ScalarAlias] = {}
        self.types: dict[str, StructuralType] = {}

    def reserve(self, owner: str, name: str, qname: QName) -> str:
        """Reserve canonical 'name' for 'owner' and return it.

        Reserving again for the same owner is a no-op.

        Raises:
            AmbiguousNameCollisionError: If another owner holds the name.
        """
        current = self._owners.get(owner)
        if current is not None:
            return current
        holder = self._names.get(name)
        if holder is not None:
            other_owner, other_qname = holder
            raise AmbiguousNameCollisionError(
                f"Canonical name '{name}' is claimed by both {other_qname.key} and {qname.key}",
                ErrorContext(
                    element=qname.local,
                    namespace=qname.namespace,
                    referenced_by=other_owner,
                    suggestion="Rename one of the declarations so their PascalCase names differ",
                ),
            )
        self._owners[owner] = name
        self._names[name] = (owner, qname)
        return name

    def name_for(self, owner: str) -> str | None:
        return self._owners.get(owner)

    def is_compiled(self, name: str) -> bool:
        return name in self.aliases or name in self.types

    def add_alias(self, alias: ScalarAlias) -> None:
        self.aliases[alias.name] = alias

    def add_type(self, structural_type: StructuralType) -> None:
        self.types[structural_type.name] = structural_type

    def freeze(self) -> tuple[tuple[ScalarAlias, ...], tuple[StructuralType, ...]]:
        """Return aliases and types as tuples sorted by canonical name."""
        aliases = tuple(self.aliases[name] for name in sorted(self.aliases))
        types = tuple(self.types[name] for name in sorted(self.types))
        return aliases, types

    def __len__(self) -> int:
        return len(self._owners)


def type_owner(qname: QName) -> str:
    return f"type:{qname.key}"


def element_owner(qname: QName) -> str:
    return f"element:{qname.key}"


def anonymous_owner(owner_name: str, element_name: str) -> str:
    return f"anon:{owner_name}/{element_name}"
