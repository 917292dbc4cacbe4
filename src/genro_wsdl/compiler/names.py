# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Name Resolver and declaration index.

References inside XSD attribute values (``type="tns:Forecast"``,
``ref="s:lang"``, ``base="xs:string"``) are prefixed names whose meaning
depends on the prefix bindings in scope where they are written. NameResolver
turns them into QNames; DeclarationIndex maps QNames to the global
declarations of every document in the Schema Set.

The canonical name of a declaration depends only on its QName, so the same
type referenced from two documents through two different prefixes always
lands on the same catalog entry.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..catalog import QName
from ..errors import AmbiguousNameCollisionError, ErrorContext, UnresolvedReferenceError
from ..schema_set import SchemaDocument, SchemaSet
from ..xml_tree import XML_NS, XSD_NS, XmlNode

logger = logging.getLogger(__name__)

# symbol space -> global declaration tags indexed in it
SYMBOL_SPACES: dict[str, tuple[str, ...]] = {
    "type": ("simpleType", "complexType"),
    "element": ("element",),
    "attribute": ("attribute",),
    "group": ("group",),
    "attributeGroup": ("attributeGroup",),
}

_PASCAL_RE = re.compile(r"(^|[_\-\s])(\w)")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


def pascal(name: str) -> str:
    """Convert a local name to its PascalCase canonical form.

    Example:
        >>> pascal('temp')
        'Temp'
        >>> pascal('weather-return_item')
        'WeatherReturnItem'
    """
    converted = _PASCAL_RE.sub(lambda m: m.group(2).upper(), name)
    return _NON_ALNUM_RE.sub("", converted)


def split_prefixed(reference: str) -> tuple[str | None, str]:
    """Split 'prefix:local' into (prefix, local); prefix is None if absent."""
    if ":" in reference:
        prefix, local = reference.split(":", 1)
        return prefix, local
    return None, reference


class NameResolver:
    """Resolve prefixed references against in-scope bindings."""

    def qualify(self, reference: str, node: XmlNode, document: SchemaDocument) -> QName:
        """Return the QName denoted by 'reference' at 'node'.

        An unprefixed reference takes the default namespace binding when one
        is in scope, else the document's target namespace.

        Raises:
            UnresolvedReferenceError: If the prefix has no binding in scope.
        """
        prefix, local = split_prefixed(reference.strip())
        if prefix is None:
            namespace = node.nsmap.get("", document.target_namespace)
            return QName(namespace, local)
        if prefix == "xml":
            return QName(XML_NS, local)
        namespace = node.nsmap.get(prefix)
        if namespace is None:
            raise UnresolvedReferenceError(
                f"Namespace prefix '{prefix}' is not bound",
                ErrorContext(
                    element=reference,
                    file=document.location,
                    suggestion=f"Declare xmlns:{prefix} on the schema or an enclosing element",
                ),
            )
        return QName(namespace, local)


@dataclass(frozen=True)
class Declaration:
    """A global declaration with the document it lives in."""

    qname: QName
    node: XmlNode
    document: SchemaDocument

    @property
    def kind(self) -> str:
        return self.node.tag


class DeclarationIndex:
    """Global declarations of a Schema Set, by symbol space and QName.

    Type definitions (simple and complex) share one symbol space, as in XML
    Schema; elements, attributes, groups and attribute groups each have
    their own.

    Raises:
        AmbiguousNameCollisionError: If two distinct declarations share a
            QName in the same symbol space.
    """

    def __init__(self, schema_set: SchemaSet):
        self.spaces: dict[str, dict[QName, Declaration]] = {space: {} for space in SYMBOL_SPACES}
        for document in schema_set.documents:
            self._index_document(document)
        logger.debug(
            "Indexed %s",
            ", ".join(f"{len(decls)} {space}" for space, decls in self.spaces.items()),
        )

    def _index_document(self, document: SchemaDocument) -> None:
        for node in document.root.children:
            if node.namespace != XSD_NS:
                continue
            for space, tags in SYMBOL_SPACES.items():
                if node.tag not in tags:
                    continue
                name = node.get("name")
                if not name:
                    continue
                qname = QName(document.target_namespace, name)
                existing = self.spaces[space].get(qname)
                if existing is not None and existing.node is not node:
                    raise AmbiguousNameCollisionError(
                        f"Duplicate {space} declaration '{name}'",
                        ErrorContext(
                            element=name,
                            namespace=qname.namespace,
                            referenced_by=existing.document.location,
                            file=document.location,
                            suggestion="Remove one of the declarations or move it to another namespace",
                        ),
                    )
                self.spaces[space][qname] = Declaration(qname, node, document)

    def lookup(self, space: str, qname: QName) -> Declaration | None:
        return self.spaces[space].get(qname)

    def declarations(self, space: str) -> list[Declaration]:
        """Declarations of one symbol space, in document order."""
        return list(self.spaces[space].values())
