# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Schema Set - the immutable input of the schema compiler.

A SchemaSet gathers every XML Schema document reachable from a WSDL (or from
a standalone XSD): the schemas embedded in wsdl:types plus everything they
pull in through xs:include and xs:import. Each SchemaDocument keeps its
target namespace, its prefix bindings and its parsed xs:schema element.

Fetching is not done here. Callers pass the texts they already retrieved,
keyed by absolute location; assembly parses them, follows schemaLocation
references relative to the referencing document and visits every location
once, so include/import cycles terminate.

Example:
    >>> from genro_wsdl.schema_set import SchemaSet
    >>>
    >>> sources = {
    ...     '/svc/service.wsdl': wsdl_text,
    ...     '/svc/types.xsd': xsd_text,
    ... }
    >>> schema_set = SchemaSet.assemble('/svc/service.wsdl', sources)
    >>> [doc.location for doc in schema_set.documents]
    ['/svc/service.wsdl#schema0', '/svc/types.xsd']
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from urllib.parse import urljoin, urlsplit
from xml import sax

from .errors import ErrorContext, SchemaSetError
from .xml_tree import WSDL_NS, XSD_NS, XmlNode, XmlTreeParser

logger = logging.getLogger(__name__)

_URL_SCHEMES = ("http", "https", "file")


@dataclass(frozen=True)
class SchemaDocument:
    """One xs:schema element with its namespace context.

    Attributes:
        location: Absolute location of the document (inline WSDL schemas get
            a '#schemaN' fragment).
        target_namespace: targetNamespace, or the includer's namespace for a
            chameleon include.
        prefixes: Prefix bindings in scope on the xs:schema element.
        root: The parsed xs:schema element.
    """

    location: str
    target_namespace: str
    prefixes: Mapping[str, str]
    root: XmlNode


@dataclass(frozen=True)
class SchemaSet:
    """Immutable collection of schema documents plus the WSDL definitions.

    Attributes:
        location: Identifier of the entry document.
        documents: Schema documents in discovery order.
        definitions: The wsdl:definitions element, or None for a bare XSD.
    """

    location: str
    documents: tuple[SchemaDocument, ...]
    definitions: XmlNode | None = None

    @property
    def target_namespace(self) -> str:
        """targetNamespace of the WSDL, else of the first schema."""
        if self.definitions is not None:
            return self.definitions.get("targetNamespace", "")
        if self.documents:
            return self.documents[0].target_namespace
        return ""

    @classmethod
    def from_string(cls, text: str | bytes, location: str = "memory:service.wsdl") -> SchemaSet:
        """Build a SchemaSet from one self-contained WSDL or XSD text."""
        return cls.assemble(location, {location: text})

    @classmethod
    def assemble(cls, location: str, sources: Mapping[str, str | bytes]) -> SchemaSet:
        """Assemble a SchemaSet from already-fetched document texts.

        Args:
            location: Absolute location of the entry WSDL or XSD.
            sources: Texts keyed by absolute location. Every schemaLocation
                reached by include/import must be present.

        Returns:
            The assembled SchemaSet.

        Raises:
            SchemaSetError: If a text is not well-formed, the entry is neither
                wsdl:definitions nor xs:schema, or a referenced location is
                missing from sources.
        """
        return _Assembler(sources).run(location)


class _Assembler:
    """Walks include/import references over a mapping of texts."""

    def __init__(self, sources: Mapping[str, str | bytes]):
        self.sources = {normalize_location(k): v for k, v in sources.items()}
        self.visited: set[str] = set()
        self.documents: list[SchemaDocument] = []

    def run(self, location: str) -> SchemaSet:
        location = normalize_location(location)
        self.visited.add(location)
        root = self._parse(location, referenced_by=None)

        if root.is_a(WSDL_NS, "definitions"):
            types = root.find(WSDL_NS, "types")
            schemas = types.findall(XSD_NS, "schema") if types is not None else []
            for i, schema in enumerate(schemas):
                self._add_schema(schema, f"{location}#schema{i}", base=location, inherited_ns=None)
            logger.info("Assembled %d schema documents from %s", len(self.documents), location)
            return SchemaSet(location=location, documents=tuple(self.documents), definitions=root)

        if root.is_a(XSD_NS, "schema"):
            self._add_schema(root, location, base=location, inherited_ns=None)
            logger.info("Assembled %d schema documents from %s", len(self.documents), location)
            return SchemaSet(location=location, documents=tuple(self.documents), definitions=None)

        raise SchemaSetError(
            f"Not a WSDL 1.1 or XML Schema document: root element is '{root.tag}'",
            ErrorContext(
                element=root.tag,
                namespace=root.namespace,
                file=location,
                suggestion="Pass a document rooted at wsdl:definitions or xs:schema",
            ),
        )

    def _parse(self, location: str, referenced_by: str | None) -> XmlNode:
        text = self.sources.get(location)
        if text is None:
            raise SchemaSetError(
                f"Document '{location}' was not supplied",
                ErrorContext(
                    file=location,
                    referenced_by=referenced_by,
                    suggestion="Fetch the document and add it to sources under its absolute location",
                ),
            )
        try:
            return XmlTreeParser.parse(text)
        except sax.SAXParseException as exc:
            raise SchemaSetError(
                f"Malformed XML: {exc.getMessage()} (line {exc.getLineNumber()})",
                ErrorContext(file=location, referenced_by=referenced_by),
            ) from exc

    def _add_schema(
        self, schema: XmlNode, location: str, base: str, inherited_ns: str | None
    ) -> None:
        target_ns = schema.get("targetNamespace")
        if target_ns is None:
            target_ns = inherited_ns or ""
        self.documents.append(
            SchemaDocument(
                location=location,
                target_namespace=target_ns,
                prefixes=MappingProxyType(dict(schema.nsmap)),
                root=schema,
            )
        )
        for ref in schema.children:
            if ref.namespace != XSD_NS or ref.tag not in ("include", "import", "redefine"):
                continue
            schema_location = ref.get("schemaLocation")
            if not schema_location:
                continue
            absolute = resolve_location(base, schema_location)
            if absolute in self.visited:
                continue
            self.visited.add(absolute)
            logger.debug("Following %s of %s from %s", ref.tag, absolute, location)
            root = self._parse(absolute, referenced_by=location)
            if not root.is_a(XSD_NS, "schema"):
                raise SchemaSetError(
                    f"Document '{absolute}' is not an XML Schema",
                    ErrorContext(
                        element=root.tag,
                        namespace=root.namespace,
                        file=absolute,
                        referenced_by=location,
                    ),
                )
            chameleon_ns = target_ns if ref.tag != "import" else None
            self._add_schema(root, absolute, base=absolute, inherited_ns=chameleon_ns)


def _is_url(location: str) -> bool:
    return urlsplit(location).scheme in _URL_SCHEMES


def normalize_location(location: str) -> str:
    """Normalize a location so that equal documents compare equal."""
    if _is_url(location) or location.startswith("memory:"):
        return location
    return posixpath.normpath(location)


def resolve_location(base: str, reference: str) -> str:
    """Resolve a schemaLocation against the location of its document."""
    if _is_url(reference):
        return reference
    if _is_url(base):
        return urljoin(base, reference)
    if reference.startswith("/"):
        return posixpath.normpath(reference)
    if base.startswith("memory:"):
        return "memory:" + posixpath.normpath(
            posixpath.join(posixpath.dirname(base[len("memory:"):]), reference)
        )
    return posixpath.normpath(posixpath.join(posixpath.dirname(base), reference))
