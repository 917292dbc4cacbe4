# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Namespace-aware XML document tree for WSDL and XSD sources.

This module provides a small read-only tree built by a SAX content handler.
Unlike a plain element tree it keeps, for every element, the prefix bindings
in scope at that point of the document: XSD references such as
``type="tns:Forecast"`` are QNames written inside attribute values, and they
can only be resolved against the bindings of the element that carries them.

Classes:
    XmlNode - one element: namespace, local tag, attributes, bindings, children
    XmlTreeParser - SAX handler that builds XmlNode trees

Example:
    >>> from genro_wsdl.xml_tree import XmlTreeParser, XSD_NS
    >>>
    >>> root = XmlTreeParser.parse('<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"/>')
    >>> root.is_a(XSD_NS, 'schema')
    True
    >>> root.nsmap['xs']
    'http://www.w3.org/2001/XMLSchema'
"""

from __future__ import annotations

import io
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from xml import sax

XSD_NS = "http://www.w3.org/2001/XMLSchema"
XML_NS = "http://www.w3.org/XML/1998/namespace"
WSDL_NS = "http://schemas.xmlsoap.org/wsdl/"
SOAP_NS = "http://schemas.xmlsoap.org/wsdl/soap/"
SOAP12_NS = "http://schemas.xmlsoap.org/wsdl/soap12/"
SOAP_ENC_NS = "http://schemas.xmlsoap.org/soap/encoding/"
WSU_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd"
WSP_NAMESPACES = frozenset({
    "http://schemas.xmlsoap.org/ws/2004/09/policy",
    "http://www.w3.org/ns/ws-policy",
})

_EMPTY_MAP: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class XmlNode:
    """A parsed XML element.

    Attributes:
        namespace: Namespace URI of the element ('' when unqualified).
        tag: Local name of the element.
        attrs: Attribute values. Unqualified attributes are keyed by their
            local name, qualified ones by Clark notation '{uri}local'.
        nsmap: Prefix bindings in scope ('' is the default namespace).
        children: Child elements in document order.
        text: Concatenated character data directly inside the element.
        line: Line number of the start tag, when the parser reports it.
    """

    namespace: str
    tag: str
    attrs: Mapping[str, str] = field(default_factory=lambda: _EMPTY_MAP)
    nsmap: Mapping[str, str] = field(default_factory=lambda: _EMPTY_MAP)
    children: tuple[XmlNode, ...] = ()
    text: str = ""
    line: int | None = None

    def __repr__(self) -> str:
        return f"<XmlNode {{{self.namespace}}}{self.tag} children={len(self.children)}>"

    def is_a(self, namespace: str | frozenset[str], tag: str) -> bool:
        """Check namespace and local tag of this element."""
        if isinstance(namespace, frozenset):
            return self.tag == tag and self.namespace in namespace
        return self.tag == tag and self.namespace == namespace

    def get(self, name: str, default: Any = None) -> Any:
        """Return an attribute value by (unqualified or Clark) name."""
        return self.attrs.get(name, default)

    def iter_children(self, namespace: str | None = None, *tags: str) -> Iterator[XmlNode]:
        """Iterate child elements, optionally filtered by namespace and tags."""
        for child in self.children:
            if namespace is not None and child.namespace != namespace:
                continue
            if tags and child.tag not in tags:
                continue
            yield child

    def find(self, namespace: str, tag: str) -> XmlNode | None:
        """Return the first child with the given namespace and tag."""
        return next(self.iter_children(namespace, tag), None)

    def findall(self, namespace: str, tag: str) -> list[XmlNode]:
        """Return all children with the given namespace and tag."""
        return list(self.iter_children(namespace, tag))

    def walk(self) -> Iterator[XmlNode]:
        """Depth-first iteration over this element and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()


class XmlTreeParser(sax.handler.ContentHandler):
    """SAX handler that builds an XmlNode tree.

    Namespace processing is switched on, so element and attribute names
    arrive already split into (uri, local). Prefix mappings announced by
    startPrefixMapping are collected and merged into the bindings of the
    element that declares them; children inherit the parent bindings.

    Example:
        >>> root = XmlTreeParser.parse('<a xmlns:t="urn:t"><b ref="t:x"/></a>')
        >>> root.children[0].nsmap['t']
        'urn:t'
    """

    def __init__(self) -> None:
        super().__init__()
        self._locator: Any = None

    @classmethod
    def parse(cls, source: str | bytes) -> XmlNode:
        """Parse XML text and return the root element.

        Args:
            source: XML document as str or bytes.

        Returns:
            The root XmlNode.

        Raises:
            xml.sax.SAXParseException: If the text is not well-formed XML.
        """
        if isinstance(source, str):
            source = source.encode("utf-8")

        handler = cls()
        parser = sax.make_parser()
        parser.setFeature(sax.handler.feature_namespaces, True)
        parser.setFeature(sax.handler.feature_external_ges, False)
        parser.setContentHandler(handler)
        parser.parse(io.BytesIO(source))
        return handler.root

    def setDocumentLocator(self, locator: Any) -> None:
        self._locator = locator

    def startDocument(self) -> None:
        # each frame: (namespace, tag, attrs, nsmap, children, text parts, line)
        self.frames: list[tuple[str, str, dict, Mapping[str, str], list, list[str], int | None]] = []
        self.pending_prefixes: dict[str, str] = {}
        self.root: XmlNode | None = None

    def startPrefixMapping(self, prefix: str | None, uri: str) -> None:
        self.pending_prefixes[prefix or ""] = uri

    def endPrefixMapping(self, prefix: str | None) -> None:
        pass

    def startElementNS(self, name: tuple[str | None, str], qname: str | None, attributes: Any) -> None:
        uri, local = name
        parent_map = self.frames[-1][3] if self.frames else _EMPTY_MAP
        if self.pending_prefixes:
            nsmap: Mapping[str, str] = MappingProxyType({**parent_map, **self.pending_prefixes})
            self.pending_prefixes = {}
        else:
            nsmap = parent_map

        attrs: dict[str, str] = {}
        for (attr_uri, attr_local), value in attributes.items():
            key = f"{{{attr_uri}}}{attr_local}" if attr_uri else attr_local
            attrs[key] = value

        line = self._locator.getLineNumber() if self._locator is not None else None
        self.frames.append((uri or "", local, attrs, nsmap, [], [], line))

    def characters(self, content: str) -> None:
        if self.frames:
            self.frames[-1][5].append(content)

    def endElementNS(self, name: tuple[str | None, str], qname: str | None) -> None:
        namespace, tag, attrs, nsmap, children, text_parts, line = self.frames.pop()
        node = XmlNode(
            namespace=namespace,
            tag=tag,
            attrs=MappingProxyType(attrs),
            nsmap=nsmap,
            children=tuple(children),
            text="".join(text_parts).strip(),
            line=line,
        )
        if self.frames:
            self.frames[-1][4].append(node)
        else:
            self.root = node


def documentation_of(node: XmlNode) -> str | None:
    """Return the text of xs:annotation/xs:documentation or wsdl:documentation."""
    parts: list[str] = []
    for annotation in node.iter_children(XSD_NS, "annotation"):
        for doc in annotation.iter_children(XSD_NS, "documentation"):
            if doc.text:
                parts.append(doc.text)
    for doc in node.iter_children(WSDL_NS, "documentation"):
        if doc.text:
            parts.append(doc.text)
    return "\n".join(parts) if parts else None
