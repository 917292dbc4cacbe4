# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for xml_tree module."""

from xml import sax

import pytest

from genro_wsdl.xml_tree import WSDL_NS, XSD_NS, XmlNode, XmlTreeParser, documentation_of

SCHEMA = """\
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" xmlns:tns="urn:a" targetNamespace="urn:a">
  <xs:complexType name="Item">
    <xs:annotation><xs:documentation>An item.</xs:documentation></xs:annotation>
    <xs:sequence xmlns:other="urn:other">
      <xs:element name="code" type="other:Code"/>
    </xs:sequence>
    <xs:attribute name="id" type="xs:ID"/>
  </xs:complexType>
</xs:schema>
"""


class TestXmlTreeParser:
    """Tests for XmlTreeParser."""

    def test_parse_root(self):
        """Root element carries namespace, tag and attributes."""
        root = XmlTreeParser.parse(SCHEMA)

        assert root.is_a(XSD_NS, "schema")
        assert root.get("targetNamespace") == "urn:a"

    def test_prefix_bindings_inherited(self):
        """Children inherit bindings and add their own."""
        root = XmlTreeParser.parse(SCHEMA)
        sequence = root.find(XSD_NS, "complexType").find(XSD_NS, "sequence")
        element = sequence.find(XSD_NS, "element")

        assert element.nsmap["tns"] == "urn:a"
        assert element.nsmap["other"] == "urn:other"
        assert "other" not in root.nsmap

    def test_parse_bytes(self):
        """Bytes input is accepted."""
        root = XmlTreeParser.parse(b'<a xmlns="urn:x"><b/></a>')

        assert root.namespace == "urn:x"
        assert root.nsmap[""] == "urn:x"
        assert root.children[0].namespace == "urn:x"

    def test_qualified_attributes_use_clark_keys(self):
        """Namespaced attributes are keyed by {uri}local."""
        root = XmlTreeParser.parse('<a xmlns:w="urn:w" w:Id="p1" plain="v"/>')

        assert root.get("{urn:w}Id") == "p1"
        assert root.get("plain") == "v"

    def test_text_is_stripped(self):
        """Character data is concatenated and stripped."""
        root = XmlTreeParser.parse("<a>\n  hello  \n</a>")

        assert root.text == "hello"

    def test_line_numbers(self):
        """Start tags record their line number."""
        root = XmlTreeParser.parse(SCHEMA)

        assert root.find(XSD_NS, "complexType").line == 2

    def test_malformed_raises(self):
        """Not well-formed text raises SAXParseException."""
        with pytest.raises(sax.SAXParseException):
            XmlTreeParser.parse("<a><b></a>")


class TestXmlNode:
    """Tests for XmlNode navigation."""

    def test_default_maps(self):
        """A node built without attrs or bindings gets empty read-only maps."""
        node = XmlNode(XSD_NS, "schema")

        assert dict(node.attrs) == {}
        assert dict(node.nsmap) == {}
        assert node.get("name") is None
        with pytest.raises(TypeError):
            node.attrs["name"] = "x"

    def test_iter_children_filters(self):
        """iter_children filters by namespace and tags."""
        complex_type = XmlTreeParser.parse(SCHEMA).find(XSD_NS, "complexType")

        tags = [c.tag for c in complex_type.iter_children(XSD_NS, "sequence", "attribute")]

        assert tags == ["sequence", "attribute"]

    def test_findall_and_walk(self):
        """findall returns direct children, walk descends."""
        root = XmlTreeParser.parse(SCHEMA)

        assert len(root.findall(XSD_NS, "element")) == 0
        assert [n.get("name") for n in root.walk() if n.tag == "element"] == ["code"]

    def test_documentation_of(self):
        """xs:annotation/xs:documentation text is extracted."""
        complex_type = XmlTreeParser.parse(SCHEMA).find(XSD_NS, "complexType")

        assert documentation_of(complex_type) == "An item."

    def test_documentation_of_wsdl(self):
        """wsdl:documentation is extracted too."""
        op = XmlTreeParser.parse(
            f'<operation xmlns="{WSDL_NS}"><documentation>Does things</documentation></operation>'
        )

        assert documentation_of(op) == "Does things"

    def test_documentation_absent(self):
        """No documentation gives None."""
        assert documentation_of(XmlTreeParser.parse("<a/>")) is None
