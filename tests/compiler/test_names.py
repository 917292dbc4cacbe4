# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for name resolution, declaration index and type registry."""

import pytest

from genro_wsdl import AmbiguousNameCollisionError, QName, SchemaSet, UnresolvedReferenceError
from genro_wsdl.compiler.names import DeclarationIndex, NameResolver, pascal, split_prefixed
from genro_wsdl.compiler.registry import TypeRegistry
from genro_wsdl.xml_tree import XML_NS, XSD_NS


class TestPascal:
    """Tests for canonical name casing."""

    @pytest.mark.parametrize(
        "local,expected",
        [
            ("temp", "Temp"),
            ("POP", "POP"),
            ("ArrayOfForecast", "ArrayOfForecast"),
            ("line_item", "LineItem"),
            ("order-line", "OrderLine"),
            ("a.b", "Ab"),
        ],
    )
    def test_pascal(self, local, expected):
        """Local names become PascalCase identifiers."""
        assert pascal(local) == expected

    def test_split_prefixed(self):
        """Prefix and local part are split on the first colon."""
        assert split_prefixed("tns:Foo") == ("tns", "Foo")
        assert split_prefixed("Foo") == (None, "Foo")


class TestNameResolver:
    """Tests for NameResolver.qualify."""

    @pytest.fixture
    def document(self, xsd_set):
        schema_set = xsd_set('<xs:element name="x" type="xs:string"/>')
        return schema_set.documents[0]

    def test_prefixed(self, document):
        """Prefixes resolve through the bindings of the node."""
        qname = NameResolver().qualify("xs:int", document.root, document)

        assert qname == QName(XSD_NS, "int")
        assert qname.label == "xs:int"

    def test_unprefixed_falls_back_to_target_namespace(self, document):
        """Without a default binding the target namespace is used."""
        assert NameResolver().qualify("Foo", document.root, document) == QName("urn:test", "Foo")

    def test_unprefixed_uses_default_namespace(self):
        """A default namespace binding wins over the target namespace."""
        schema_set = SchemaSet.from_string(
            '<schema xmlns="http://www.w3.org/2001/XMLSchema" targetNamespace="urn:t"/>',
            "memory:d.xsd",
        )
        document = schema_set.documents[0]

        assert NameResolver().qualify("string", document.root, document) == QName(XSD_NS, "string")

    def test_xml_prefix_is_implicit(self, document):
        """The xml prefix is always bound."""
        assert NameResolver().qualify("xml:lang", document.root, document) == QName(XML_NS, "lang")

    def test_unbound_prefix(self, document):
        """An unbound prefix raises UnresolvedReferenceError."""
        with pytest.raises(UnresolvedReferenceError, match="'nope' is not bound"):
            NameResolver().qualify("nope:Foo", document.root, document)

    def test_same_qname_through_different_prefixes(self):
        """Two prefixes bound to one namespace give the same QName."""
        schema_set = SchemaSet.from_string(
            '<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" xmlns:a="urn:t" xmlns:b="urn:t"'
            ' targetNamespace="urn:t"/>',
            "memory:p.xsd",
        )
        document = schema_set.documents[0]
        resolver = NameResolver()

        assert resolver.qualify("a:Foo", document.root, document) == resolver.qualify(
            "b:Foo", document.root, document
        )


class TestDeclarationIndex:
    """Tests for DeclarationIndex."""

    def test_symbol_spaces(self, xsd_set):
        """Types, elements and groups are indexed separately."""
        index = DeclarationIndex(
            xsd_set(
                '<xs:complexType name="Item"/>'
                '<xs:element name="Item" type="tns:Item"/>'
                '<xs:group name="Item"><xs:sequence/></xs:group>'
            )
        )

        qname = QName("urn:test", "Item")
        assert index.lookup("type", qname).kind == "complexType"
        assert index.lookup("element", qname).kind == "element"
        assert index.lookup("group", qname).kind == "group"
        assert index.lookup("attribute", qname) is None

    def test_simple_and_complex_share_space(self, xsd_set):
        """A simple and a complex type with one name collide."""
        with pytest.raises(AmbiguousNameCollisionError, match="Duplicate type"):
            DeclarationIndex(
                xsd_set(
                    '<xs:complexType name="Code"/>'
                    '<xs:simpleType name="Code"><xs:restriction base="xs:string"/></xs:simpleType>'
                )
            )


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_reserve_is_idempotent_per_owner(self):
        """The same owner always gets the same name."""
        registry = TypeRegistry()
        qname = QName("urn:t", "temp")

        assert registry.reserve("type:{urn:t}temp", "Temp", qname) == "Temp"
        assert registry.reserve("type:{urn:t}temp", "Other", qname) == "Temp"
        assert registry.name_for("type:{urn:t}temp") == "Temp"
        assert len(registry) == 1

    def test_collision_between_owners(self):
        """Two owners cannot share a canonical name."""
        registry = TypeRegistry()
        registry.reserve("type:{urn:a}temp", "Temp", QName("urn:a", "temp"))

        with pytest.raises(AmbiguousNameCollisionError) as exc_info:
            registry.reserve("type:{urn:b}Temp", "Temp", QName("urn:b", "Temp"))

        assert exc_info.value.context.referenced_by == "type:{urn:a}temp"
        assert "Temp" in exc_info.value.to_user_message()
