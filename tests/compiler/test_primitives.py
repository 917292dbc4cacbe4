# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for primitive and enumeration mapping."""

import pytest

from genro_wsdl import MalformedContentModelError, TypeRef
from genro_wsdl.compiler.primitives import PrimitiveMapper
from genro_wsdl.options import CompilerOptions

SIMPLE_TYPES = """
<xs:simpleType name="Color">
  <xs:annotation><xs:documentation>Primary colors.</xs:documentation></xs:annotation>
  <xs:restriction base="xs:string">
    <xs:enumeration value="red"/>
    <xs:enumeration value="green"/>
  </xs:restriction>
</xs:simpleType>
<xs:simpleType name="Warm">
  <xs:restriction base="tns:Color"/>
</xs:simpleType>
<xs:simpleType name="Amount">
  <xs:restriction base="xs:decimal"><xs:fractionDigits value="2"/></xs:restriction>
</xs:simpleType>
<xs:simpleType name="Count">
  <xs:restriction base="xs:unsignedShort"/>
</xs:simpleType>
<xs:simpleType name="Sizes">
  <xs:list itemType="xs:int"/>
</xs:simpleType>
<xs:simpleType name="IntOrText">
  <xs:union memberTypes="xs:int xs:string"/>
</xs:simpleType>
<xs:simpleType name="Nested">
  <xs:restriction>
    <xs:simpleType><xs:restriction base="xs:boolean"/></xs:simpleType>
  </xs:restriction>
</xs:simpleType>
<xs:complexType name="Paint">
  <xs:sequence>
    <xs:element name="color" type="tns:Color"/>
    <xs:element name="finish">
      <xs:simpleType>
        <xs:restriction base="xs:string">
          <xs:enumeration value="matte"/>
          <xs:enumeration value="gloss"/>
        </xs:restriction>
      </xs:simpleType>
    </xs:element>
  </xs:sequence>
</xs:complexType>
"""


class TestBuiltins:
    """Tests for the built-in scalar table."""

    @pytest.fixture
    def mapper(self):
        return PrimitiveMapper(CompilerOptions())

    @pytest.mark.parametrize(
        "local,expected",
        [
            ("string", "text"),
            ("anyURI", "text"),
            ("base64Binary", "text"),
            ("boolean", "boolean"),
            ("int", "numeric"),
            ("short", "numeric"),
            ("unsignedByte", "numeric"),
            ("double", "numeric"),
            ("long", "text"),
            ("unsignedLong", "text"),
            ("integer", "text"),
            ("positiveInteger", "text"),
            ("decimal", "text"),
            ("dateTime", "text"),
            ("gYearMonth", "text"),
            ("duration", "text"),
            ("anyType", "opaque"),
            ("anySimpleType", "opaque"),
            ("somethingElse", "text"),
        ],
    )
    def test_scalar_for(self, mapper, local, expected):
        """Every built-in family maps to its scalar kind."""
        assert mapper.scalar_for(local) == expected

    def test_is_builtin(self, mapper):
        """Only known XML Schema built-ins are reported as such."""
        assert mapper.is_builtin("dateTime")
        assert not mapper.is_builtin("Array")


class TestSimpleTypes:
    """Tests for named and inline simple types."""

    @pytest.fixture
    def catalog(self, compile_xsd):
        return compile_xsd(SIMPLE_TYPES)

    def test_enumeration(self, catalog):
        """Enumeration facets become the alias literal values."""
        color = catalog.get_alias("Color")

        assert color.scalar == "text"
        assert color.base == "xs:string"
        assert color.enumeration == ("red", "green")
        assert color.documentation == "Primary colors."

    def test_enumeration_inherited_from_base_alias(self, catalog):
        """A restriction without facets keeps the base alias values."""
        warm = catalog.get_alias("Warm")

        assert warm.base == "{urn:test}Color"
        assert warm.enumeration == ("red", "green")

    def test_precision_sensitive_base(self, catalog):
        """A decimal restriction follows the decimal strategy."""
        assert catalog.get_alias("Amount").scalar == "text"
        assert catalog.get_alias("Amount").enumeration is None

    def test_numeric_restriction(self, catalog):
        """A fixed-width integer restriction is numeric."""
        assert catalog.get_alias("Count").scalar == "numeric"

    def test_list(self, catalog):
        """xs:list keeps the item scalar and sets is_list."""
        sizes = catalog.get_alias("Sizes")

        assert sizes.is_list is True
        assert sizes.scalar == "numeric"

    def test_union_is_text(self, catalog):
        """xs:union maps to text."""
        assert catalog.get_alias("IntOrText").scalar == "text"

    def test_inline_restriction_base(self, catalog):
        """A restriction with an inline base simple type uses it."""
        assert catalog.get_alias("Nested").scalar == "boolean"

    def test_element_typed_by_alias(self, catalog):
        """Elements reference aliases by name."""
        color = catalog.get_type("Paint").elements[0]

        assert color.type_ref.kind == "alias"
        assert color.type_ref.name == "Color"
        assert color.type_ref.scalar == "text"
        assert catalog.metadata.children["Paint"] == {"color": "Color"}

    def test_inline_enumeration(self, catalog):
        """An inline enumerated simple type stays a scalar with values."""
        finish = catalog.get_type("Paint").elements[1]

        assert finish.type_ref == TypeRef.scalar_ref("xs:string", "text", enumeration=("matte", "gloss"))
        assert finish.declared_type == "xs:string"

    def test_aliases_sorted(self, catalog):
        """Aliases come out in alphabetical order."""
        assert list(catalog.alias_names) == sorted(catalog.alias_names)

    def test_circular_restriction(self, compile_xsd):
        """Simple types restricting each other are rejected."""
        with pytest.raises(MalformedContentModelError, match="Circular simple type"):
            compile_xsd(
                '<xs:simpleType name="A"><xs:restriction base="tns:B"/></xs:simpleType>'
                '<xs:simpleType name="B"><xs:restriction base="tns:A"/></xs:simpleType>'
            )

    def test_simple_type_from_complex(self, compile_xsd):
        """A simple type cannot restrict a complex type."""
        with pytest.raises(MalformedContentModelError, match="derives from complex type"):
            compile_xsd(
                '<xs:complexType name="Box"/>'
                '<xs:simpleType name="Bad"><xs:restriction base="tns:Box"/></xs:simpleType>'
            )
