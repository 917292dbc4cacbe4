# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for complexContent and simpleContent derivation."""

import pytest

from genro_wsdl import MalformedContentModelError, TypeRef

HIERARCHY = """
<xs:complexType name="Base">
  <xs:sequence>
    <xs:element name="id" type="xs:int"/>
  </xs:sequence>
  <xs:attribute name="version" type="xs:int"/>
</xs:complexType>
<xs:complexType name="Derived">
  <xs:complexContent>
    <xs:extension base="tns:Base">
      <xs:sequence>
        <xs:element name="label" type="xs:string" minOccurs="0"/>
      </xs:sequence>
      <xs:attribute name="flag" type="xs:boolean"/>
    </xs:extension>
  </xs:complexContent>
</xs:complexType>
<xs:complexType name="Leaf">
  <xs:complexContent>
    <xs:extension base="tns:Derived">
      <xs:sequence>
        <xs:element name="extra" type="xs:string"/>
      </xs:sequence>
    </xs:extension>
  </xs:complexContent>
</xs:complexType>
<xs:complexType name="Narrow">
  <xs:complexContent>
    <xs:restriction base="tns:Base">
      <xs:sequence>
        <xs:element name="id" type="xs:int"/>
      </xs:sequence>
    </xs:restriction>
  </xs:complexContent>
</xs:complexType>
<xs:complexType name="Free">
  <xs:complexContent>
    <xs:extension base="xs:anyType">
      <xs:sequence><xs:element name="any" type="xs:string"/></xs:sequence>
    </xs:extension>
  </xs:complexContent>
</xs:complexType>
"""


class TestComplexContent:
    """Tests for complexContent extension and restriction."""

    @pytest.fixture
    def catalog(self, compile_xsd):
        return compile_xsd(HIERARCHY)

    def test_extension_full_view(self, catalog):
        """Inherited members come first, local members after."""
        derived = catalog.get_type("Derived")

        assert derived.base == "Base"
        assert derived.element_names == ("id", "label")
        assert derived.attribute_names == ("version", "flag")
        assert tuple(e.name for e in derived.local_elements) == ("label",)
        assert tuple(a.name for a in derived.local_attributes) == ("flag",)

    def test_extension_chain(self, catalog):
        """Bases are resolved transitively."""
        leaf = catalog.get_type("Leaf")

        assert leaf.base == "Derived"
        assert leaf.element_names == ("id", "label", "extra")
        assert leaf.attribute_names == ("version", "flag")
        assert leaf.is_inherited("label")
        assert not leaf.is_inherited("extra")

    def test_local_members_disjoint_from_base(self, catalog):
        """No type redeclares a member of its base's full view."""
        for structural_type in catalog.types:
            if structural_type.base is None:
                continue
            base = catalog.get_type(structural_type.base)
            local = {e.name for e in structural_type.local_elements}
            local |= {a.name for a in structural_type.local_attributes}
            inherited = set(base.element_names) | set(base.attribute_names)
            assert not local & inherited

    def test_restriction_is_standalone(self, catalog):
        """A complexContent restriction keeps only its own members and no base."""
        narrow = catalog.get_type("Narrow")

        assert narrow.base is None
        assert narrow.element_names == ("id",)
        assert narrow.attribute_names == ()

    def test_any_type_base(self, catalog):
        """Extending xs:anyType records no base."""
        free = catalog.get_type("Free")

        assert free.base is None
        assert free.element_names == ("any",)

    def test_redeclared_member_is_folded(self, compile_xsd):
        """A local member repeating an inherited one with its type joins the inherited slot."""
        body = HIERARCHY + """
        <xs:complexType name="Again">
          <xs:complexContent>
            <xs:extension base="tns:Derived">
              <xs:sequence>
                <xs:element name="id" type="xs:int" minOccurs="0" maxOccurs="3"/>
                <xs:element name="note" type="xs:string"/>
              </xs:sequence>
              <xs:attribute name="version" type="xs:int" use="required"/>
            </xs:extension>
          </xs:complexContent>
        </xs:complexType>
        """
        again = compile_xsd(body).get_type("Again")
        member = again.elements[0]

        assert again.element_names == ("id", "label", "note")
        assert (member.min_occurs, member.max_occurs, member.optional) == (0, 3, True)
        assert tuple(e.name for e in again.local_elements) == ("note",)
        assert again.attribute_names == ("version", "flag")
        assert again.attributes[0].required
        assert again.local_attributes == ()
        assert again.is_inherited("id")

    def test_redeclared_member_with_other_type(self, compile_xsd):
        """A local member changing the type of an inherited one is rejected."""
        body = HIERARCHY + """
        <xs:complexType name="Clash">
          <xs:complexContent>
            <xs:extension base="tns:Derived">
              <xs:sequence><xs:element name="id" type="xs:string"/></xs:sequence>
            </xs:extension>
          </xs:complexContent>
        </xs:complexType>
        """
        with pytest.raises(MalformedContentModelError, match="redeclares 'id'.*different type"):
            compile_xsd(body)

    def test_circular_derivation(self, compile_xsd):
        """Types extending each other are rejected."""
        with pytest.raises(MalformedContentModelError, match="Circular type derivation"):
            compile_xsd(
                '<xs:complexType name="A"><xs:complexContent><xs:extension base="tns:B"/>'
                "</xs:complexContent></xs:complexType>"
                '<xs:complexType name="B"><xs:complexContent><xs:extension base="tns:A"/>'
                "</xs:complexContent></xs:complexType>"
            )

    def test_simple_base_in_complex_content(self, compile_xsd):
        """complexContent cannot extend a simple type."""
        with pytest.raises(MalformedContentModelError, match="is not a complex type"):
            compile_xsd(
                '<xs:complexType name="A"><xs:complexContent><xs:extension base="xs:string"/>'
                "</xs:complexContent></xs:complexType>"
            )

    def test_missing_derivation(self, compile_xsd):
        """complexContent needs an extension or a restriction."""
        with pytest.raises(MalformedContentModelError, match="neither extension nor restriction"):
            compile_xsd('<xs:complexType name="A"><xs:complexContent/></xs:complexType>')

    def test_unresolved_base_is_lenient(self, compile_xsd):
        """An undeclared base is a diagnostic; local members are kept."""
        catalog = compile_xsd(
            '<xs:complexType name="A"><xs:complexContent><xs:extension base="tns:Missing">'
            '<xs:sequence><xs:element name="x" type="xs:int"/></xs:sequence>'
            "</xs:extension></xs:complexContent></xs:complexType>"
        )
        a = catalog.get_type("A")

        assert a.base is None
        assert a.element_names == ("x",)
        assert catalog.unresolved == ("{urn:test}Missing",)

    def test_choice_indices_shift(self, compile_xsd):
        """Local choice groups are numbered after the inherited ones."""
        catalog = compile_xsd(
            """
            <xs:complexType name="P">
              <xs:choice><xs:element name="a" type="xs:int"/><xs:element name="b" type="xs:int"/></xs:choice>
            </xs:complexType>
            <xs:complexType name="C">
              <xs:complexContent>
                <xs:extension base="tns:P">
                  <xs:choice><xs:element name="c" type="xs:int"/><xs:element name="d" type="xs:int"/></xs:choice>
                </xs:extension>
              </xs:complexContent>
            </xs:complexType>
            """,
            choice="union",
        )
        c = catalog.get_type("C")

        assert [g.index for g in c.choices] == [0, 1]
        assert c.elements[2].choice.group == 1


SIMPLE_CONTENT = """
<xs:simpleType name="Color">
  <xs:restriction base="xs:string">
    <xs:enumeration value="red"/>
  </xs:restriction>
</xs:simpleType>
<xs:complexType name="Price">
  <xs:simpleContent>
    <xs:extension base="xs:decimal">
      <xs:attribute name="currency" type="xs:string" use="required"/>
    </xs:extension>
  </xs:simpleContent>
</xs:complexType>
<xs:complexType name="Tagged">
  <xs:simpleContent>
    <xs:extension base="tns:Color">
      <xs:attribute name="note" type="xs:string"/>
    </xs:extension>
  </xs:simpleContent>
</xs:complexType>
<xs:complexType name="Discount">
  <xs:simpleContent>
    <xs:extension base="tns:Price">
      <xs:attribute name="percent" type="xs:boolean"/>
    </xs:extension>
  </xs:simpleContent>
</xs:complexType>
"""


class TestSimpleContent:
    """Tests for simpleContent derivation."""

    @pytest.fixture
    def catalog(self, compile_xsd):
        return compile_xsd(SIMPLE_CONTENT)

    def test_builtin_base(self, catalog):
        """The '$value' slot carries the built-in base representation."""
        price = catalog.get_type("Price")

        assert price.simple_content is True
        assert price.element_names == ("$value",)
        assert price.text_slot.type_ref == TypeRef.scalar_ref("xs:decimal", "text")
        assert (price.text_slot.min_occurs, price.text_slot.max_occurs) == (0, 1)
        assert price.attribute_names == ("currency",)

    def test_alias_base(self, catalog):
        """An alias base is referenced by name."""
        tagged = catalog.get_type("Tagged")

        assert tagged.text_slot.type_ref.kind == "alias"
        assert tagged.text_slot.type_ref.name == "Color"

    def test_structural_base(self, catalog):
        """A simpleContent base type is referenced, not merged."""
        discount = catalog.get_type("Discount")

        assert discount.base is None
        assert discount.text_slot.type_ref == TypeRef.structure_ref("Price", "{urn:test}Price")
        assert discount.attribute_names == ("percent",)

    def test_metadata_routes_text_slot(self, catalog):
        """Named '$value' representations appear in the child routing table."""
        assert catalog.metadata.children["Tagged"] == {"$value": "Color"}
        assert catalog.metadata.children["Price"] == {}
