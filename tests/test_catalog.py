# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the Catalog model."""

import dataclasses

import pytest

from genro_wsdl import Attribute, Element, QName, StructuralType, TypeRef

TEXT = TypeRef.scalar_ref("xs:string", "text")


class TestQName:
    """Tests for QName."""

    def test_key_and_label(self):
        """Built-ins get an xs: label, other names Clark notation."""
        builtin = QName("http://www.w3.org/2001/XMLSchema", "int")
        custom = QName("urn:x", "Foo")

        assert builtin.label == "xs:int"
        assert custom.key == custom.label == "{urn:x}Foo"
        assert str(custom) == "{urn:x}Foo"

    def test_ordering(self):
        """QNames sort by namespace then local name."""
        assert sorted([QName("urn:b", "A"), QName("urn:a", "Z")])[0] == QName("urn:a", "Z")


class TestTypeRef:
    """Tests for TypeRef constructors."""

    def test_kinds(self):
        """Named kinds are alias and structure; unknown is unresolved."""
        assert not TEXT.is_named
        assert TypeRef.structure_ref("Foo", "{urn:x}Foo").is_named
        assert TypeRef.unknown_ref("tns:Gone").unresolved
        assert TypeRef.unknown_ref("tns:Gone").scalar == "opaque"


class TestStructuralType:
    """Tests for StructuralType helpers."""

    def test_array_wrapper(self):
        """One repeatable element and no attributes make a wrapper."""
        item = Element("Item", "xs:string", TEXT, min_occurs=0, max_occurs=None)
        wrapper = StructuralType("ArrayOfItem", QName("urn:x", "ArrayOfItem"), elements=(item,))
        attributed = dataclasses.replace(
            wrapper, attributes=(Attribute("count", "xs:int", TypeRef.scalar_ref("xs:int", "numeric")),)
        )

        assert wrapper.is_array_wrapper
        assert not attributed.is_array_wrapper

    def test_is_inherited(self):
        """Members outside the local lists come from the base."""
        own = Element("own", "xs:string", TEXT)
        inherited = Element("old", "xs:string", TEXT)
        derived = StructuralType(
            "D", QName("urn:x", "D"), elements=(inherited, own), local_elements=(own,), base="B"
        )

        assert derived.is_inherited("old")
        assert not derived.is_inherited("own")
        assert not derived.is_inherited("missing")

    def test_frozen(self):
        """Model objects are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            TEXT.scalar = "numeric"


class TestCatalogLookup:
    """Tests for Catalog lookups."""

    def test_lookups(self, weather_catalog):
        """Lookups by name return the entry or None."""
        assert weather_catalog.get_type("Forecast").name == "Forecast"
        assert weather_catalog.get_type("Nope") is None
        assert weather_catalog.get_alias("Nope") is None
        assert weather_catalog.get_operation("GetCityWeatherByZIP").name == "GetCityWeatherByZIP"
