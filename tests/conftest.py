# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from genro_wsdl import SchemaSet, compile_catalog

DATA_DIR = Path(__file__).parent / "data"

TEST_NS = "urn:test"

SCHEMA_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           xmlns:tns="urn:test"
           targetNamespace="urn:test"
           elementFormDefault="qualified">
{body}
</xs:schema>
"""


@pytest.fixture(scope="session")
def weather_text():
    """Text of the weather service WSDL."""
    return (DATA_DIR / "weather.wsdl").read_text()


@pytest.fixture(scope="session")
def weather_set(weather_text):
    """Schema Set of the weather service."""
    return SchemaSet.from_string(weather_text, "/services/weather.wsdl")


@pytest.fixture(scope="session")
def weather_catalog(weather_set):
    """Weather service compiled with default options."""
    return compile_catalog(weather_set)


@pytest.fixture
def xsd_set():
    """Build a Schema Set from the body of an xs:schema in namespace urn:test."""

    def build(body, location="memory:test.xsd"):
        return SchemaSet.from_string(SCHEMA_TEMPLATE.format(body=body), location)

    return build


@pytest.fixture
def compile_xsd(xsd_set):
    """Compile the body of an xs:schema in namespace urn:test."""

    def compile_body(body, **options):
        return compile_catalog(xsd_set(body), options)

    return compile_body
