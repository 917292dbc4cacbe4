# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""WSDL/XSD schema compiler.

Turns the XML Schema documents of a SOAP service description into one
immutable Compiled Catalog: named scalar aliases, flattened structural
types with resolved inheritance and cardinality, operations and the
marshalling tables used by generated runtime code.

Example:
    >>> from genro_wsdl import SchemaSet, compile_catalog
    >>>
    >>> schema_set = SchemaSet.from_string(wsdl_text, 'memory:weather.wsdl')
    >>> catalog = compile_catalog(schema_set)
    >>> [e.name for e in catalog.get_type('WeatherReturn').elements][:2]
    ['Success', 'ResponseText']
"""

from .catalog import (
    TEXT_SLOT,
    Attribute,
    Catalog,
    ChoiceGroup,
    ChoiceMember,
    Element,
    MarshallingMetadata,
    Operation,
    PropertyInfo,
    QName,
    ScalarAlias,
    StructuralType,
    TypeRef,
)
from .compiler import compile_catalog
from .errors import (
    AmbiguousNameCollisionError,
    Diagnostic,
    ErrorContext,
    MalformedContentModelError,
    SchemaSetError,
    UnresolvedReferenceError,
    WsdlCompilationError,
)
from .options import CompilerOptions, resolve_options
from .pipeline import compile_wsdl
from .schema_set import SchemaDocument, SchemaSet
from .serialization import catalog_from_dict, catalog_to_dict, from_json, from_tytx, to_json, to_tytx

__all__ = [
    "TEXT_SLOT",
    "AmbiguousNameCollisionError",
    "Attribute",
    "Catalog",
    "ChoiceGroup",
    "ChoiceMember",
    "CompilerOptions",
    "Diagnostic",
    "Element",
    "ErrorContext",
    "MalformedContentModelError",
    "MarshallingMetadata",
    "Operation",
    "PropertyInfo",
    "QName",
    "ScalarAlias",
    "SchemaDocument",
    "SchemaSet",
    "SchemaSetError",
    "StructuralType",
    "TypeRef",
    "UnresolvedReferenceError",
    "WsdlCompilationError",
    "catalog_from_dict",
    "catalog_to_dict",
    "compile_catalog",
    "compile_wsdl",
    "from_json",
    "from_tytx",
    "resolve_options",
    "to_json",
    "to_tytx",
]

__version__ = "0.1.0"
