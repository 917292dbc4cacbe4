# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Schema compiler: Schema Set -> Compiled Catalog.

Pipeline:
    names           Name Resolver and declaration index
    schema_compiler Type Graph Compiler (two passes over a TypeRegistry)
    flattener       Content Model Flattener
    inheritance     Inheritance Resolver
    primitives      Primitive & Enumeration Mapper
    operations      Operation Extractor
    metadata        Marshalling Metadata Builder
    ordering        Deterministic emission ordering
"""

from .metadata import (
    build_metadata,
    children_types,
    detect_array_wrappers,
    unwrap_array_wrappers,
)
from .names import DeclarationIndex, NameResolver, pascal
from .ordering import ordered_attributes, ordered_members
from .primitives import BUILTIN_MAP, PrimitiveMapper
from .registry import TypeRegistry
from .schema_compiler import SchemaCompiler, compile_catalog

__all__ = [
    "BUILTIN_MAP",
    "DeclarationIndex",
    "NameResolver",
    "PrimitiveMapper",
    "SchemaCompiler",
    "TypeRegistry",
    "build_metadata",
    "children_types",
    "compile_catalog",
    "detect_array_wrappers",
    "ordered_attributes",
    "ordered_members",
    "pascal",
    "unwrap_array_wrappers",
]
