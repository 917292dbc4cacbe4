# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""One-call pipeline: document texts -> Catalog."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .catalog import Catalog
from .compiler import compile_catalog
from .options import resolve_options
from .schema_set import SchemaSet


def compile_wsdl(
    location: str,
    sources: Mapping[str, str | bytes],
    options: Mapping[str, Any] | None = None,
    **overrides: Any,
) -> Catalog:
    """Assemble the Schema Set rooted at 'location' and compile it.

    Args:
        location: Absolute location of the entry WSDL or XSD.
        sources: Already-fetched texts keyed by absolute location.
        options: Partial compiler options (snake_case or camelCase keys).
        **overrides: Individual compiler options, applied last.

    Returns:
        The compiled Catalog.

    Example:
        >>> catalog = compile_wsdl('/svc/weather.wsdl', {'/svc/weather.wsdl': text},
        ...                        choice='union', client_name='Weather')
        >>> catalog.display_name
        'Weather'
    """
    resolved = resolve_options(options, **overrides)
    return compile_catalog(SchemaSet.assemble(location, sources), resolved)
