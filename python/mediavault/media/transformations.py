"""Serialization of transformation components to provider URL syntax.

A component such as ``{"quality": "auto:good", "fetch_format": "auto"}``
becomes ``q_auto:good,f_auto``; a chain of components is joined with ``/``.
Eager components carry a target ``format`` that becomes a file-extension
suffix, and multiple eager entries are joined with ``|``.
"""

from collections.abc import Iterable, Mapping
from typing import Any

PARAM_ABBREVIATIONS = {
    "angle": "a",
    "bit_rate": "br",
    "crop": "c",
    "effect": "e",
    "fetch_format": "f",
    "flags": "fl",
    "gravity": "g",
    "height": "h",
    "quality": "q",
    "width": "w",
}


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ".".join(str(v) for v in value)
    return str(value)


def component_to_string(component: Mapping[str, Any]) -> str:
    """Serialize one component; keys are emitted in sorted abbreviation order.

    Raises:
        ValueError: On a parameter name with no known abbreviation.
    """
    parts = []
    for key, value in component.items():
        if key == "format" or value is None:
            continue
        try:
            abbreviation = PARAM_ABBREVIATIONS[key]
        except KeyError:
            raise ValueError(f"Unknown transformation parameter: {key}") from None
        parts.append(f"{abbreviation}_{_format_value(value)}")
    return ",".join(sorted(parts))


def chain_to_string(components: Iterable[Mapping[str, Any]]) -> str:
    """Serialize a transformation chain, skipping empty components."""
    return "/".join(s for s in (component_to_string(c) for c in components) if s)


def eager_to_string(eager: Iterable[Mapping[str, Any]]) -> str:
    """Serialize eager derivatives, e.g. ``q_auto:good/mp4|q_auto:low/webm``."""
    entries = []
    for component in eager:
        entry = component_to_string(component)
        fmt = component.get("format")
        if fmt:
            entry = f"{entry}/{fmt}" if entry else str(fmt)
        entries.append(entry)
    return "|".join(entries)
