"""Identifier naming helpers for generated code and output files."""

import re
from pathlib import Path

_SEPARATORS_RE = re.compile(r"[\s\-.]+")
_INVALID_CHARS_RE = re.compile(r"[^0-9A-Za-z_]")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case(name: str) -> str:
    """
    Normalize a free-form name to snake_case.

    Example:
        >>> snake_case("Arrow-Left icon")
        'arrow_left_icon'
    """
    name = _SEPARATORS_RE.sub("_", name.strip())
    name = _CAMEL_BOUNDARY_RE.sub("_", name)
    name = _INVALID_CHARS_RE.sub("", name)
    return re.sub(r"_+", "_", name).strip("_").lower()


def upper_camel_case(name: str) -> str:
    """
    Convert a snake_case (or free-form) name to UpperCamelCase.

    Example:
        >>> upper_camel_case("arrow_left_1")
        'ArrowLeft1'
    """
    return "".join(part[:1].upper() + part[1:] for part in snake_case(name).split("_") if part)


def image_name_for(path: str, page_index: int = 0) -> str:
    """Image name for a source file; pages after the first get an index suffix."""
    base = snake_case(Path(path).stem)
    return base if page_index == 0 else f"{base}_{page_index}"
