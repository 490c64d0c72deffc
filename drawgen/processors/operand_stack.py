"""
Typed operand stack for content stream operators.

Operands are popped last-pushed-first. Each composite pop returns None when
its leading operand is cleanly absent (empty stack) and raises
MalformedInputError when a later operand is missing or has the wrong type.
"""

import logging
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

import pikepdf

from drawgen.models.draw_route import AffineTransform, Point, Rect, Size
from drawgen.utils.validation import MalformedInputError

logger = logging.getLogger(__name__)

_NON_NUMERIC_TYPES = (pikepdf.Name, pikepdf.Array, pikepdf.Dictionary, pikepdf.String, str, bytes, bool)


def as_number(value: Any) -> float:
    """Convert a PDF numeric operand to float; anything else is malformed."""
    if isinstance(value, _NON_NUMERIC_TYPES):
        raise MalformedInputError(f"Expected number operand, got {value!r}")
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Expected number operand, got {value!r}") from e


def as_name(value: Any) -> str:
    """Resource name without the leading slash."""
    if isinstance(value, pikepdf.Name) or (isinstance(value, str) and value.startswith("/")):
        return str(value).lstrip("/")
    raise MalformedInputError(f"Expected name operand, got {value!r}")


class OperandStack:
    """LIFO view over the operands of one content stream instruction."""

    def __init__(self, operands: Sequence[Any], operator: str = ""):
        self._items: List[Any] = list(operands)
        self.operator = operator

    def __len__(self) -> int:
        return len(self._items)

    def _pop_raw(self) -> Optional[Any]:
        if not self._items:
            return None
        return self._items.pop()

    def _require(self, value: Optional[Any], what: str) -> Any:
        if value is None:
            raise MalformedInputError(f"Operand stack underflow: '{self.operator}' is missing {what}")
        return value

    def push(self, value: Any) -> None:
        self._items.append(value)

    def pop_number(self) -> Optional[float]:
        raw = self._pop_raw()
        if raw is None:
            return None
        return as_number(raw)

    def _pop_numbers(self, count: int, what: str) -> Optional[Tuple[float, ...]]:
        """Pop `count` numbers; result is in popped order (last pushed first)."""
        first = self.pop_number()
        if first is None:
            return None
        rest = [self._require(self.pop_number(), what) for _ in range(count - 1)]
        return (first, *rest)

    def pop_point(self) -> Optional[Point]:
        pair = self._pop_numbers(2, "point coordinate")
        if pair is None:
            return None
        y, x = pair
        return Point(x=x, y=y)

    def pop_size(self) -> Optional[Size]:
        pair = self._pop_numbers(2, "size component")
        if pair is None:
            return None
        height, width = pair
        return Size(width=width, height=height)

    def pop_rect(self) -> Optional[Rect]:
        size = self.pop_size()
        if size is None:
            return None
        origin = self._require(self.pop_point(), "rectangle origin")
        return Rect(origin=origin, size=size)

    def pop_rgb(self) -> Optional[Tuple[float, float, float]]:
        values = self._pop_numbers(3, "color component")
        if values is None:
            return None
        blue, green, red = values
        return (red, green, blue)

    def pop_cmyk(self) -> Optional[Tuple[float, float, float, float]]:
        values = self._pop_numbers(4, "color component")
        if values is None:
            return None
        k, y, m, c = values
        return (c, m, y, k)

    def pop_affine_transform(self) -> Optional[AffineTransform]:
        values = self._pop_numbers(6, "matrix component")
        if values is None:
            return None
        f, e, d, c, b, a = values
        return AffineTransform(a=a, b=b, c=c, d=d, tx=e, ty=f)

    def pop_name(self) -> Optional[str]:
        raw = self._pop_raw()
        if raw is None:
            return None
        return as_name(raw)

    def pop_object(self) -> Optional[Any]:
        return self._pop_raw()

    def pop_number_array(self) -> Optional[Tuple[float, ...]]:
        raw = self._pop_raw()
        if raw is None:
            return None
        if not isinstance(raw, (pikepdf.Array, list, tuple)):
            raise MalformedInputError(f"Expected array operand for '{self.operator}', got {raw!r}")
        return tuple(as_number(x) for x in raw)
