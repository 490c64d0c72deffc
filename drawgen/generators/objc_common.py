"""Formatting helpers shared by the Objective-C backends."""

from drawgen.models.draw_route import Point, Rect


def fmt_float(value: float) -> str:
    """Shortest round-tripping literal, always with a decimal point or exponent."""
    return repr(float(value))


def cgfloat(value: float) -> str:
    return f"(CGFloat){fmt_float(value)}"


def cg_point(point: Point) -> str:
    return f"CGPointMake({cgfloat(point.x)}, {cgfloat(point.y)})"


def cg_rect(rect: Rect) -> str:
    return (
        f"CGRectMake({cgfloat(rect.origin.x)}, {cgfloat(rect.origin.y)}, "
        f"{cgfloat(rect.size.width)}, {cgfloat(rect.size.height)})"
    )


def function_name(camel_name: str, prefix: str = "") -> str:
    return f"{prefix}Draw{camel_name}ImageInContext"


def function_signature(camel_name: str, prefix: str = "") -> str:
    return f"void {function_name(camel_name, prefix)}(CGContextRef context)"


def image_size_name(camel_name: str, prefix: str = "") -> str:
    return f"k{prefix}{camel_name}ImageSize"


_STRING_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def objc_string(text: str) -> str:
    """`@"..."` literal for arbitrary text."""
    return '@"' + "".join(_STRING_ESCAPES.get(ch, ch) for ch in text) + '"'
