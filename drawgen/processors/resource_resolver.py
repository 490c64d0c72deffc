"""
Resource resolution for PDF pages and Form XObjects.

Resources are resolved eagerly, once per content stream, so that operators
referencing them during interpretation are plain table lookups.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from drawgen.constants.pdf_keys import (
    KEY_EXT_GSTATE, KEY_SHADING, KEY_XOBJECT, KEY_SUBTYPE, VAL_FORM,
    KEY_FILL_OPACITY, KEY_STROKE_OPACITY, KEY_MATRIX, KEY_BBOX, KEY_RESOURCES,
    KEY_SHADING_TYPE, KEY_COORDS, KEY_DOMAIN, KEY_EXTEND, KEY_FUNCTION,
    SHADING_AXIAL, SHADING_RADIAL
)
from drawgen.models.draw_route import (
    AffineTransform, Color, Gradient, GradientKind, GradientOptions, GradientStop, Point, Rect
)
from drawgen.processors.pdf_functions import make_function, sample_function
from drawgen.utils.validation import MalformedInputError

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Color helpers
# -------------------------------------------------------------------

def _clamp01(x: float) -> float:
    """Clamp value to [0, 1] range."""
    return max(0.0, min(1.0, float(x)))


def cmyk_to_rgb(c: float, m: float, y: float, k: float) -> Tuple[float, float, float]:
    """Convert CMYK to RGB color space."""
    c, m, y, k = (_clamp01(c), _clamp01(m), _clamp01(y), _clamp01(k))
    r = (1.0 - c) * (1.0 - k)
    g = (1.0 - m) * (1.0 - k)
    b = (1.0 - y) * (1.0 - k)
    return (r, g, b)


def components_to_rgb(components: Sequence[float]) -> Tuple[float, float, float]:
    """Interpret color components by count: gray, RGB or CMYK."""
    vals = [float(x) for x in components]
    if len(vals) == 1:
        g = _clamp01(vals[0])
        return (g, g, g)
    elif len(vals) == 3:
        return (_clamp01(vals[0]), _clamp01(vals[1]), _clamp01(vals[2]))
    elif len(vals) == 4:
        return cmyk_to_rgb(*vals)
    raise MalformedInputError(f"Cannot interpret {len(vals)} color components")


# -------------------------------------------------------------------
# ExtGState commands
# -------------------------------------------------------------------

@dataclass(frozen=True)
class FillAlpha:
    alpha: float


@dataclass(frozen=True)
class StrokeAlpha:
    alpha: float


ExtGStateCommand = Union[FillAlpha, StrokeAlpha]


@dataclass
class FormXObject:
    """Form XObject ready to be interpreted as a subroute"""
    name: str
    stream: Any
    bbox: Rect
    matrix: Optional[AffineTransform]
    resources: Any


@dataclass
class Resources:
    gradients: Dict[str, Gradient] = field(default_factory=dict)
    ext_gstates: Dict[str, List[ExtGStateCommand]] = field(default_factory=dict)
    forms: Dict[str, FormXObject] = field(default_factory=dict)
    other_xobjects: Dict[str, str] = field(default_factory=dict)  # name -> subtype

    @classmethod
    def empty(cls) -> 'Resources':
        return cls()


def _name(key: Any) -> str:
    return str(key).lstrip("/")


def _numbers(obj: Any, what: str) -> List[float]:
    try:
        return [float(x) for x in obj]
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Invalid {what}: {obj!r}") from e


# -------------------------------------------------------------------
# Shadings
# -------------------------------------------------------------------

def make_gradient(shading: Any, name: str = "") -> Gradient:
    """
    Decode an axial or radial shading dictionary into a Gradient.

    Raises:
        MalformedInputError: For unsupported shading types or malformed entries
    """
    try:
        stype = int(shading.get(KEY_SHADING_TYPE, 0))
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Shading '{name}' has invalid ShadingType") from e

    coords = _numbers(shading.get(KEY_COORDS, []), f"Coords of shading '{name}'")

    if stype == SHADING_AXIAL and len(coords) == 4:
        x0, y0, x1, y1 = coords
        kind = GradientKind()
    elif stype == SHADING_RADIAL and len(coords) == 6:
        x0, y0, r0, x1, y1, r1 = coords
        kind = GradientKind.radial(start_radius=r0, end_radius=r1)
    else:
        raise MalformedInputError(
            f"Shading '{name}': ShadingType {stype} with {len(coords)} coords is not implemented"
        )

    domain = _numbers(shading.get(KEY_DOMAIN, [0, 1]), f"Domain of shading '{name}'")
    if len(domain) != 2:
        raise MalformedInputError(f"Shading '{name}' Domain must have two values")

    extend = [bool(x) for x in shading.get(KEY_EXTEND, [False, False])]
    options = GradientOptions(
        draws_before_start=extend[0] if len(extend) > 0 else False,
        draws_after_end=extend[1] if len(extend) > 1 else False,
    )

    function_obj = shading.get(KEY_FUNCTION)
    if function_obj is None:
        raise MalformedInputError(f"Shading '{name}' has no Function")
    function = make_function(function_obj)

    stops = []
    for location, components in sample_function(function, (domain[0], domain[1])):
        r, g, b = components_to_rgb(components)
        stops.append(GradientStop(location=location, color=Color.rgb(r, g, b)))

    return Gradient(
        kind=kind,
        stops=tuple(stops),
        start_point=Point(x=x0, y=y0),
        end_point=Point(x=x1, y=y1),
        options=options,
    )


# -------------------------------------------------------------------
# ExtGState
# -------------------------------------------------------------------

def make_ext_gstate(gs: Any, name: str = "") -> List[ExtGStateCommand]:
    """Ordered alpha commands contained in an ExtGState dictionary."""
    commands: List[ExtGStateCommand] = []
    for key in gs.keys():
        if key == KEY_FILL_OPACITY:
            commands.append(FillAlpha(_clamp01(gs[key])))
        elif key == KEY_STROKE_OPACITY:
            commands.append(StrokeAlpha(_clamp01(gs[key])))
        else:
            logger.debug(f"ExtGState '{name}': ignoring {key}")
    return commands


# -------------------------------------------------------------------
# XObjects
# -------------------------------------------------------------------

def make_form(xobj: Any, name: str) -> FormXObject:
    bbox_values = _numbers(xobj.get(KEY_BBOX, []), f"BBox of form '{name}'")
    if len(bbox_values) != 4:
        raise MalformedInputError(f"Form XObject '{name}' BBox must have four values")

    matrix = None
    if KEY_MATRIX in xobj:
        m = _numbers(xobj.get(KEY_MATRIX), f"Matrix of form '{name}'")
        if len(m) != 6:
            raise MalformedInputError(f"Form XObject '{name}' Matrix must have six values")
        matrix = AffineTransform(a=m[0], b=m[1], c=m[2], d=m[3], tx=m[4], ty=m[5])

    return FormXObject(
        name=name,
        stream=xobj,
        bbox=Rect.from_bounds(*bbox_values),
        matrix=matrix,
        resources=xobj.get(KEY_RESOURCES),
    )


# -------------------------------------------------------------------
# Resources
# -------------------------------------------------------------------

def resolve_resources(res: Any) -> Resources:
    """
    Resolve a resource dictionary into typed values.

    Args:
        res: pikepdf Dictionary (or None for a stream without resources)

    Raises:
        MalformedInputError: If any shading or form cannot be decoded
    """
    resources = Resources.empty()
    if res is None:
        return resources

    if KEY_SHADING in res:
        for key, sh_obj in res[KEY_SHADING].items():
            name = _name(key)
            resources.gradients[name] = make_gradient(sh_obj, name)

    if KEY_EXT_GSTATE in res:
        for key, gs_obj in res[KEY_EXT_GSTATE].items():
            name = _name(key)
            resources.ext_gstates[name] = make_ext_gstate(gs_obj, name)

    if KEY_XOBJECT in res:
        for key, xobj in res[KEY_XOBJECT].items():
            name = _name(key)
            subtype = str(xobj.get(KEY_SUBTYPE, ""))
            if subtype == VAL_FORM:
                resources.forms[name] = make_form(xobj, name)
            else:
                resources.other_xobjects[name] = subtype

    logger.debug(
        f"Resolved resources: {len(resources.gradients)} gradients, "
        f"{len(resources.ext_gstates)} ext gstates, {len(resources.forms)} forms"
    )
    return resources
