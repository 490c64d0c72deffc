"""
Pydantic models for the draw route intermediate representation.

A draw route is a resolution-independent vector image: a bounding rectangle,
an ordered list of drawing steps, named gradients and named subroutes.
Routes are immutable once built; subroutes are referenced by index into a
RouteArena instead of being embedded.
"""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from drawgen.utils.naming import upper_camel_case


class FrozenModel(BaseModel):
    """Base for all value types of the IR"""
    model_config = ConfigDict(frozen=True)


# ==============================================================================
# Geometry
# ==============================================================================

class Point(FrozenModel):
    x: float
    y: float


class Size(FrozenModel):
    width: float
    height: float


class Rect(FrozenModel):
    origin: Point
    size: Size

    @classmethod
    def from_bounds(cls, x0: float, y0: float, x1: float, y1: float) -> 'Rect':
        """Create a rect from a PDF rectangle array [llx lly urx ury]."""
        return cls(
            origin=Point(x=min(x0, x1), y=min(y0, y1)),
            size=Size(width=abs(x1 - x0), height=abs(y1 - y0)),
        )


class AffineTransform(FrozenModel):
    """Affine matrix [a b c d tx ty] in PDF/CoreGraphics order"""
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @property
    def is_identity(self) -> bool:
        return (self.a, self.b, self.c, self.d, self.tx, self.ty) == (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


# ==============================================================================
# Paint
# ==============================================================================

class Color(FrozenModel):
    """RGBA color with normalized channels"""
    red: float = Field(ge=0.0, le=1.0)
    green: float = Field(ge=0.0, le=1.0)
    blue: float = Field(ge=0.0, le=1.0)
    alpha: float = Field(1.0, ge=0.0, le=1.0)

    @classmethod
    def rgb(cls, red: float, green: float, blue: float, alpha: float = 1.0) -> 'Color':
        return cls(red=red, green=green, blue=blue, alpha=alpha)


class FillRule(str, Enum):
    WINDING = "winding"
    EVEN_ODD = "even-odd"


class PathDrawingMode(str, Enum):
    FILL = "fill"
    EO_FILL = "eo-fill"
    STROKE = "stroke"
    FILL_STROKE = "fill-stroke"
    EO_FILL_STROKE = "eo-fill-stroke"


class LineJoin(int, Enum):
    MITER = 0
    ROUND = 1
    BEVEL = 2


class LineCap(int, Enum):
    BUTT = 0
    ROUND = 1
    SQUARE = 2


class BlendMode(str, Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    COLOR_DODGE = "color-dodge"
    COLOR_BURN = "color-burn"
    SOFT_LIGHT = "soft-light"
    HARD_LIGHT = "hard-light"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
    HUE = "hue"
    SATURATION = "saturation"
    COLOR = "color"
    LUMINOSITY = "luminosity"


class DashPattern(FrozenModel):
    phase: float = 0.0
    lengths: Tuple[float, ...] = ()


# ==============================================================================
# Gradients
# ==============================================================================

class GradientKind(FrozenModel):
    """Axial, or radial with explicit start/end radii"""
    type: Literal["axial", "radial"] = "axial"
    start_radius: float = 0.0
    end_radius: float = 0.0

    @classmethod
    def radial(cls, start_radius: float, end_radius: float) -> 'GradientKind':
        return cls(type="radial", start_radius=start_radius, end_radius=end_radius)


class GradientOptions(FrozenModel):
    draws_before_start: bool = False
    draws_after_end: bool = False


class GradientStop(FrozenModel):
    location: float = Field(ge=0.0, le=1.0)
    color: Color


class Gradient(FrozenModel):
    kind: GradientKind = Field(default_factory=GradientKind)
    stops: Tuple[GradientStop, ...]
    start_point: Point
    end_point: Point
    options: GradientOptions = Field(default_factory=GradientOptions)

    @field_validator("stops")
    @classmethod
    def _stops_not_empty(cls, stops):
        if not stops:
            raise ValueError("gradient must have at least one stop")
        return stops


# ==============================================================================
# Draw steps
# ==============================================================================

class SaveGState(FrozenModel):
    type: Literal["save_gstate"] = "save_gstate"


class RestoreGState(FrozenModel):
    type: Literal["restore_gstate"] = "restore_gstate"


class MoveTo(FrozenModel):
    type: Literal["move_to"] = "move_to"
    point: Point


class LineTo(FrozenModel):
    type: Literal["line_to"] = "line_to"
    point: Point


class CurveTo(FrozenModel):
    type: Literal["curve_to"] = "curve_to"
    control1: Point
    control2: Point
    end: Point


class ClosePath(FrozenModel):
    type: Literal["close_path"] = "close_path"


class AppendRectangle(FrozenModel):
    type: Literal["append_rectangle"] = "append_rectangle"
    rect: Rect


class AppendRoundedRect(FrozenModel):
    type: Literal["append_rounded_rect"] = "append_rounded_rect"
    rect: Rect
    rx: float
    ry: float


class AddEllipse(FrozenModel):
    type: Literal["add_ellipse"] = "add_ellipse"
    rect: Rect


class FillEllipse(FrozenModel):
    type: Literal["fill_ellipse"] = "fill_ellipse"
    rect: Rect


class Lines(FrozenModel):
    """Polyline through the given points"""
    type: Literal["lines"] = "lines"
    points: Tuple[Point, ...]


class Fill(FrozenModel):
    """Fill the current path; color is the paint-time resolved fill color"""
    type: Literal["fill"] = "fill"
    rule: FillRule = FillRule.WINDING
    color: Optional[Color] = None


class Stroke(FrozenModel):
    type: Literal["stroke"] = "stroke"
    color: Optional[Color] = None


class DrawPath(FrozenModel):
    type: Literal["draw_path"] = "draw_path"
    mode: PathDrawingMode


class Clip(FrozenModel):
    type: Literal["clip"] = "clip"
    rule: FillRule = FillRule.WINDING


class ClipToRect(FrozenModel):
    type: Literal["clip_to_rect"] = "clip_to_rect"
    rect: Rect


class EndPath(FrozenModel):
    type: Literal["end_path"] = "end_path"


class ReplacePathWithStrokePath(FrozenModel):
    type: Literal["replace_path_with_stroke_path"] = "replace_path_with_stroke_path"


class FillColor(FrozenModel):
    type: Literal["fill_color"] = "fill_color"
    color: Color


class StrokeColor(FrozenModel):
    type: Literal["stroke_color"] = "stroke_color"
    color: Color


class LineWidth(FrozenModel):
    type: Literal["line_width"] = "line_width"
    width: float


class Dash(FrozenModel):
    type: Literal["dash"] = "dash"
    pattern: DashPattern


class Flatness(FrozenModel):
    type: Literal["flatness"] = "flatness"
    flatness: float


class LineJoinStyle(FrozenModel):
    type: Literal["line_join"] = "line_join"
    join: LineJoin


class LineCapStyle(FrozenModel):
    type: Literal["line_cap"] = "line_cap"
    cap: LineCap


class MiterLimit(FrozenModel):
    type: Literal["miter_limit"] = "miter_limit"
    limit: float


class SetBlendMode(FrozenModel):
    type: Literal["blend_mode"] = "blend_mode"
    mode: BlendMode


class GlobalAlpha(FrozenModel):
    type: Literal["global_alpha"] = "global_alpha"
    alpha: float


# No-op steps, recorded so the route mirrors the source instruction stream
class ColorRenderingIntent(FrozenModel):
    type: Literal["color_rendering_intent"] = "color_rendering_intent"
    intent: Optional[str] = None


class FillColorSpace(FrozenModel):
    type: Literal["fill_color_space"] = "fill_color_space"


class StrokeColorSpace(FrozenModel):
    type: Literal["stroke_color_space"] = "stroke_color_space"


class ConcatCTM(FrozenModel):
    type: Literal["concat_ctm"] = "concat_ctm"
    transform: AffineTransform


class PaintWithGradient(FrozenModel):
    """Paint a named gradient, optionally overriding its start/end points"""
    type: Literal["paint_with_gradient"] = "paint_with_gradient"
    name: str
    start: Optional[Point] = None
    end: Optional[Point] = None


class BeginTransparencyLayer(FrozenModel):
    type: Literal["begin_transparency_layer"] = "begin_transparency_layer"


class EndTransparencyLayer(FrozenModel):
    type: Literal["end_transparency_layer"] = "end_transparency_layer"


class SubrouteWithName(FrozenModel):
    type: Literal["subroute_with_name"] = "subroute_with_name"
    name: str


class Composite(FrozenModel):
    """Ordered group of steps with the same effect as running them in order"""
    type: Literal["composite"] = "composite"
    steps: Tuple['DrawStep', ...] = ()


DrawStep = Annotated[
    Union[
        SaveGState, RestoreGState,
        MoveTo, LineTo, CurveTo, ClosePath,
        AppendRectangle, AppendRoundedRect, AddEllipse, FillEllipse, Lines,
        Fill, Stroke, DrawPath, Clip, ClipToRect, EndPath, ReplacePathWithStrokePath,
        FillColor, StrokeColor, LineWidth, Dash, Flatness,
        LineJoinStyle, LineCapStyle, MiterLimit, SetBlendMode, GlobalAlpha,
        ColorRenderingIntent, FillColorSpace, StrokeColorSpace,
        ConcatCTM, PaintWithGradient,
        BeginTransparencyLayer, EndTransparencyLayer,
        SubrouteWithName, Composite,
    ],
    Field(discriminator="type"),
]

Composite.model_rebuild()

EMPTY_STEP = Composite()


def saving_gstate(*steps) -> Composite:
    """Wrap steps in a save/restore bracket as one atomic step."""
    return Composite(steps=(SaveGState(), *steps, RestoreGState()))


# ==============================================================================
# Routes and images
# ==============================================================================

class DrawRoute(FrozenModel):
    bounding_rect: Rect
    steps: Tuple[DrawStep, ...] = ()
    gradients: Dict[str, Gradient] = Field(default_factory=dict)
    subroutes: Dict[str, int] = Field(default_factory=dict)  # name -> RouteArena index


class RouteArena(BaseModel):
    """
    Owner of every subroute used by one image.

    A route may only be added once every subroute it references is already
    registered, so references always point to earlier entries and cycles
    cannot be expressed.
    """
    routes: List[DrawRoute] = Field(default_factory=list)

    def add(self, route: DrawRoute) -> int:
        self.check_references(route)
        self.routes.append(route)
        return len(self.routes) - 1

    def check_references(self, route: DrawRoute) -> None:
        for name, index in route.subroutes.items():
            if not 0 <= index < len(self.routes):
                raise ValueError(
                    f"subroute '{name}' references arena entry {index}, "
                    f"only {len(self.routes)} registered"
                )

    def get(self, index: int) -> DrawRoute:
        return self.routes[index]

    def __len__(self) -> int:
        return len(self.routes)


class Image(BaseModel):
    """One named image: the unit the code generators iterate over"""
    name: str
    route: DrawRoute
    arena: RouteArena = Field(default_factory=RouteArena)

    @property
    def camel_name(self) -> str:
        return upper_camel_case(self.name)
