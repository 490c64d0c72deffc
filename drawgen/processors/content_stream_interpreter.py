"""
Content stream interpreter producing draw routes.

A single loop walks the instructions of a content stream and dispatches each
operator through a static table to a handler method. Every handler pops its
operands from an OperandStack and appends zero or one step to the route
builder. Operators outside SUPPORTED_OPS abort the conversion.

Color operators only record the live RGB value; paint operators combine it
with the live alpha (set through ExtGState) at the moment of painting.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import pikepdf
from pikepdf import parse_content_stream

from drawgen.constants.pdf_operators import (
    OP_SAVE_STATE, OP_RESTORE_STATE, OP_CTM, OP_SET_LINE_WIDTH, OP_SET_LINE_CAP,
    OP_SET_LINE_JOIN, OP_SET_MITER_LIMIT, OP_SET_DASH, OP_SET_FLATNESS,
    OP_SET_RENDERING_INTENT, OP_SET_GRAPHICS_STATE_PARAMS,
    OP_SET_GRAY_STROKE, OP_SET_RGB_COLOR_STROKE, OP_SET_CMYK_COLOR_STROKE,
    OP_SET_COLOR_STROKE, OP_SET_COLOR_SPACE_STROKE,
    OP_SET_GRAY_FILL, OP_SET_RGB_COLOR_FILL, OP_SET_CMYK_COLOR_FILL,
    OP_SET_COLOR_FILL, OP_SET_COLOR_SPACE_FILL,
    OP_DO_XOBJECT, OP_MOVETO, OP_LINETO, OP_CURVETO, OP_CURVETO_V, OP_CURVETO_Y,
    OP_RECTANGLE, OP_CLOSEPATH,
    OP_STROKE, OP_CLOSE_STROKE, OP_FILL, OP_FILL_OBSOLETE, OP_FILL_EVEN_ODD,
    OP_FILL_STROKE, OP_FILL_STROKE_EVEN_ODD, OP_CLOSE_FILL_STROKE,
    OP_CLOSE_FILL_STROKE_EVEN_ODD, OP_END_PATH,
    OP_CLIP, OP_CLIP_EVEN_ODD, OP_SHADING, EVEN_ODD_OPS, SUPPORTED_OPS
)
from drawgen.models.draw_route import (
    AppendRectangle, Clip, ClosePath, Color, ColorRenderingIntent, Composite,
    ConcatCTM, CurveTo, Dash, DashPattern, DrawPath, DrawRoute, DrawStep, EndPath,
    Fill, FillColor, FillColorSpace, FillRule, Flatness, LineCap, LineCapStyle,
    LineJoin, LineJoinStyle, LineTo, LineWidth, MiterLimit, MoveTo,
    PaintWithGradient, PathDrawingMode, Point, Rect, RestoreGState, RouteArena,
    SaveGState, Stroke, StrokeColor, StrokeColorSpace, SubrouteWithName,
    saving_gstate
)
from drawgen.models.route_builder import DrawRouteBuilder
from drawgen.processors.operand_stack import OperandStack
from drawgen.processors.resource_resolver import (
    FillAlpha, FormXObject, Resources, StrokeAlpha, cmyk_to_rgb, components_to_rgb,
    resolve_resources
)
from drawgen.utils.validation import MalformedInputError

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]
PaintKey = Tuple[Optional[RGB], Optional[RGB], float, float]

# Initial color of the PDF graphics state
DEFAULT_RGB: RGB = (0.0, 0.0, 0.0)


def _op_str(op: bytes) -> str:
    return op.decode('latin-1')


# -------------------------------------------------------------------
# Operator table
# -------------------------------------------------------------------

_HANDLERS: Dict[str, str] = {
    _op_str(OP_SAVE_STATE): "_op_save_state",
    _op_str(OP_RESTORE_STATE): "_op_restore_state",
    _op_str(OP_CTM): "_op_concat_ctm",
    _op_str(OP_SET_LINE_WIDTH): "_op_line_width",
    _op_str(OP_SET_LINE_CAP): "_op_line_cap",
    _op_str(OP_SET_LINE_JOIN): "_op_line_join",
    _op_str(OP_SET_MITER_LIMIT): "_op_miter_limit",
    _op_str(OP_SET_DASH): "_op_dash",
    _op_str(OP_SET_FLATNESS): "_op_flatness",
    _op_str(OP_SET_RENDERING_INTENT): "_op_rendering_intent",
    _op_str(OP_SET_GRAPHICS_STATE_PARAMS): "_op_ext_gstate",
    _op_str(OP_SET_GRAY_STROKE): "_op_gray_stroke",
    _op_str(OP_SET_GRAY_FILL): "_op_gray_fill",
    _op_str(OP_SET_RGB_COLOR_STROKE): "_op_rgb_stroke",
    _op_str(OP_SET_RGB_COLOR_FILL): "_op_rgb_fill",
    _op_str(OP_SET_CMYK_COLOR_STROKE): "_op_cmyk_stroke",
    _op_str(OP_SET_CMYK_COLOR_FILL): "_op_cmyk_fill",
    _op_str(OP_SET_COLOR_STROKE): "_op_color_stroke",
    _op_str(OP_SET_COLOR_FILL): "_op_color_fill",
    _op_str(OP_SET_COLOR_SPACE_STROKE): "_op_color_space_stroke",
    _op_str(OP_SET_COLOR_SPACE_FILL): "_op_color_space_fill",
    _op_str(OP_DO_XOBJECT): "_op_xobject",
    _op_str(OP_MOVETO): "_op_move_to",
    _op_str(OP_LINETO): "_op_line_to",
    _op_str(OP_CURVETO): "_op_curve_to",
    _op_str(OP_CURVETO_V): "_op_curve_to_v",
    _op_str(OP_CURVETO_Y): "_op_curve_to_y",
    _op_str(OP_RECTANGLE): "_op_rectangle",
    _op_str(OP_CLOSEPATH): "_op_close_path",
    _op_str(OP_STROKE): "_op_stroke",
    _op_str(OP_CLOSE_STROKE): "_op_close_stroke",
    _op_str(OP_FILL): "_op_fill",
    _op_str(OP_FILL_OBSOLETE): "_op_fill",
    _op_str(OP_FILL_EVEN_ODD): "_op_fill",
    _op_str(OP_FILL_STROKE): "_op_fill_stroke",
    _op_str(OP_FILL_STROKE_EVEN_ODD): "_op_fill_stroke",
    _op_str(OP_CLOSE_FILL_STROKE): "_op_fill_stroke",
    _op_str(OP_CLOSE_FILL_STROKE_EVEN_ODD): "_op_fill_stroke",
    _op_str(OP_END_PATH): "_op_end_path",
    _op_str(OP_CLIP): "_op_clip",
    _op_str(OP_CLIP_EVEN_ODD): "_op_clip",
    _op_str(OP_SHADING): "_op_shading",
}

_SUPPORTED_OPS_STR = {_op_str(op) for op in SUPPORTED_OPS}
_EVEN_ODD_OPS_STR = {_op_str(op) for op in EVEN_ODD_OPS}
_CLOSING_PAINT_OPS_STR = {_op_str(OP_CLOSE_FILL_STROKE), _op_str(OP_CLOSE_FILL_STROKE_EVEN_ODD)}


# -------------------------------------------------------------------
# Parsing context
# -------------------------------------------------------------------

class PaintState:
    """Interpreter-side paint state saved and restored by q/Q."""
    __slots__ = (
        "fill_rgb",
        "stroke_rgb",
        "fill_alpha",
        "stroke_alpha",
        "current_point",
        "subpath_start",
    )

    def __init__(self):
        self.fill_rgb: Optional[RGB] = None
        self.stroke_rgb: Optional[RGB] = None
        self.fill_alpha: float = 1.0
        self.stroke_alpha: float = 1.0
        self.current_point: Optional[Point] = None
        self.subpath_start: Optional[Point] = None

    def copy(self) -> "PaintState":
        st = PaintState()
        st.fill_rgb = self.fill_rgb
        st.stroke_rgb = self.stroke_rgb
        st.fill_alpha = self.fill_alpha
        st.stroke_alpha = self.stroke_alpha
        st.current_point = self.current_point
        st.subpath_start = self.subpath_start
        return st

    def paint_key(self) -> PaintKey:
        """The part of the state a Form XObject inherits and bakes into its steps."""
        return (self.fill_rgb, self.stroke_rgb, self.fill_alpha, self.stroke_alpha)

    def fill_color(self) -> Color:
        r, g, b = self.fill_rgb or DEFAULT_RGB
        return Color.rgb(r, g, b, self.fill_alpha)

    def stroke_color(self) -> Color:
        r, g, b = self.stroke_rgb or DEFAULT_RGB
        return Color.rgb(r, g, b, self.stroke_alpha)


class ParsingContext:
    """Everything one content stream interpretation needs; discarded afterwards."""

    def __init__(self, builder: DrawRouteBuilder, resources: Resources, state: Optional[PaintState] = None):
        self.builder = builder
        self.resources = resources
        self.state = state.copy() if state is not None else PaintState()
        self.saved_states: List[PaintState] = []


# -------------------------------------------------------------------
# Interpreter
# -------------------------------------------------------------------

class ContentStreamInterpreter:
    """
    Interprets content streams into draw routes.

    One interpreter instance serves one image: Form XObjects found along the
    way are interpreted into the shared RouteArena and referenced by name.
    A form is interpreted once per inherited paint state; every route that
    invokes it under that state refers to the same arena entry.
    """

    def __init__(self, arena: Optional[RouteArena] = None):
        self.arena = arena if arena is not None else RouteArena()
        self._active_forms: Set[Any] = set()
        # form key -> (paint key, inherited resources id) -> (subroute name, arena index)
        self._form_variants: Dict[Any, Dict[Tuple[PaintKey, Optional[int]], Tuple[str, int]]] = {}
        # Inherited resources referenced by id above, kept alive for the ids to stay unique
        self._inherited_resources: List[Resources] = []
        self._ctx: Optional[ParsingContext] = None

    def interpret(self, instructions: Iterable[Any], resources: Resources, bounding_rect: Rect,
                  initial_state: Optional[PaintState] = None) -> DrawRoute:
        """
        Run every instruction and return the finished route.

        Args:
            instructions: Objects with `.operands` and `.operator`
                (e.g. from pikepdf.parse_content_stream)
            resources: Resolved resources for this stream
            bounding_rect: MediaBox of the page or BBox of the form

        Raises:
            MalformedInputError: On operand errors, unknown resources or
                unsupported operators
        """
        builder = DrawRouteBuilder(bounding_rect, gradients=resources.gradients)
        parent_ctx = self._ctx
        self._ctx = ParsingContext(builder, resources, initial_state)
        try:
            for inst in instructions:
                self._execute(inst)
        finally:
            self._ctx = parent_ctx

        route = builder.build()
        logger.debug(f"Interpreted content stream into {len(route.steps)} steps")
        return route

    def _execute(self, inst: Any) -> None:
        op = str(inst.operator)
        if op not in _SUPPORTED_OPS_STR:
            raise MalformedInputError(f"Operator '{op}' is not implemented")
        handler_name = _HANDLERS[op]

        stack = OperandStack(inst.operands, op)
        step = getattr(self, handler_name)(stack, op)
        if len(stack):
            logger.debug(f"'{op}' left {len(stack)} unused operand(s)")
        if step is not None:
            self._ctx.builder.append(step)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _required(value: Optional[Any], op: str, what: str) -> Any:
        if value is None:
            raise MalformedInputError(f"Operand stack underflow: '{op}' is missing {what}")
        return value

    def _set_current_point(self, point: Point) -> None:
        self._ctx.state.current_point = point

    # -------------------------------------------------------------------
    # Graphics state
    # -------------------------------------------------------------------

    def _op_save_state(self, stack: OperandStack, op: str) -> DrawStep:
        self._ctx.saved_states.append(self._ctx.state.copy())
        return SaveGState()

    def _op_restore_state(self, stack: OperandStack, op: str) -> DrawStep:
        if not self._ctx.saved_states:
            raise MalformedInputError("'Q' without matching 'q'")
        restored = self._ctx.saved_states.pop()
        # The current path is not part of the graphics state
        restored.current_point = self._ctx.state.current_point
        restored.subpath_start = self._ctx.state.subpath_start
        self._ctx.state = restored
        return RestoreGState()

    def _op_concat_ctm(self, stack: OperandStack, op: str) -> DrawStep:
        transform = self._required(stack.pop_affine_transform(), op, "matrix")
        return ConcatCTM(transform=transform)

    def _op_line_width(self, stack: OperandStack, op: str) -> DrawStep:
        return LineWidth(width=self._required(stack.pop_number(), op, "line width"))

    def _op_line_cap(self, stack: OperandStack, op: str) -> DrawStep:
        value = int(self._required(stack.pop_number(), op, "line cap"))
        try:
            return LineCapStyle(cap=LineCap(value))
        except ValueError as e:
            raise MalformedInputError(f"Invalid line cap {value}") from e

    def _op_line_join(self, stack: OperandStack, op: str) -> DrawStep:
        value = int(self._required(stack.pop_number(), op, "line join"))
        try:
            return LineJoinStyle(join=LineJoin(value))
        except ValueError as e:
            raise MalformedInputError(f"Invalid line join {value}") from e

    def _op_miter_limit(self, stack: OperandStack, op: str) -> DrawStep:
        return MiterLimit(limit=self._required(stack.pop_number(), op, "miter limit"))

    def _op_dash(self, stack: OperandStack, op: str) -> DrawStep:
        phase = self._required(stack.pop_number(), op, "dash phase")
        lengths = self._required(stack.pop_number_array(), op, "dash array")
        return Dash(pattern=DashPattern(phase=phase, lengths=lengths))

    def _op_flatness(self, stack: OperandStack, op: str) -> DrawStep:
        return Flatness(flatness=self._required(stack.pop_number(), op, "flatness"))

    def _op_rendering_intent(self, stack: OperandStack, op: str) -> DrawStep:
        return ColorRenderingIntent(intent=stack.pop_name())

    def _op_ext_gstate(self, stack: OperandStack, op: str) -> None:
        name = self._required(stack.pop_name(), op, "ExtGState name")
        commands = self._ctx.resources.ext_gstates.get(name)
        if commands is None:
            raise MalformedInputError(f"ExtGState '{name}' not found in resources")
        for command in commands:
            if isinstance(command, FillAlpha):
                self._ctx.state.fill_alpha = command.alpha
            elif isinstance(command, StrokeAlpha):
                self._ctx.state.stroke_alpha = command.alpha
        return None

    # -------------------------------------------------------------------
    # Colors (recorded only, resolved at paint time)
    # -------------------------------------------------------------------

    def _op_gray_stroke(self, stack: OperandStack, op: str) -> None:
        gray = self._required(stack.pop_number(), op, "gray level")
        self._ctx.state.stroke_rgb = components_to_rgb([gray])

    def _op_gray_fill(self, stack: OperandStack, op: str) -> None:
        gray = self._required(stack.pop_number(), op, "gray level")
        self._ctx.state.fill_rgb = components_to_rgb([gray])

    def _op_rgb_stroke(self, stack: OperandStack, op: str) -> None:
        self._ctx.state.stroke_rgb = components_to_rgb(self._required(stack.pop_rgb(), op, "color"))

    def _op_rgb_fill(self, stack: OperandStack, op: str) -> None:
        self._ctx.state.fill_rgb = components_to_rgb(self._required(stack.pop_rgb(), op, "color"))

    def _op_cmyk_stroke(self, stack: OperandStack, op: str) -> None:
        self._ctx.state.stroke_rgb = cmyk_to_rgb(*self._required(stack.pop_cmyk(), op, "color"))

    def _op_cmyk_fill(self, stack: OperandStack, op: str) -> None:
        self._ctx.state.fill_rgb = cmyk_to_rgb(*self._required(stack.pop_cmyk(), op, "color"))

    @staticmethod
    def _pop_components(stack: OperandStack, op: str) -> List[float]:
        components = []
        while len(stack):
            components.append(stack.pop_number())
        if not components:
            raise MalformedInputError(f"Operand stack underflow: '{op}' is missing color")
        components.reverse()
        return components

    def _op_color_stroke(self, stack: OperandStack, op: str) -> None:
        self._ctx.state.stroke_rgb = components_to_rgb(self._pop_components(stack, op))

    def _op_color_fill(self, stack: OperandStack, op: str) -> None:
        self._ctx.state.fill_rgb = components_to_rgb(self._pop_components(stack, op))

    def _op_color_space_stroke(self, stack: OperandStack, op: str) -> DrawStep:
        stack.pop_name()
        return StrokeColorSpace()

    def _op_color_space_fill(self, stack: OperandStack, op: str) -> DrawStep:
        stack.pop_name()
        return FillColorSpace()

    # -------------------------------------------------------------------
    # Path construction
    # -------------------------------------------------------------------

    def _op_move_to(self, stack: OperandStack, op: str) -> DrawStep:
        point = self._required(stack.pop_point(), op, "point")
        self._ctx.state.current_point = point
        self._ctx.state.subpath_start = point
        return MoveTo(point=point)

    def _op_line_to(self, stack: OperandStack, op: str) -> DrawStep:
        point = self._required(stack.pop_point(), op, "point")
        self._set_current_point(point)
        return LineTo(point=point)

    def _op_curve_to(self, stack: OperandStack, op: str) -> DrawStep:
        end = self._required(stack.pop_point(), op, "end point")
        control2 = self._required(stack.pop_point(), op, "second control point")
        control1 = self._required(stack.pop_point(), op, "first control point")
        self._set_current_point(end)
        return CurveTo(control1=control1, control2=control2, end=end)

    def _op_curve_to_v(self, stack: OperandStack, op: str) -> DrawStep:
        end = self._required(stack.pop_point(), op, "end point")
        control2 = self._required(stack.pop_point(), op, "control point")
        control1 = self._ctx.state.current_point
        if control1 is None:
            raise MalformedInputError("'v' without a current point")
        self._set_current_point(end)
        return CurveTo(control1=control1, control2=control2, end=end)

    def _op_curve_to_y(self, stack: OperandStack, op: str) -> DrawStep:
        end = self._required(stack.pop_point(), op, "end point")
        control1 = self._required(stack.pop_point(), op, "control point")
        self._set_current_point(end)
        return CurveTo(control1=control1, control2=end, end=end)

    def _op_rectangle(self, stack: OperandStack, op: str) -> DrawStep:
        rect = self._required(stack.pop_rect(), op, "rectangle")
        self._ctx.state.current_point = rect.origin
        self._ctx.state.subpath_start = rect.origin
        return AppendRectangle(rect=rect)

    def _op_close_path(self, stack: OperandStack, op: str) -> DrawStep:
        self._ctx.state.current_point = self._ctx.state.subpath_start
        return ClosePath()

    # -------------------------------------------------------------------
    # Path painting
    # -------------------------------------------------------------------

    def _reset_path(self) -> None:
        self._ctx.state.current_point = None
        self._ctx.state.subpath_start = None

    def _op_stroke(self, stack: OperandStack, op: str) -> DrawStep:
        self._reset_path()
        return Stroke(color=self._ctx.state.stroke_color())

    def _op_close_stroke(self, stack: OperandStack, op: str) -> DrawStep:
        self._reset_path()
        return Composite(steps=(ClosePath(), Stroke(color=self._ctx.state.stroke_color())))

    def _op_fill(self, stack: OperandStack, op: str) -> DrawStep:
        rule = FillRule.EVEN_ODD if op in _EVEN_ODD_OPS_STR else FillRule.WINDING
        self._reset_path()
        return Fill(rule=rule, color=self._ctx.state.fill_color())

    def _op_fill_stroke(self, stack: OperandStack, op: str) -> DrawStep:
        even_odd = op in _EVEN_ODD_OPS_STR
        mode = PathDrawingMode.EO_FILL_STROKE if even_odd else PathDrawingMode.FILL_STROKE
        steps: List[DrawStep] = []
        if op in _CLOSING_PAINT_OPS_STR:
            steps.append(ClosePath())
        steps.extend([
            FillColor(color=self._ctx.state.fill_color()),
            StrokeColor(color=self._ctx.state.stroke_color()),
            DrawPath(mode=mode),
        ])
        self._reset_path()
        return Composite(steps=tuple(steps))

    def _op_end_path(self, stack: OperandStack, op: str) -> DrawStep:
        self._reset_path()
        return EndPath()

    def _op_clip(self, stack: OperandStack, op: str) -> DrawStep:
        rule = FillRule.EVEN_ODD if op == _op_str(OP_CLIP_EVEN_ODD) else FillRule.WINDING
        return Clip(rule=rule)

    # -------------------------------------------------------------------
    # Shadings and XObjects
    # -------------------------------------------------------------------

    def _op_shading(self, stack: OperandStack, op: str) -> DrawStep:
        name = self._required(stack.pop_name(), op, "shading name")
        if name not in self._ctx.resources.gradients:
            raise MalformedInputError(f"Shading '{name}' not found in resources")
        return PaintWithGradient(name=name)

    def _op_xobject(self, stack: OperandStack, op: str) -> DrawStep:
        name = self._required(stack.pop_name(), op, "XObject name")
        resources = self._ctx.resources
        form = resources.forms.get(name)
        if form is None:
            if name in resources.other_xobjects:
                raise MalformedInputError(
                    f"XObject '{name}' of subtype {resources.other_xobjects[name]} is not implemented"
                )
            raise MalformedInputError(f"XObject '{name}' not found in resources")

        subroute_name, index = self._form_subroute(form)
        builder = self._ctx.builder
        if not builder.has_subroute(subroute_name):
            builder.add_subroute(subroute_name, index)

        steps: List[DrawStep] = []
        if form.matrix is not None and not form.matrix.is_identity:
            steps.append(ConcatCTM(transform=form.matrix))
        steps.append(SubrouteWithName(name=subroute_name))
        return saving_gstate(*steps)

    def _form_subroute(self, form: FormXObject) -> Tuple[str, int]:
        """
        Subroute name and arena index of a form under the current paint state.

        A form without its own resources also depends on the resources it is
        invoked with. The first variant keeps the resource name; each further
        one gets its own arena entry named `<name>#<n>`.
        """
        key = self._form_key(form)
        if key in self._active_forms:
            raise MalformedInputError(f"Form XObject '{form.name}' invokes itself")

        inherited = None
        if form.resources is None:
            inherited = id(self._ctx.resources)

        variants = self._form_variants.setdefault(key, {})
        variant_key = (self._ctx.state.paint_key(), inherited)
        if variant_key not in variants:
            subroute_name = form.name if not variants else f"{form.name}#{len(variants)}"
            index = self._interpret_form(form, key)
            if inherited is not None:
                self._inherited_resources.append(self._ctx.resources)
            variants[variant_key] = (subroute_name, index)
        return variants[variant_key]

    def _interpret_form(self, form: FormXObject, key: Any) -> int:
        """Interpret a Form XObject into the arena; returns its arena index."""
        if form.resources is not None:
            resources = resolve_resources(form.resources)
        else:
            resources = self._ctx.resources

        try:
            instructions = parse_content_stream(form.stream)
        except pikepdf.PdfError as e:
            raise MalformedInputError(f"Form XObject '{form.name}': cannot parse content stream: {e}") from e

        self._active_forms.add(key)
        try:
            route = self.interpret(instructions, resources, form.bbox, initial_state=self._ctx.state)
        finally:
            self._active_forms.discard(key)

        index = self.arena.add(route)
        logger.debug(f"Form XObject '{form.name}' registered as subroute {index}")
        return index

    @staticmethod
    def _form_key(form: FormXObject) -> Any:
        objgen = getattr(form.stream, "objgen", (0, 0))
        if objgen != (0, 0):
            return objgen
        return form.name


def interpret_content_stream(instructions: Iterable[Any], resources: Resources, bounding_rect: Rect,
                             arena: Optional[RouteArena] = None) -> DrawRoute:
    """
    Convenience wrapper: interpret one content stream with a fresh interpreter.

    Example:
        >>> route = interpret_content_stream(
        ...     pikepdf.parse_content_stream(page), resolve_resources(page.Resources), bounds)
    """
    return ContentStreamInterpreter(arena).interpret(instructions, resources, bounding_rect)
