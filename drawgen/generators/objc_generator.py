"""
Objective-C drawing backend.

Emits one C function per image that replays the image's draw route through
CoreGraphics calls. Every CoreGraphics object created for a step is released
within the same step, right after its last use.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from drawgen.engine.base_generator import BaseGenerator
from drawgen.generators.objc_common import (
    cg_point, cg_rect, cgfloat, fmt_float, function_name, function_signature
)
from drawgen.models.draw_route import (
    AddEllipse, AppendRectangle, AppendRoundedRect, BeginTransparencyLayer, Clip,
    ClipToRect, ClosePath, Color, ColorRenderingIntent, Composite, ConcatCTM, CurveTo,
    Dash, DrawPath, DrawRoute, EndPath, EndTransparencyLayer, Fill, FillColor,
    FillColorSpace, FillEllipse, FillRule, Flatness, GlobalAlpha, Gradient, Image,
    LineCap, LineCapStyle, LineJoin, LineJoinStyle, LineTo, Lines, LineWidth,
    MiterLimit, MoveTo, PaintWithGradient, PathDrawingMode, ReplacePathWithStrokePath,
    RestoreGState, SaveGState, SetBlendMode, Stroke, StrokeColor, StrokeColorSpace,
    SubrouteWithName
)
from drawgen.utils.naming import upper_camel_case
from drawgen.utils.validation import MalformedInputError

logger = logging.getLogger(__name__)

RGB_COLOR_SPACE = "rgbColorSpace"

_PATH_DRAWING_MODES = {
    PathDrawingMode.FILL: "kCGPathFill",
    PathDrawingMode.EO_FILL: "kCGPathEOFill",
    PathDrawingMode.STROKE: "kCGPathStroke",
    PathDrawingMode.FILL_STROKE: "kCGPathFillStroke",
    PathDrawingMode.EO_FILL_STROKE: "kCGPathEOFillStroke",
}

_LINE_JOINS = {
    LineJoin.MITER: "kCGLineJoinMiter",
    LineJoin.ROUND: "kCGLineJoinRound",
    LineJoin.BEVEL: "kCGLineJoinBevel",
}

_LINE_CAPS = {
    LineCap.BUTT: "kCGLineCapButt",
    LineCap.ROUND: "kCGLineCapRound",
    LineCap.SQUARE: "kCGLineCapSquare",
}


def cmd(name: str, args: Optional[str] = None) -> str:
    """One `CGContext<name>(context, args);` line."""
    arg_str = f", {args}" if args else ""
    return f"  CGContext{name}(context{arg_str});"


def gradient_options_expression(gradient: Gradient) -> str:
    options = []
    if gradient.options.draws_before_start:
        options.append("kCGGradientDrawsBeforeStartLocation")
    if gradient.options.draws_after_end:
        options.append("kCGGradientDrawsAfterEndLocation")
    return " | ".join(options) or "0"


class RouteContext:
    """What a step needs besides itself: gradients and subroute function names."""

    def __init__(self, route: DrawRoute, subroute_functions: Dict[int, str]):
        self.route = route
        self.subroute_functions = subroute_functions

    def gradient(self, name: str) -> Gradient:
        gradient = self.route.gradients.get(name)
        if gradient is None:
            raise MalformedInputError(f"Gradient '{name}' not found in route")
        return gradient

    def subroute_function(self, name: str) -> str:
        index = self.route.subroutes.get(name)
        if index is None or index not in self.subroute_functions:
            raise MalformedInputError(f"Subroute '{name}' not found in route")
        return self.subroute_functions[index]


class ObjcDrawingGenerator(BaseGenerator):
    """Implementation (.m) backend"""

    def __init__(self, config, counter=None):
        super().__init__(config, counter)
        self._commands: Dict[type, Callable[[object, RouteContext], List[str]]] = {
            SaveGState: lambda s, c: [cmd("SaveGState")],
            RestoreGState: lambda s, c: [cmd("RestoreGState")],
            MoveTo: lambda s, c: [cmd("MoveToPoint", self._points([s.point]))],
            LineTo: lambda s, c: [cmd("AddLineToPoint", self._points([s.point]))],
            CurveTo: lambda s, c: [cmd("AddCurveToPoint", self._points([s.control1, s.control2, s.end]))],
            ClosePath: lambda s, c: [cmd("ClosePath")],
            AppendRectangle: lambda s, c: [cmd("AddRect", cg_rect(s.rect))],
            AppendRoundedRect: self._rounded_rect,
            AddEllipse: lambda s, c: [cmd("AddEllipseInRect", cg_rect(s.rect))],
            FillEllipse: lambda s, c: [cmd("FillEllipseInRect", cg_rect(s.rect))],
            Lines: self._lines,
            Fill: self._fill,
            Stroke: self._stroke,
            DrawPath: lambda s, c: [cmd("DrawPath", _PATH_DRAWING_MODES[s.mode])],
            Clip: lambda s, c: [cmd("Clip" if s.rule == FillRule.WINDING else "EOClip")],
            ClipToRect: lambda s, c: [cmd("ClipToRect", cg_rect(s.rect))],
            EndPath: lambda s, c: [],
            ReplacePathWithStrokePath: lambda s, c: [cmd("ReplacePathWithStrokedPath")],
            FillColor: lambda s, c: self._with_color("SetFillColorWithColor", s.color),
            StrokeColor: lambda s, c: self._with_color("SetStrokeColorWithColor", s.color),
            LineWidth: lambda s, c: [cmd("SetLineWidth", cgfloat(s.width))],
            Dash: self._dash,
            Flatness: lambda s, c: [cmd("SetFlatness", cgfloat(s.flatness))],
            LineJoinStyle: lambda s, c: [cmd("SetLineJoin", _LINE_JOINS[s.join])],
            LineCapStyle: lambda s, c: [cmd("SetLineCap", _LINE_CAPS[s.cap])],
            MiterLimit: lambda s, c: [cmd("SetMiterLimit", cgfloat(s.limit))],
            SetBlendMode: lambda s, c: [cmd("SetBlendMode", f"kCGBlendMode{upper_camel_case(s.mode.value)}")],
            GlobalAlpha: lambda s, c: [cmd("SetAlpha", cgfloat(s.alpha))],
            ColorRenderingIntent: lambda s, c: [],
            FillColorSpace: lambda s, c: [],
            StrokeColorSpace: lambda s, c: [],
            ConcatCTM: self._concat_ctm,
            PaintWithGradient: self._paint_with_gradient,
            BeginTransparencyLayer: lambda s, c: [cmd("BeginTransparencyLayer", "NULL")],
            EndTransparencyLayer: lambda s, c: [cmd("EndTransparencyLayer")],
            SubrouteWithName: lambda s, c: [f"  {c.subroute_function(s.name)}(context);"],
            Composite: lambda s, c: [line for child in s.steps for line in self.command(child, c)],
        }

    # -------------------------------------------------------------------
    # File layout
    # -------------------------------------------------------------------

    def file_preamble(self) -> str:
        header = self.config.header_import_path or self.config.header_path
        if header:
            import_line = f'#import "{header}"'
        else:
            import_line = "#import <CoreGraphics/CoreGraphics.h>"
        return f"{import_line}\n\n#import <Foundation/Foundation.h>\n\n"

    def generate_image_function(self, image: Image) -> str:
        main_function = function_name(image.camel_name, self.prefix)

        blocks = []
        subroute_functions: Dict[int, str] = {}
        for index, route in enumerate(image.arena.routes):
            name = f"{main_function}Subroute{index}"
            signature = f"static void {name}(CGContextRef context)"
            blocks.append(self._function(signature, route, subroute_functions))
            subroute_functions[index] = name

        signature = function_signature(image.camel_name, self.prefix)
        blocks.append(self._function(signature, image.route, subroute_functions))
        logger.debug(f"Generated drawing function {main_function} with {len(image.arena)} subroute(s)")
        return "\n\n".join(blocks)

    def file_ending(self) -> str:
        return ""

    def _function(self, signature: str, route: DrawRoute, subroute_functions: Dict[int, str]) -> str:
        context = RouteContext(route, subroute_functions)
        lines = [
            f"{signature} {{",
            f"  CGColorSpaceRef {RGB_COLOR_SPACE} = CGColorSpaceCreateDeviceRGB();",
        ]
        for step in route.steps:
            lines.extend(self.command(step, context))
        lines.append(f"  CGColorSpaceRelease({RGB_COLOR_SPACE});")
        lines.append("}")
        return "\n".join(lines)

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------

    def command(self, step, context: RouteContext) -> List[str]:
        """Lines for one step."""
        handler = self._commands.get(type(step))
        if handler is None:
            raise MalformedInputError(f"No code generation for step {step!r}")
        return handler(step, context)

    @staticmethod
    def _points(points) -> str:
        return ", ".join(f"{cgfloat(p.x)}, {cgfloat(p.y)}" for p in points)

    def _define_color(self, color: Color):
        name = f"color{self.counter.next_id()}"
        components = ", ".join(cgfloat(v) for v in (color.red, color.green, color.blue, color.alpha))
        line = f"  CGColorRef {name} = CGColorCreate({RGB_COLOR_SPACE}, (CGFloat []){{{components}}});"
        return name, line

    @staticmethod
    def _release_color(name: str) -> str:
        return f"  CGColorRelease({name});"

    def _with_color(self, name: str, color: Color) -> List[str]:
        color_name, create = self._define_color(color)
        return [create, cmd(name, color_name), self._release_color(color_name)]

    def _with_colors(self, colors: Sequence[Color], block: Callable[[List[str]], List[str]]) -> List[str]:
        defined = [self._define_color(color) for color in colors]
        names = [name for name, _ in defined]
        return (
            [line for _, line in defined]
            + block(names)
            + [self._release_color(name) for name in names]
        )

    def _fill(self, step: Fill, context: RouteContext) -> List[str]:
        lines = self._with_color("SetFillColorWithColor", step.color) if step.color is not None else []
        lines.append(cmd("FillPath" if step.rule == FillRule.WINDING else "EOFillPath"))
        return lines

    def _stroke(self, step: Stroke, context: RouteContext) -> List[str]:
        lines = self._with_color("SetStrokeColorWithColor", step.color) if step.color is not None else []
        lines.append(cmd("StrokePath"))
        return lines

    def _concat_ctm(self, step: ConcatCTM, context: RouteContext) -> List[str]:
        t = step.transform
        values = ", ".join(fmt_float(v) for v in (t.a, t.b, t.c, t.d, t.tx, t.ty))
        return [cmd("ConcatCTM", f"CGAffineTransformMake({values})")]

    def _dash(self, step: Dash, context: RouteContext) -> List[str]:
        pattern = step.pattern
        if not pattern.lengths:
            return [cmd("SetLineDash", f"{cgfloat(pattern.phase)}, NULL, 0")]
        lengths = ", ".join(cgfloat(v) for v in pattern.lengths)
        return [cmd("SetLineDash", f"{cgfloat(pattern.phase)}, (CGFloat []){{{lengths}}}, {len(pattern.lengths)}")]

    def _lines(self, step: Lines, context: RouteContext) -> List[str]:
        points = ", ".join(cg_point(p) for p in step.points)
        return [cmd("AddLines", f"(CGPoint []){{{points}}}, {len(step.points)}")]

    def _rounded_rect(self, step: AppendRoundedRect, context: RouteContext) -> List[str]:
        path = f"path{self.counter.next_id()}"
        return [
            f"  CGPathRef {path} = CGPathCreateWithRoundedRect({cg_rect(step.rect)}, "
            f"{cgfloat(step.rx)}, {cgfloat(step.ry)}, NULL);",
            cmd("AddPath", path),
            f"  CGPathRelease({path});",
        ]

    def _paint_with_gradient(self, step: PaintWithGradient, context: RouteContext) -> List[str]:
        gradient = context.gradient(step.name)
        start = step.start or gradient.start_point
        end = step.end or gradient.end_point

        def draw(color_names: List[str]) -> List[str]:
            color_list = ", ".join(f"(__bridge id){name}" for name in color_names)
            colors_var = f"colors{self.counter.next_id()}"
            locations = ", ".join(cgfloat(stop.location) for stop in gradient.stops)
            gradient_var = f"gradient{self.counter.next_id()}"
            options_var = f"gradientOptions{self.counter.next_id()}"

            if gradient.kind.type == "radial":
                draw_line = (
                    f"  CGContextDrawRadialGradient(context, {gradient_var}, "
                    f"{cg_point(start)}, {cgfloat(gradient.kind.start_radius)}, "
                    f"{cg_point(end)}, {cgfloat(gradient.kind.end_radius)}, {options_var});"
                )
            else:
                draw_line = (
                    f"  CGContextDrawLinearGradient(context, {gradient_var}, "
                    f"{cg_point(start)}, {cg_point(end)}, {options_var});"
                )

            return [
                f"  CFArrayRef {colors_var} = CFBridgingRetain(@[ {color_list} ]);",
                f"  CGGradientRef {gradient_var} = CGGradientCreateWithColors("
                f"{RGB_COLOR_SPACE}, {colors_var}, (CGFloat []){{{locations}}});",
                f"  CFRelease({colors_var});",
                f"  CGGradientDrawingOptions {options_var} = "
                f"(CGGradientDrawingOptions)({gradient_options_expression(gradient)});",
                draw_line,
                f"  CGGradientRelease({gradient_var});",
            ]

        return self._with_colors([stop.color for stop in gradient.stops], draw)
