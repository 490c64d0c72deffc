"""Tests for the content stream interpreter.

Covers the operator table, deferred alpha resolution, q/Q paint state,
resource lookups and Form XObject subroutes.
"""

from __future__ import annotations

from collections import namedtuple

import pikepdf
import pytest

from conftest import axial_shading, form_xobject, parse
from drawgen.constants.pdf_operators import SUPPORTED_OPS
from drawgen.models.draw_route import (
    AffineTransform,
    AppendRectangle,
    Clip,
    ClosePath,
    Color,
    ColorRenderingIntent,
    Composite,
    ConcatCTM,
    CurveTo,
    Dash,
    DashPattern,
    DrawPath,
    EndPath,
    Fill,
    FillColor,
    FillColorSpace,
    FillRule,
    LineCap,
    LineCapStyle,
    LineJoin,
    LineJoinStyle,
    LineTo,
    LineWidth,
    MiterLimit,
    MoveTo,
    PaintWithGradient,
    PathDrawingMode,
    Point,
    Rect,
    RestoreGState,
    RouteArena,
    SaveGState,
    Size,
    Stroke,
    StrokeColor,
    SubrouteWithName,
    saving_gstate,
)
from drawgen.processors.content_stream_interpreter import _HANDLERS, ContentStreamInterpreter
from drawgen.processors.resource_resolver import Resources, resolve_resources
from drawgen.utils.validation import MalformedInputError

Instruction = namedtuple("Instruction", ["operands", "operator"])

BLACK = Color.rgb(0, 0, 0)


def run(pdf, data: bytes, bounds: Rect, resources=None, arena=None):
    interpreter = ContentStreamInterpreter(arena)
    route = interpreter.interpret(parse(pdf, data), resources or Resources.empty(), bounds)
    return route, interpreter.arena


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestPaths:
    def test_move_line_close_fill(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 m 10 0 l 10 10 l h f", bounds)
        assert route.steps == (
            MoveTo(point=Point(x=0, y=0)),
            LineTo(point=Point(x=10, y=0)),
            LineTo(point=Point(x=10, y=10)),
            ClosePath(),
            Fill(rule=FillRule.WINDING, color=BLACK),
        )
        assert route.bounding_rect == bounds

    def test_curve_operands_in_source_order(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 m 1 2 3 4 5 6 c", bounds)
        assert route.steps[1] == CurveTo(
            control1=Point(x=1, y=2), control2=Point(x=3, y=4), end=Point(x=5, y=6)
        )

    def test_v_uses_current_point_as_first_control(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"7 8 m 3 4 5 6 v", bounds)
        assert route.steps[1] == CurveTo(
            control1=Point(x=7, y=8), control2=Point(x=3, y=4), end=Point(x=5, y=6)
        )

    def test_v_without_current_point_is_malformed(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError):
            run(pdf, b"3 4 5 6 v", bounds)

    def test_y_uses_end_as_second_control(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 m 1 2 5 6 y", bounds)
        assert route.steps[1] == CurveTo(
            control1=Point(x=1, y=2), control2=Point(x=5, y=6), end=Point(x=5, y=6)
        )

    def test_rectangle(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 2 3 4 re n", bounds)
        assert route.steps == (
            AppendRectangle(rect=Rect(origin=Point(x=1, y=2), size=Size(width=3, height=4))),
            EndPath(),
        )

    def test_clip_rules(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 5 5 re W n 0 0 5 5 re W* n", bounds)
        assert route.steps[1] == Clip(rule=FillRule.WINDING)
        assert route.steps[4] == Clip(rule=FillRule.EVEN_ODD)

    def test_even_odd_fill(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 5 5 re f*", bounds)
        assert route.steps[-1] == Fill(rule=FillRule.EVEN_ODD, color=BLACK)

    def test_missing_operand_is_malformed(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError):
            run(pdf, b"5 m", bounds)

    def test_empty_operands_are_malformed(self, bounds) -> None:
        interpreter = ContentStreamInterpreter()
        with pytest.raises(MalformedInputError, match="underflow"):
            interpreter.interpret([Instruction([], "l")], Resources.empty(), bounds)


# ---------------------------------------------------------------------------
# Painting and colors
# ---------------------------------------------------------------------------


class TestPainting:
    def test_color_operators_emit_no_steps(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 0 0 rg 0 1 0 RG 0.5 g 0 0 0 1 K", bounds)
        assert route.steps == ()

    def test_fill_uses_live_rgb(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 0 0 rg 0 0 5 5 re f", bounds)
        assert route.steps[-1] == Fill(color=Color.rgb(1, 0, 0))

    def test_stroke_uses_stroke_color(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 0 0 rg 0 0 1 RG 0 0 m 1 1 l S", bounds)
        assert route.steps[-1] == Stroke(color=Color.rgb(0, 0, 1))

    def test_gray_and_cmyk(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0.5 g 0 0 5 5 re f 1 0 0 0 k 0 0 5 5 re f", bounds)
        assert route.steps[1] == Fill(color=Color.rgb(0.5, 0.5, 0.5))
        assert route.steps[3] == Fill(color=Color.rgb(0, 1, 1))

    def test_sc_with_three_components(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"/DeviceRGB cs 0 1 0 sc 0 0 5 5 re f", bounds)
        assert route.steps[0] == FillColorSpace()
        assert route.steps[-1] == Fill(color=Color.rgb(0, 1, 0))

    def test_close_stroke(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 m 1 1 l s", bounds)
        assert route.steps[-1] == Composite(steps=(ClosePath(), Stroke(color=BLACK)))

    def test_fill_stroke(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 0 0 rg 0 0 1 RG 0 0 5 5 re B", bounds)
        assert route.steps[-1] == Composite(steps=(
            FillColor(color=Color.rgb(1, 0, 0)),
            StrokeColor(color=Color.rgb(0, 0, 1)),
            DrawPath(mode=PathDrawingMode.FILL_STROKE),
        ))

    def test_close_even_odd_fill_stroke(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"0 0 m 5 0 l 5 5 l b*", bounds)
        composite = route.steps[-1]
        assert composite.steps[0] == ClosePath()
        assert composite.steps[-1] == DrawPath(mode=PathDrawingMode.EO_FILL_STROKE)


# ---------------------------------------------------------------------------
# Deferred alpha
# ---------------------------------------------------------------------------


class TestDeferredAlpha:
    @pytest.fixture()
    def resources(self) -> Resources:
        return resolve_resources(pikepdf.Dictionary(ExtGState=pikepdf.Dictionary(
            GS1=pikepdf.Dictionary(ca=0.5),
            GS2=pikepdf.Dictionary(CA=0.25),
        )))

    def test_alpha_set_after_color_applies_at_paint(self, pdf, bounds, resources) -> None:
        route, _ = run(pdf, b"1 0 0 rg /GS1 gs 0 0 5 5 re f", bounds, resources)
        assert route.steps[-1] == Fill(color=Color.rgb(1, 0, 0, 0.5))

    def test_alpha_set_before_color_applies_at_paint(self, pdf, bounds, resources) -> None:
        route, _ = run(pdf, b"/GS1 gs 1 0 0 rg 0 0 5 5 re f", bounds, resources)
        assert route.steps[-1] == Fill(color=Color.rgb(1, 0, 0, 0.5))

    def test_stroke_alpha_is_independent(self, pdf, bounds, resources) -> None:
        route, _ = run(pdf, b"/GS2 gs 0 0 m 1 1 l S 0 0 5 5 re f", bounds, resources)
        assert route.steps[2] == Stroke(color=Color.rgb(0, 0, 0, 0.25))
        assert route.steps[4] == Fill(color=BLACK)

    def test_unknown_ext_gstate_is_malformed(self, pdf, bounds, resources) -> None:
        with pytest.raises(MalformedInputError, match="GS9"):
            run(pdf, b"/GS9 gs", bounds, resources)


# ---------------------------------------------------------------------------
# Graphics state
# ---------------------------------------------------------------------------


class TestGraphicsState:
    def test_restore_brings_back_color(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 0 0 rg q 0 1 0 rg Q 0 0 5 5 re f", bounds)
        assert route.steps[0] == SaveGState()
        assert route.steps[1] == RestoreGState()
        assert route.steps[-1] == Fill(color=Color.rgb(1, 0, 0))

    def test_unbalanced_restore_is_malformed(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError):
            run(pdf, b"q Q Q", bounds)

    def test_line_parameters(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"2 w 1 J 2 j 4 M [3 1] 0 d /Perceptual ri", bounds)
        assert route.steps == (
            LineWidth(width=2),
            LineCapStyle(cap=LineCap.ROUND),
            LineJoinStyle(join=LineJoin.BEVEL),
            MiterLimit(limit=4),
            Dash(pattern=DashPattern(phase=0, lengths=(3, 1))),
            ColorRenderingIntent(intent="Perceptual"),
        )

    def test_invalid_line_cap_is_malformed(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError):
            run(pdf, b"7 J", bounds)

    def test_concat_ctm(self, pdf, bounds) -> None:
        route, _ = run(pdf, b"1 0 0 -1 0 24 cm", bounds)
        assert route.steps == (ConcatCTM(transform=AffineTransform(d=-1, ty=24)),)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class TestResources:
    def test_shading(self, pdf, bounds) -> None:
        resources = resolve_resources(pikepdf.Dictionary(Shading=pikepdf.Dictionary(Sh0=axial_shading())))
        route, _ = run(pdf, b"/Sh0 sh", bounds, resources)
        assert route.steps == (PaintWithGradient(name="Sh0"),)
        assert set(route.gradients) == {"Sh0"}

    def test_unknown_shading_is_malformed(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError, match="Sh1"):
            run(pdf, b"/Sh1 sh", bounds)

    def test_unsupported_operator_is_fatal(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError, match="not implemented"):
            run(pdf, b"BT /F1 12 Tf ET", bounds)

    def test_operator_table_covers_supported_operators(self) -> None:
        assert set(_HANDLERS) == {op.decode("latin-1") for op in SUPPORTED_OPS}


# ---------------------------------------------------------------------------
# Form XObjects
# ---------------------------------------------------------------------------


class TestFormXObjects:
    def test_form_becomes_subroute(self, pdf, bounds) -> None:
        form = form_xobject(pdf, b"0 0 m 1 1 l S", matrix=(1, 0, 0, 1, 5, 5))
        resources = resolve_resources(pikepdf.Dictionary(XObject=pikepdf.Dictionary(Fm1=form)))

        route, arena = run(pdf, b"/Fm1 Do /Fm1 Do", bounds, resources)

        expected = saving_gstate(
            ConcatCTM(transform=AffineTransform(tx=5, ty=5)),
            SubrouteWithName(name="Fm1"),
        )
        assert route.steps == (expected, expected)
        assert route.subroutes == {"Fm1": 0}
        assert len(arena) == 1
        assert arena.get(0).bounding_rect == Rect.from_bounds(0, 0, 10, 10)
        assert arena.get(0).steps[-1] == Stroke(color=BLACK)

    def test_form_takes_paint_state_of_each_invocation(self, pdf, bounds) -> None:
        form = form_xobject(pdf, b"0 0 5 5 re f")
        resources = resolve_resources(pikepdf.Dictionary(XObject=pikepdf.Dictionary(Fm1=form)))

        route, arena = run(pdf, b"1 0 0 rg /Fm1 Do 0 0 1 rg /Fm1 Do /Fm1 Do", bounds, resources)

        assert route.steps == (
            saving_gstate(SubrouteWithName(name="Fm1")),
            saving_gstate(SubrouteWithName(name="Fm1#1")),
            saving_gstate(SubrouteWithName(name="Fm1#1")),
        )
        assert route.subroutes == {"Fm1": 0, "Fm1#1": 1}
        assert len(arena) == 2
        assert arena.get(0).steps[-1] == Fill(color=Color.rgb(1, 0, 0))
        assert arena.get(1).steps[-1] == Fill(color=Color.rgb(0, 0, 1))

    def test_form_alpha_is_part_of_inherited_state(self, pdf, bounds) -> None:
        form = form_xobject(pdf, b"0 0 5 5 re f")
        resources = resolve_resources(pikepdf.Dictionary(
            XObject=pikepdf.Dictionary(Fm1=form),
            ExtGState=pikepdf.Dictionary(GS1=pikepdf.Dictionary(ca=0.5)),
        ))
        _, arena = run(pdf, b"/Fm1 Do /GS1 gs /Fm1 Do", bounds, resources)
        assert len(arena) == 2
        assert arena.get(1).steps[-1] == Fill(color=Color.rgb(0, 0, 0, 0.5))

    def test_form_used_by_page_and_form_is_interpreted_once(self, pdf, bounds) -> None:
        inner = form_xobject(pdf, b"0 0 1 1 re f")
        outer = form_xobject(pdf, b"/Inner Do")
        resources = resolve_resources(pikepdf.Dictionary(XObject=pikepdf.Dictionary(Inner=inner, Outer=outer)))

        route, arena = run(pdf, b"/Inner Do /Outer Do", bounds, resources)

        assert len(arena) == 2
        assert route.subroutes == {"Inner": 0, "Outer": 1}
        assert arena.get(1).subroutes == {"Inner": 0}

    def test_form_without_resources_depends_on_caller_resources(self, pdf, bounds) -> None:
        inner = form_xobject(pdf, b"/GS1 gs 0 0 1 1 re f")
        outer = form_xobject(pdf, b"/Inner Do", resources=pikepdf.Dictionary(
            XObject=pikepdf.Dictionary(Inner=inner),
            ExtGState=pikepdf.Dictionary(GS1=pikepdf.Dictionary(ca=0.5)),
        ))
        resources = resolve_resources(pikepdf.Dictionary(
            XObject=pikepdf.Dictionary(Inner=inner, Outer=outer),
            ExtGState=pikepdf.Dictionary(GS1=pikepdf.Dictionary(ca=0.25)),
        ))

        route, arena = run(pdf, b"/Inner Do /Outer Do", bounds, resources)

        assert len(arena) == 3
        assert route.subroutes == {"Inner": 0, "Outer": 2}
        assert arena.get(2).subroutes == {"Inner#1": 1}
        assert arena.get(0).steps[-1] == Fill(color=Color.rgb(0, 0, 0, 0.25))
        assert arena.get(1).steps[-1] == Fill(color=Color.rgb(0, 0, 0, 0.5))

    def test_form_inherits_parent_resources(self, pdf, bounds) -> None:
        form = form_xobject(pdf, b"/GS1 gs 0 0 5 5 re f")
        resources = resolve_resources(pikepdf.Dictionary(
            XObject=pikepdf.Dictionary(Fm1=form),
            ExtGState=pikepdf.Dictionary(GS1=pikepdf.Dictionary(ca=0.5)),
        ))
        _, arena = run(pdf, b"/Fm1 Do", bounds, resources)
        assert arena.get(0).steps[-1] == Fill(color=Color.rgb(0, 0, 0, 0.5))

    def test_nested_forms_are_registered_first(self, pdf, bounds) -> None:
        inner = form_xobject(pdf, b"0 0 1 1 re f")
        outer = form_xobject(pdf, b"/Inner Do", resources=pikepdf.Dictionary(
            XObject=pikepdf.Dictionary(Inner=inner),
        ))
        resources = resolve_resources(pikepdf.Dictionary(XObject=pikepdf.Dictionary(Outer=outer)))

        route, arena = run(pdf, b"/Outer Do", bounds, resources)
        assert len(arena) == 2
        assert arena.get(1).subroutes == {"Inner": 0}
        assert route.subroutes == {"Outer": 1}

    def test_self_referencing_form_is_malformed(self, pdf, bounds) -> None:
        form = form_xobject(pdf, b"/Me Do")
        form.Resources = pikepdf.Dictionary(XObject=pikepdf.Dictionary(Me=form))
        resources = resolve_resources(pikepdf.Dictionary(XObject=pikepdf.Dictionary(Me=form)))
        with pytest.raises(MalformedInputError, match="invokes itself"):
            run(pdf, b"/Me Do", bounds, resources)

    def test_unknown_xobject_is_malformed(self, pdf, bounds) -> None:
        with pytest.raises(MalformedInputError, match="Fm9"):
            run(pdf, b"/Fm9 Do", bounds)

    def test_shared_arena(self, pdf, bounds) -> None:
        arena = RouteArena()
        form = form_xobject(pdf, b"0 0 1 1 re f")
        resources = resolve_resources(pikepdf.Dictionary(XObject=pikepdf.Dictionary(Fm1=form)))
        _, returned = run(pdf, b"/Fm1 Do", bounds, resources, arena=arena)
        assert returned is arena
        assert len(arena) == 1
