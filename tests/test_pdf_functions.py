"""Tests for PDF function evaluation and sampling into gradient stops."""

from __future__ import annotations

import numpy as np
import pikepdf
import pytest

from drawgen.processors.pdf_functions import (
    CURVE_SAMPLE_COUNT,
    ExponentialFunction,
    FunctionArray,
    StitchingFunction,
    make_function,
    sample_function,
)
from drawgen.utils.validation import MalformedInputError


def exponential(c0, c1, n=1) -> pikepdf.Dictionary:
    return pikepdf.Dictionary(FunctionType=2, Domain=[0, 1], C0=list(c0), C1=list(c1), N=n)


class TestExponential:
    def test_linear_interpolation(self) -> None:
        function = make_function(exponential([0, 0, 0], [1, 0.5, 0]))
        assert isinstance(function, ExponentialFunction)
        np.testing.assert_allclose(function(0.5), [0.5, 0.25, 0.0])

    def test_linear_sampling_gives_two_stops(self) -> None:
        stops = sample_function(make_function(exponential([1], [0])), (0.0, 1.0))
        assert [location for location, _ in stops] == [0.0, 1.0]
        np.testing.assert_allclose(stops[0][1], [1.0])
        np.testing.assert_allclose(stops[1][1], [0.0])

    def test_non_linear_exponent_is_sampled(self) -> None:
        stops = sample_function(make_function(exponential([0], [1], n=2)), (0.0, 1.0))
        assert len(stops) == CURVE_SAMPLE_COUNT
        middle = [components[0] for location, components in stops if 0.4 < location < 0.6]
        assert all(value < 0.5 for value in middle)

    def test_input_is_clipped_to_domain(self) -> None:
        function = make_function(exponential([0], [1]))
        np.testing.assert_allclose(function(2.0), [1.0])

    def test_fractional_exponent_needs_non_negative_domain(self) -> None:
        function = pikepdf.Dictionary(FunctionType=2, Domain=[-1, 1], C0=[0], C1=[1], N=0.5)
        with pytest.raises(MalformedInputError, match="non-negative domain"):
            make_function(function)

    def test_negative_exponent_must_exclude_zero(self) -> None:
        function = pikepdf.Dictionary(FunctionType=2, Domain=[0, 1], C0=[0], C1=[1], N=-1)
        with pytest.raises(MalformedInputError, match="must not include 0"):
            make_function(function)

    def test_integer_exponent_allows_negative_domain(self) -> None:
        function = make_function(pikepdf.Dictionary(FunctionType=2, Domain=[-1, 1], C0=[0], C1=[1], N=2))
        np.testing.assert_allclose(function(-0.5), [0.25])


class TestStitching:
    def test_stops_at_bounds(self) -> None:
        stitching = pikepdf.Dictionary(
            FunctionType=3,
            Domain=[0, 1],
            Functions=[exponential([1, 0, 0], [0, 1, 0]), exponential([0, 1, 0], [0, 0, 1])],
            Bounds=[0.25],
            Encode=[0, 1, 0, 1],
        )
        function = make_function(stitching)
        assert isinstance(function, StitchingFunction)

        stops = sample_function(function, (0.0, 1.0))
        assert [location for location, _ in stops] == [0.0, 0.25, 1.0]
        np.testing.assert_allclose(stops[1][1], [0.0, 1.0, 0.0])

    def test_hard_step_gives_two_stops_at_bound(self) -> None:
        stitching = pikepdf.Dictionary(
            FunctionType=3,
            Domain=[0, 1],
            Functions=[exponential([1, 0, 0], [1, 0, 0]), exponential([0, 0, 1], [0, 0, 1])],
            Bounds=[0.5],
            Encode=[0, 1, 0, 1],
        )
        stops = sample_function(make_function(stitching), (0.0, 1.0))
        assert [location for location, _ in stops] == [0.0, 0.5, 0.5, 1.0]
        np.testing.assert_allclose(
            [components for _, components in stops],
            [[1, 0, 0], [1, 0, 0], [0, 0, 1], [0, 0, 1]],
        )

    def test_hard_step_in_reversed_domain(self) -> None:
        stitching = pikepdf.Dictionary(
            FunctionType=3,
            Domain=[0, 1],
            Functions=[exponential([1], [1]), exponential([0], [0])],
            Bounds=[0.5],
            Encode=[0, 1, 0, 1],
        )
        stops = sample_function(make_function(stitching), (1.0, 0.0))
        assert [location for location, _ in stops] == [0.0, 0.5, 0.5, 1.0]
        np.testing.assert_allclose([components[0] for _, components in stops], [0, 0, 1, 1])

    def test_per_component_steps(self) -> None:
        step = pikepdf.Dictionary(
            FunctionType=3,
            Domain=[0, 1],
            Functions=[exponential([0], [0]), exponential([1], [1])],
            Bounds=[0.5],
            Encode=[0, 1, 0, 1],
        )
        function = make_function(pikepdf.Array([step, exponential([0], [1])]))
        stops = sample_function(function, (0.0, 1.0))
        assert [location for location, _ in stops] == [0.0, 0.5, 0.5, 1.0]
        np.testing.assert_allclose(stops[1][1], [0.0, 0.5])
        np.testing.assert_allclose(stops[2][1], [1.0, 0.5])

    def test_mismatched_encode_is_malformed(self) -> None:
        stitching = pikepdf.Dictionary(
            FunctionType=3,
            Domain=[0, 1],
            Functions=[exponential([0], [1]), exponential([1], [0])],
            Bounds=[0.5],
            Encode=[0, 1],
        )
        with pytest.raises(MalformedInputError):
            make_function(stitching)


class TestSampled:
    def test_eight_bit_samples(self, pdf: pikepdf.Pdf) -> None:
        stream = pikepdf.Stream(pdf, bytes([0, 255, 255, 0]))
        stream.FunctionType = 0
        stream.Domain = [0, 1]
        stream.Range = [0, 1, 0, 1]
        stream.Size = [2]
        stream.BitsPerSample = 8

        function = make_function(stream)
        np.testing.assert_allclose(function(0.0), [0.0, 1.0])
        np.testing.assert_allclose(function(0.5), [0.5, 0.5])
        assert [location for location, _ in sample_function(function, (0.0, 1.0))] == [0.0, 1.0]

    def test_four_bit_samples(self, pdf: pikepdf.Pdf) -> None:
        stream = pikepdf.Stream(pdf, bytes([0x0F]))
        stream.FunctionType = 0
        stream.Domain = [0, 1]
        stream.Range = [0, 1]
        stream.Size = [2]
        stream.BitsPerSample = 4

        function = make_function(stream)
        np.testing.assert_allclose(function(0.0), [0.0])
        np.testing.assert_allclose(function(1.0), [1.0])


class TestFunctionArrays:
    def test_per_component_functions_are_concatenated(self) -> None:
        function = make_function(pikepdf.Array([exponential([0], [1]), exponential([1], [0])]))
        assert isinstance(function, FunctionArray)
        np.testing.assert_allclose(function(0.25), [0.25, 0.75])


class TestUnsupported:
    def test_postscript_function_is_not_implemented(self) -> None:
        with pytest.raises(MalformedInputError, match="FunctionType 4"):
            make_function(pikepdf.Dictionary(FunctionType=4, Domain=[0, 1], Range=[0, 1]))

    def test_sampling_normalizes_domain(self) -> None:
        function = ExponentialFunction((2.0, 4.0), [0.0], [1.0], 1.0)
        stops = sample_function(function, (2.0, 4.0))
        assert [location for location, _ in stops] == [0.0, 1.0]
