"""
PDF function evaluation (PDF spec 7.10) for shading color functions.

Supports single-input functions of type 0 (sampled), 2 (exponential) and
3 (stitching), plus arrays of per-component functions. Each function can
report the input values worth sampling so a shading can be turned into a
finite list of gradient stops.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Sequence, Tuple

import numpy as np
import pikepdf

from drawgen.constants.pdf_keys import (
    KEY_FUNCTION_TYPE, KEY_DOMAIN, KEY_RANGE, KEY_C0, KEY_C1, KEY_N,
    KEY_FUNCTIONS, KEY_BOUNDS, KEY_ENCODE, KEY_DECODE, KEY_SIZE, KEY_BITS_PER_SAMPLE
)
from drawgen.utils.validation import MalformedInputError

logger = logging.getLogger(__name__)

# Number of samples taken from non-linear segments
CURVE_SAMPLE_COUNT = 16


def _floats(obj: Any, default: Sequence[float] = ()) -> List[float]:
    if obj is None:
        return list(default)
    try:
        return [float(x) for x in obj]
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Expected numeric array, got {obj!r}") from e


def _interpolate(x: float, x_min: float, x_max: float, y_min: float, y_max: float) -> float:
    if x_max == x_min:
        return y_min
    return y_min + (x - x_min) * (y_max - y_min) / (x_max - x_min)


class PdfFunction(ABC):
    """Single-input PDF function."""

    def __init__(self, domain: Sequence[float], range_: Sequence[float] = ()):
        if len(domain) < 2:
            raise MalformedInputError(f"Function domain needs two values, got {list(domain)}")
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = list(range_)

    def clip_input(self, t: float) -> float:
        lo, hi = self.domain
        return min(max(t, lo), hi)

    def clip_output(self, values: np.ndarray) -> np.ndarray:
        if not self.range:
            return values
        lows = np.array(self.range[0::2][:len(values)])
        highs = np.array(self.range[1::2][:len(values)])
        return np.clip(values, lows, highs)

    def __call__(self, t: float) -> np.ndarray:
        return self.clip_output(self.evaluate(self.clip_input(t)))

    @abstractmethod
    def evaluate(self, t: float) -> np.ndarray:
        ...

    @abstractmethod
    def sample_points(self) -> List[float]:
        """Inputs (within domain, ascending) at which the function should be sampled."""
        ...

    def discontinuities(self) -> List[float]:
        """Inputs where the value approached from below differs from the value at the input."""
        return []

    def left_limit(self, t: float) -> np.ndarray:
        """Value approached from below `t`."""
        return self(t)


class ExponentialFunction(PdfFunction):
    """FunctionType 2: C0 + t^N * (C1 - C0)"""

    def __init__(self, domain, c0, c1, n: float, range_=()):
        super().__init__(domain, range_)
        self.c0 = np.asarray(c0, dtype=float)
        self.c1 = np.asarray(c1, dtype=float)
        self.n = float(n)
        if not self.n.is_integer() and self.domain[0] < 0:
            raise MalformedInputError(f"Exponential function with N={self.n} needs a non-negative domain")
        if self.n < 0 and self.domain[0] <= 0 <= self.domain[1]:
            raise MalformedInputError(f"Exponential function with N={self.n} must not include 0 in its domain")

    def evaluate(self, t: float) -> np.ndarray:
        return self.c0 + (t ** self.n) * (self.c1 - self.c0)

    def sample_points(self) -> List[float]:
        lo, hi = self.domain
        if self.n == 1.0:
            return [lo, hi]
        return [float(x) for x in np.linspace(lo, hi, CURVE_SAMPLE_COUNT)]


class StitchingFunction(PdfFunction):
    """FunctionType 3: sub-functions over the intervals given by Bounds"""

    def __init__(self, domain, functions: List[PdfFunction], bounds, encode, range_=()):
        super().__init__(domain, range_)
        if not functions:
            raise MalformedInputError("Stitching function has no sub-functions")
        if len(bounds) != len(functions) - 1 or len(encode) != 2 * len(functions):
            raise MalformedInputError("Stitching function Bounds/Encode do not match Functions")
        self.functions = functions
        self.bounds = [float(b) for b in bounds]
        self.encode = [float(e) for e in encode]

    def _edges(self) -> List[float]:
        return [self.domain[0], *self.bounds, self.domain[1]]

    def _segment(self, t: float, from_left: bool = False) -> int:
        for k, bound in enumerate(self.bounds):
            if t < bound or (from_left and t == bound):
                return k
        return len(self.functions) - 1

    def _evaluate_segment(self, t: float, k: int) -> np.ndarray:
        edges = self._edges()
        encoded = _interpolate(t, edges[k], edges[k + 1], self.encode[2 * k], self.encode[2 * k + 1])
        return self.functions[k](encoded)

    def evaluate(self, t: float) -> np.ndarray:
        return self._evaluate_segment(t, self._segment(t))

    def left_limit(self, t: float) -> np.ndarray:
        t = self.clip_input(t)
        return self.clip_output(self._evaluate_segment(t, self._segment(t, from_left=True)))

    def discontinuities(self) -> List[float]:
        return list(self.bounds)

    def sample_points(self) -> List[float]:
        # Edges are kept exact so that bounds line up with discontinuities()
        edges = self._edges()
        points = set(edges)
        for k, function in enumerate(self.functions):
            e0, e1 = self.encode[2 * k], self.encode[2 * k + 1]
            for s in function.sample_points():
                t = _interpolate(s, e0, e1, edges[k], edges[k + 1])
                if edges[k] < t < edges[k + 1]:
                    points.add(t)
        return sorted(points)


class SampledFunction(PdfFunction):
    """FunctionType 0 with one input, linear interpolation between samples"""

    def __init__(self, domain, samples: np.ndarray, encode, range_):
        super().__init__(domain, range_)
        self.samples = samples  # shape (size, outputs), already decoded
        self.encode = [float(e) for e in encode]

    @property
    def size(self) -> int:
        return self.samples.shape[0]

    def evaluate(self, t: float) -> np.ndarray:
        e = _interpolate(t, self.domain[0], self.domain[1], self.encode[0], self.encode[1])
        e = min(max(e, 0.0), self.size - 1)
        i0 = int(np.floor(e))
        i1 = min(i0 + 1, self.size - 1)
        frac = e - i0
        return self.samples[i0] * (1.0 - frac) + self.samples[i1] * frac

    def sample_points(self) -> List[float]:
        return sorted({
            _interpolate(i, self.encode[0], self.encode[1], self.domain[0], self.domain[1])
            for i in range(self.size)
        })


class FunctionArray(PdfFunction):
    """Array of 1-output functions, one per color component"""

    def __init__(self, functions: List[PdfFunction]):
        super().__init__(functions[0].domain)
        self.functions = functions

    def evaluate(self, t: float) -> np.ndarray:
        return np.concatenate([np.atleast_1d(f(t)) for f in self.functions])

    def sample_points(self) -> List[float]:
        return sorted({p for f in self.functions for p in f.sample_points()})

    def discontinuities(self) -> List[float]:
        return sorted({p for f in self.functions for p in f.discontinuities()})

    def left_limit(self, t: float) -> np.ndarray:
        return np.concatenate([np.atleast_1d(f.left_limit(t)) for f in self.functions])


def _unpack_samples(data: bytes, bits_per_sample: int, count: int) -> np.ndarray:
    if bits_per_sample == 8:
        values = np.frombuffer(data, dtype=np.uint8)
    elif bits_per_sample == 16:
        values = np.frombuffer(data, dtype='>u2')
    elif bits_per_sample == 32:
        values = np.frombuffer(data, dtype='>u4')
    elif bits_per_sample in (1, 2, 4, 12, 24):
        bits = np.unpackbits(np.frombuffer(data, dtype=np.uint8))
        usable = (len(bits) // bits_per_sample) * bits_per_sample
        groups = bits[:usable].reshape(-1, bits_per_sample)
        weights = (2 ** np.arange(bits_per_sample - 1, -1, -1)).astype(np.uint64)
        values = groups.astype(np.uint64) @ weights
    else:
        raise MalformedInputError(f"Unsupported BitsPerSample {bits_per_sample}")
    if len(values) < count:
        raise MalformedInputError(f"Sampled function has {len(values)} samples, expected {count}")
    return values[:count].astype(float)


def _make_sampled(func, domain, range_) -> SampledFunction:
    size = [int(s) for s in _floats(func.get(KEY_SIZE))]
    if len(size) != 1:
        raise MalformedInputError(f"Sampled function must have one input, got Size {size}")
    if not range_:
        raise MalformedInputError("Sampled function is missing Range")
    outputs = len(range_) // 2
    bps = int(func.get(KEY_BITS_PER_SAMPLE, 8))
    encode = _floats(func.get(KEY_ENCODE), (0, size[0] - 1))
    decode = _floats(func.get(KEY_DECODE), range_)

    raw = _unpack_samples(func.read_bytes(), bps, size[0] * outputs).reshape(size[0], outputs)
    max_value = float(2 ** bps - 1)
    dmin = np.array(decode[0::2][:outputs])
    dmax = np.array(decode[1::2][:outputs])
    samples = dmin + raw * (dmax - dmin) / max_value
    return SampledFunction(domain, samples, encode, range_)


def make_function(obj: Any) -> PdfFunction:
    """
    Build a PdfFunction from a PDF function object or array of functions.

    Raises:
        MalformedInputError: If the function is malformed or of type 4
    """
    if isinstance(obj, (pikepdf.Array, list)):
        functions = [make_function(f) for f in obj]
        if not functions:
            raise MalformedInputError("Empty function array")
        return FunctionArray(functions)

    try:
        ftype = int(obj.get(KEY_FUNCTION_TYPE))
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedInputError(f"Invalid function object: {obj!r}") from e

    domain = _floats(obj.get(KEY_DOMAIN), (0, 1))
    range_ = _floats(obj.get(KEY_RANGE))

    if ftype == 2:
        c0 = _floats(obj.get(KEY_C0), (0.0,))
        c1 = _floats(obj.get(KEY_C1), (1.0,))
        n = float(obj.get(KEY_N, 1))
        return ExponentialFunction(domain, c0, c1, n, range_)

    if ftype == 3:
        subs = [make_function(f) for f in obj.get(KEY_FUNCTIONS, [])]
        bounds = _floats(obj.get(KEY_BOUNDS))
        encode = _floats(obj.get(KEY_ENCODE))
        return StitchingFunction(domain, subs, bounds, encode, range_)

    if ftype == 0:
        return _make_sampled(obj, domain, range_)

    raise MalformedInputError(f"FunctionType {ftype} is not implemented")


def sample_function(function: PdfFunction, domain: Tuple[float, float]) -> List[Tuple[float, np.ndarray]]:
    """
    Sample a function into (location, components) pairs.

    Locations are normalized from `domain` into 0..1 and are non-decreasing.
    At a discontinuity two stops share one location, the value reached from
    below first, so that hard color steps stay hard.
    """
    d0, d1 = domain
    lo, hi = min(d0, d1), max(d0, d1)
    jumps = {t for t in function.discontinuities() if lo < t < hi}
    points = sorted({t for t in function.sample_points() if lo <= t <= hi} | jumps)
    if not points:
        points = [d0, d1]

    result = []
    for t in points:
        location = 0.0 if d1 == d0 else (t - d0) / (d1 - d0)
        location = min(max(location, 0.0), 1.0)
        value = function(t)
        if t in jumps:
            before = function.left_limit(t)
            if not np.allclose(before, value):
                pair = [before, value] if d0 <= d1 else [value, before]
                result.append((location, pair[0]))
                value = pair[1]
        result.append((location, value))
    # Stable sort keeps the two stops of a discontinuity in order
    result.sort(key=lambda pair: pair[0])
    return result
