"""Interpolation shapes for automation values between two points.

A row that holds no automation point of a parameter displays the value the
parameter would have at that row's time.  That value is interpolated between
the surrounding points with the parameter's own shape:

    "linear"      Straight line between the two points (default).
    "discrete"    Hold the earlier point's value until the next point
                  (mute, program change, switches).
    "exponential" Slow start, rapid end (cubic) - gain-like curves.
    "logarithmic" Rapid start, gradual end (cubic).

A shape may also be any callable mapping progress *t* in [0, 1] to [0, 1].
Before the first point the first value holds; after the last point the last
value holds.
"""

from __future__ import annotations

import bisect
import typing


# ─── Shapes ───────────────────────────────────────────────────────────────────


def linear (t: float) -> float:
    """Constant rate of change."""
    return t


def discrete (t: float) -> float:
    """Hold the start value until the end point is reached."""
    return 1.0 if t >= 1.0 else 0.0


def exponential (t: float) -> float:
    """Cubic ease-in: very slow start with rapid acceleration."""
    return t * t * t


def logarithmic (t: float) -> float:
    """Cubic ease-out: rapid initial change that tapers to a gradual end."""
    return 1.0 - (1.0 - t) * (1.0 - t) * (1.0 - t)


# ─── Registry and lookup ──────────────────────────────────────────────────────

InterpolationFn = typing.Callable[[float], float]

INTERPOLATION_FUNCTIONS: typing.Dict[str, InterpolationFn] = {
    "linear":      linear,
    "discrete":    discrete,
    "exponential": exponential,
    "logarithmic": logarithmic,
}


def get_interpolation (shape: typing.Union[str, InterpolationFn]) -> InterpolationFn:
    """Return the interpolation function for *shape*.

    Raises :class:`ValueError` for unknown string names.
    """
    if callable(shape):
        return shape
    if shape not in INTERPOLATION_FUNCTIONS:
        available = ", ".join(f'"{k}"' for k in sorted(INTERPOLATION_FUNCTIONS))
        raise ValueError(
            f"Unknown interpolation shape {shape!r}. Available shapes: {available}"
        )
    return INTERPOLATION_FUNCTIONS[shape]


def evaluate (
    points: typing.Sequence[typing.Tuple[typing.Any, float]],
    when: typing.Any,
    shape: typing.Union[str, InterpolationFn] = "linear",
) -> typing.Optional[float]:
    """Evaluate a list of ``(time, value)`` points at *when*.

    *points* must be sorted by time.  Times may be any ordered numeric type
    (beats as ``Fraction`` or seconds as ``float``).  Returns ``None`` when
    there are no points at all.
    """
    if not points:
        return None

    times = [p[0] for p in points]
    i = bisect.bisect_right(times, when)

    if i == 0:
        return float(points[0][1])
    if i == len(points):
        return float(points[-1][1])

    t0, v0 = points[i - 1]
    t1, v1 = points[i]

    if t1 == t0:
        return float(v1)

    progress = float(when - t0) / float(t1 - t0)
    eased = get_interpolation(shape)(progress)
    return float(v0) + eased * (float(v1) - float(v0))
