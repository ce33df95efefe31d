"""Exact beat arithmetic.

Musical times are held as ``fractions.Fraction`` beats snapped to the tick
grid (``TICKS_PER_BEAT`` ticks per beat).  Exact arithmetic keeps row
quantization free of float drift, and it lets the engine compare note
boundaries for equality (an off-event "touching" the next on-event).

Public entry points accept ``int``, ``float`` or ``Fraction`` beats and go
through ``to_beats()`` once.
"""

import fractions
import math
import typing

import trackgrid.constants


Beats = fractions.Fraction
BeatsLike = typing.Union[int, float, fractions.Fraction]

ZERO = fractions.Fraction(0)


def to_beats (value: BeatsLike) -> Beats:

	"""Convert a number of beats to an exact ``Fraction`` snapped to the nearest tick.

	Examples: ``0.5`` → ``1/2``, ``1/3`` (float) → ``640/1920`` = ``1/3``.
	"""

	if isinstance(value, fractions.Fraction) and (value * trackgrid.constants.TICKS_PER_BEAT).denominator == 1:
		return value

	ticks = round(fractions.Fraction(value) * trackgrid.constants.TICKS_PER_BEAT)
	return fractions.Fraction(ticks, trackgrid.constants.TICKS_PER_BEAT)


def from_ticks (ticks: int) -> Beats:

	"""Return the beats corresponding to a whole number of ticks."""

	return fractions.Fraction(ticks, trackgrid.constants.TICKS_PER_BEAT)


def to_ticks (beats: Beats) -> int:

	"""Return the nearest whole number of ticks for a beat value."""

	return round(beats * trackgrid.constants.TICKS_PER_BEAT)


def snap_up (beats: Beats, grid: Beats) -> Beats:

	"""Snap *beats* up to the next multiple of *grid* (unchanged if already on it)."""

	if grid <= 0:
		raise ValueError("Snap grid must be positive")

	return math.ceil(beats / grid) * grid
