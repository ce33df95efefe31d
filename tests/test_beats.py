import fractions

import pytest

import trackgrid.beats


def test_to_beats_snaps_to_ticks () -> None:

	"""Floats snap to the nearest of 1920 ticks per beat."""

	assert trackgrid.beats.to_beats(0.5) == fractions.Fraction(1, 2)
	assert trackgrid.beats.to_beats(1 / 3) == fractions.Fraction(1, 3)
	assert trackgrid.beats.to_beats(0.0001) == 0


def test_exact_fractions_pass_through () -> None:

	"""Fractions already on the tick grid are returned unchanged."""

	value = fractions.Fraction(3, 8)
	assert trackgrid.beats.to_beats(value) is value


def test_ticks_round_trip () -> None:

	"""Ticks and beats convert both ways."""

	assert trackgrid.beats.from_ticks(480) == fractions.Fraction(1, 4)
	assert trackgrid.beats.to_ticks(fractions.Fraction(1, 4)) == 480


def test_snap_up () -> None:

	"""snap_up() rounds up to the grid and leaves grid values alone."""

	quarter = fractions.Fraction(1, 4)

	assert trackgrid.beats.snap_up(fractions.Fraction(1, 10), quarter) == quarter
	assert trackgrid.beats.snap_up(quarter, quarter) == quarter

	with pytest.raises(ValueError):
		trackgrid.beats.snap_up(quarter, fractions.Fraction(0))
