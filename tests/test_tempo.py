import fractions

import pytest

import trackgrid.tempo


def test_constant_tempo () -> None:

	"""At 120 BPM one beat lasts half a second."""

	tempo_map = trackgrid.tempo.TempoMap(bpm=120)

	assert tempo_map.seconds_at_beats(4) == pytest.approx(2.0)
	assert tempo_map.beats_at_seconds(2.0) == 4


def test_tempo_change () -> None:

	"""Seconds accumulate section by section."""

	tempo_map = trackgrid.tempo.TempoMap(bpm=120)
	tempo_map.add_tempo(beat=8, bpm=60)

	assert tempo_map.seconds_at_beats(8) == pytest.approx(4.0)
	assert tempo_map.seconds_at_beats(9) == pytest.approx(5.0)
	assert tempo_map.beats_at_seconds(5.0) == fractions.Fraction(9)
	assert tempo_map.bpm_at_beats(7) == 120.0
	assert tempo_map.bpm_at_beats(8) == 60.0


def test_tempo_change_replaces_same_beat () -> None:

	"""A second change at the same beat replaces the first."""

	tempo_map = trackgrid.tempo.TempoMap(bpm=120)
	tempo_map.add_tempo(beat=0, bpm=90)

	assert len(tempo_map.sections) == 1
	assert tempo_map.bpm_at_beats(0) == 90.0


def test_beats_snap_to_ticks () -> None:

	"""Beats computed from seconds are exact tick multiples."""

	tempo_map = trackgrid.tempo.TempoMap(bpm=100)
	beats = tempo_map.beats_at_seconds(0.123)

	assert (beats * 1920).denominator == 1


def test_invalid_tempo () -> None:

	"""Tempos must be positive and start at or after beat 0."""

	with pytest.raises(ValueError):
		trackgrid.tempo.TempoMap(bpm=0)

	tempo_map = trackgrid.tempo.TempoMap()

	with pytest.raises(ValueError):
		tempo_map.add_tempo(beat=4, bpm=-1)

	with pytest.raises(ValueError):
		tempo_map.add_tempo(beat=-1, bpm=100)
