"""Tempo-aware conversion between beats and native time.

Track automation is timed in seconds (the host's native unit) while notes
and region automation are timed in beats.  ``TempoMap`` converts between the
two with a piecewise-constant tempo: each ``TempoSection`` holds from its
start beat until the next one.
"""

import bisect
import dataclasses
import typing

import trackgrid.beats


@dataclasses.dataclass(frozen=True)
class TempoSection:

	"""A tempo change at a beat position."""

	beat: trackgrid.beats.Beats
	bpm: float


class TempoMap:

	"""
	Converts beats to seconds and back.

	Example:
		```python
		tempo_map = TempoMap(bpm=120)
		tempo_map.add_tempo(beat=8, bpm=60)

		tempo_map.seconds_at_beats(8)    # 4.0
		tempo_map.seconds_at_beats(9)    # 5.0
		tempo_map.beats_at_seconds(5.0)  # Fraction(9, 1)
		```
	"""

	def __init__ (self, bpm: float = 120.0) -> None:

		"""
		Create a tempo map with a single tempo from beat 0.
		"""

		if bpm <= 0:
			raise ValueError("Tempo must be positive")

		self._sections: typing.List[TempoSection] = [TempoSection(beat=trackgrid.beats.ZERO, bpm=float(bpm))]
		self._section_seconds: typing.List[float] = [0.0]

	@property
	def sections (self) -> typing.List[TempoSection]:
		return list(self._sections)

	def add_tempo (self, beat: trackgrid.beats.BeatsLike, bpm: float) -> None:

		"""
		Set the tempo from *beat* onwards, replacing any change at the same beat.
		"""

		if bpm <= 0:
			raise ValueError("Tempo must be positive")

		beat = trackgrid.beats.to_beats(beat)

		if beat < 0:
			raise ValueError("Tempo changes cannot be placed before beat 0")

		sections = [s for s in self._sections if s.beat != beat]
		sections.append(TempoSection(beat=beat, bpm=float(bpm)))
		sections.sort(key=lambda s: s.beat)

		self._sections = sections
		self._rebuild()

	def _rebuild (self) -> None:

		"""Recompute the start time in seconds of every section."""

		seconds = [0.0]

		for previous, section in zip(self._sections, self._sections[1:]):
			seconds.append(seconds[-1] + float(section.beat - previous.beat) * 60.0 / previous.bpm)

		self._section_seconds = seconds

	def bpm_at_beats (self, beats: trackgrid.beats.BeatsLike) -> float:
		return self._sections[self._section_index_at_beats(trackgrid.beats.to_beats(beats))].bpm

	def seconds_at_beats (self, beats: trackgrid.beats.BeatsLike) -> float:

		"""
		Return the time in seconds at a beat position.
		"""

		beats = trackgrid.beats.to_beats(beats)
		i = self._section_index_at_beats(beats)
		section = self._sections[i]

		return self._section_seconds[i] + float(beats - section.beat) * 60.0 / section.bpm

	def beats_at_seconds (self, seconds: float) -> trackgrid.beats.Beats:

		"""
		Return the beat position (snapped to the nearest tick) at a time in seconds.
		"""

		i = max(0, bisect.bisect_right(self._section_seconds, seconds) - 1)
		section = self._sections[i]
		elapsed = seconds - self._section_seconds[i]

		return trackgrid.beats.to_beats(float(section.beat) + elapsed * section.bpm / 60.0)

	def _section_index_at_beats (self, beats: trackgrid.beats.Beats) -> int:
		return max(0, bisect.bisect_right([s.beat for s in self._sections], beats) - 1)
