"""Quantization of continuous musical time onto a row grid.

A ``TimeGrid`` covers a half-open interval ``[position, position + length)``
of the timeline and divides it into rows of ``1 / rows_per_beat`` beats.
Row 0 starts at the interval start snapped up to the next row boundary.

An event rarely falls exactly on a row boundary.  Its exact time is kept as
a *delay*: a signed offset in ticks from the start of the row it is shown on,
within ``[1 - ticks_per_row, ticks_per_row - 1]``.  Three inverses map a
time to a row:

- ``row_at_beats()`` - the nearest row (delay within half a row).
- ``row_at_beats_max_delay()`` - the row the time falls in, so that the
  delay is zero or positive.
- ``row_at_beats_min_delay()`` - the next row unless the time is exactly on
  a boundary, so that the delay is zero or negative.

The biased variants give the note and automation mappers an alternative row
when two events collide on the same nearest row.

A resolution of 0 rows per beat means one row per bar.  It is accepted but
flagged through ``is_degraded``.
"""

import fractions
import logging
import math
import typing

import trackgrid.beats
import trackgrid.constants
import trackgrid.tempo


logger = logging.getLogger(__name__)


class TimeGrid:

	"""
	Bidirectional mapping between beats and (row, delay) coordinates.

	The row range is derived state: after ``set_rows_per_beat()`` or
	``set_interval()`` it must be recomputed with ``set_row_range()`` (which
	every pattern's ``update()`` does) before any row query.

	Example:
		```python
		grid = TimeGrid(position=0, length=4, rows_per_beat=4)
		grid.set_row_range()

		grid.nrows                       # 16
		grid.row_at_beats(0.5)           # 2
		grid.beats_at_row(3, delay=120)  # Fraction(13, 16)
		```
	"""

	def __init__ (
		self,
		position: trackgrid.beats.BeatsLike = 0,
		length: trackgrid.beats.BeatsLike = 0,
		start: trackgrid.beats.BeatsLike = 0,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
	) -> None:

		"""Describe the covered interval and resolution.

		Parameters:
			position: Timeline beat where the interval starts.
			length: Interval length in beats.
			start: Offset into the event source at ``position`` (for
				regions that do not start at the beginning of their source).
			rows_per_beat: Grid resolution, 0 for one row per bar.
			beats_per_bar: Bar length used when ``rows_per_beat`` is 0.
			tempo_map: Converter used by the seconds-based helpers.
		"""

		if beats_per_bar <= 0:
			raise ValueError("Beats per bar must be positive")

		self.beats_per_bar = beats_per_bar
		self.tempo_map = tempo_map if tempo_map is not None else trackgrid.tempo.TempoMap()

		self.position_beats = trackgrid.beats.ZERO
		self.start_beats = trackgrid.beats.ZERO
		self.length_beats = trackgrid.beats.ZERO
		self.set_interval(position, length, start)

		self.rows_per_beat = trackgrid.constants.DEFAULT_ROWS_PER_BEAT
		self.beats_per_row = fractions.Fraction(1, self.rows_per_beat)
		self.ticks_per_row = trackgrid.constants.TICKS_PER_BEAT // self.rows_per_beat
		self.set_rows_per_beat(rows_per_beat)

		self.position_row_beats = trackgrid.beats.ZERO
		self.end_row_beats = trackgrid.beats.ZERO
		self.nrows = 0
		self._has_row_range = False

	# ------------------------------------------------------------------
	# Configuration
	# ------------------------------------------------------------------

	@property
	def end_beats (self) -> trackgrid.beats.Beats:

		"""Timeline beat where the interval ends (excluded)."""

		return self.position_beats + self.length_beats

	@property
	def is_degraded (self) -> bool:

		"""True in the one-row-per-bar mode, which quantizes far coarser than a beat."""

		return self.rows_per_beat == trackgrid.constants.ONE_ROW_PER_BAR

	@property
	def has_row_range (self) -> bool:
		return self._has_row_range

	def set_rows_per_beat (self, rows_per_beat: int) -> None:

		"""Change the resolution.  The row range must be recomputed afterwards."""

		if rows_per_beat < 0 or rows_per_beat > trackgrid.constants.MAX_ROWS_PER_BEAT:
			raise ValueError(f"Rows per beat must be between 0 and {trackgrid.constants.MAX_ROWS_PER_BEAT}")

		self.rows_per_beat = rows_per_beat

		if rows_per_beat == trackgrid.constants.ONE_ROW_PER_BAR:
			logger.warning(f"Rows per beat is 0: quantizing to one row per bar ({self.beats_per_bar} beats), delays span whole bars")
			self.beats_per_row = fractions.Fraction(self.beats_per_bar)
			self.ticks_per_row = trackgrid.constants.TICKS_PER_BEAT * self.beats_per_bar

		else:
			self.beats_per_row = fractions.Fraction(1, rows_per_beat)
			self.ticks_per_row = trackgrid.constants.TICKS_PER_BEAT // rows_per_beat

		self._has_row_range = False

	def set_interval (
		self,
		position: trackgrid.beats.BeatsLike,
		length: trackgrid.beats.BeatsLike,
		start: trackgrid.beats.BeatsLike = 0,
	) -> None:

		"""Move or resize the covered interval.  The row range must be recomputed afterwards."""

		position = trackgrid.beats.to_beats(position)
		length = trackgrid.beats.to_beats(length)
		start = trackgrid.beats.to_beats(start)

		if length < 0:
			raise ValueError("Interval length cannot be negative")

		if start < 0:
			raise ValueError("Source start cannot be negative")

		self.position_beats = position
		self.length_beats = length
		self.start_beats = start
		self._has_row_range = False

	def set_row_range (self) -> None:

		"""Recompute the first row beat, the end row beat and the number of rows."""

		self.position_row_beats = trackgrid.beats.snap_up(self.position_beats, self.beats_per_row)
		self.end_row_beats = max(self.position_row_beats, trackgrid.beats.snap_up(self.end_beats, self.beats_per_row))
		self.nrows = int((self.end_row_beats - self.position_row_beats) / self.beats_per_row)
		self._has_row_range = True

	def _require_row_range (self) -> None:

		if not self._has_row_range:
			raise RuntimeError(f"{type(self).__name__} row range queried before update()")

	# ------------------------------------------------------------------
	# Rows and beats
	# ------------------------------------------------------------------

	def is_defined (self, row: int) -> bool:

		"""True if the row exists in this grid."""

		self._require_row_range()
		return 0 <= row < self.nrows

	def beats_at_row (self, row: int, delay: int = 0) -> trackgrid.beats.Beats:

		"""Timeline beats at the start of a row, shifted by *delay* ticks."""

		self._require_row_range()
		return self.position_row_beats + row * self.beats_per_row + trackgrid.beats.from_ticks(delay)

	def row_distance (self, from_beats: trackgrid.beats.Beats, to_beats: trackgrid.beats.Beats) -> fractions.Fraction:

		"""Number of rows between two beats, centred so that truncating gives the nearest row."""

		return (to_beats - from_beats) / self.beats_per_row + fractions.Fraction(1, 2)

	def row_at_beats (self, beats: trackgrid.beats.BeatsLike) -> int:

		"""Nearest row to a timeline beat (half-way times go to the later row)."""

		self._require_row_range()
		beats = trackgrid.beats.to_beats(beats)
		return self._clamp(self.row_distance(self.position_row_beats, beats))

	def row_at_beats_min_delay (self, beats: trackgrid.beats.BeatsLike) -> int:

		"""Row in which the time carries a zero or negative delay."""

		self._require_row_range()
		beats = trackgrid.beats.to_beats(beats)
		almost_row = trackgrid.beats.from_ticks(self.ticks_per_row - 1)
		return self._clamp((beats - self.position_row_beats + almost_row) / self.beats_per_row)

	def row_at_beats_max_delay (self, beats: trackgrid.beats.BeatsLike) -> int:

		"""Row in which the time carries a zero or positive delay."""

		self._require_row_range()
		beats = trackgrid.beats.to_beats(beats)
		return self._clamp((beats - self.position_row_beats) / self.beats_per_row)

	def delay_ticks (self, event_time: trackgrid.beats.BeatsLike, row: int) -> int:

		"""Offset in ticks of a timeline beat from the start of a row."""

		event_time = trackgrid.beats.to_beats(event_time)
		return trackgrid.beats.to_ticks(event_time - self.beats_at_row(row))

	def delay_ticks_min (self) -> int:
		return 1 - self.ticks_per_row

	def delay_ticks_max (self) -> int:
		return self.ticks_per_row - 1

	def is_delay_in_range (self, delay: int) -> bool:
		return self.delay_ticks_min() <= delay <= self.delay_ticks_max()

	# ------------------------------------------------------------------
	# Source-relative time
	# ------------------------------------------------------------------

	def to_timeline_beats (self, source_beats: trackgrid.beats.Beats) -> trackgrid.beats.Beats:

		"""Convert a time in the event source to a timeline beat."""

		return source_beats + self.position_beats - self.start_beats

	def to_source_beats (self, timeline_beats: trackgrid.beats.Beats) -> trackgrid.beats.Beats:
		return timeline_beats - self.position_beats + self.start_beats

	def region_relative_beats_at_row (self, row: int, delay: int = 0) -> trackgrid.beats.Beats:

		"""Like ``beats_at_row`` but expressed in source time."""

		return self.to_source_beats(self.beats_at_row(row, delay))

	def region_relative_delay_ticks (self, source_beats: trackgrid.beats.BeatsLike, row: int) -> int:

		"""Like ``delay_ticks`` for a time expressed in source time."""

		return self.delay_ticks(self.to_timeline_beats(trackgrid.beats.to_beats(source_beats)), row)

	# ------------------------------------------------------------------
	# Native time (seconds)
	# ------------------------------------------------------------------

	def seconds_at_row (self, row: int, delay: int = 0) -> float:
		return self.tempo_map.seconds_at_beats(self.beats_at_row(row, delay))

	def row_at_seconds (self, seconds: float) -> int:
		return self.row_at_beats(self.tempo_map.beats_at_seconds(seconds))

	def row_at_seconds_min_delay (self, seconds: float) -> int:
		return self.row_at_beats_min_delay(self.tempo_map.beats_at_seconds(seconds))

	def row_at_seconds_max_delay (self, seconds: float) -> int:
		return self.row_at_beats_max_delay(self.tempo_map.beats_at_seconds(seconds))

	def delay_ticks_at_seconds (self, seconds: float, row: int) -> int:
		return self.delay_ticks(self.tempo_map.beats_at_seconds(seconds), row)

	# ------------------------------------------------------------------
	# Internal helpers
	# ------------------------------------------------------------------

	def _clamp (self, row: fractions.Fraction) -> int:

		"""Truncate a fractional row and clamp it into ``[0, nrows - 1]``."""

		return max(0, min(math.floor(row), self.nrows - 1))

	def describe (self) -> str:

		"""One-line summary for logs and dumps."""

		resolution = "1 row/bar" if self.is_degraded else f"{self.rows_per_beat} rows/beat"
		rows = f"{self.nrows} rows from beat {float(self.position_row_beats):g}" if self._has_row_range else "no row range"
		return f"[{float(self.position_beats):g}, {float(self.end_beats):g}) {resolution}, {rows}"
