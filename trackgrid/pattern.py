import logging
import typing

import trackgrid.beats
import trackgrid.constants
import trackgrid.diff
import trackgrid.snapshot
import trackgrid.tempo
import trackgrid.time_grid


logger = logging.getLogger(__name__)


class Pattern (trackgrid.time_grid.TimeGrid):

	"""
	A time grid that maps events onto its rows.

	Subclasses set ``kind`` and implement ``_build_snapshot()``.  A pattern is
	created when its source enters the editor, recomputed with ``update()``
	after every upstream change, disabled (not destroyed) while its source is
	hidden and dropped when the source is removed.
	"""

	kind: trackgrid.snapshot.PatternKind

	def __init__ (
		self,
		position: trackgrid.beats.BeatsLike = 0,
		length: trackgrid.beats.BeatsLike = 0,
		start: trackgrid.beats.BeatsLike = 0,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
	) -> None:

		super().__init__(position, length, start, rows_per_beat, beats_per_bar, tempo_map)

		self.enabled = True
		self._snapshot: typing.Optional[trackgrid.snapshot.Snapshot] = None

	def set_enabled (self, enabled: bool) -> None:

		"""Enable or disable the pattern; takes effect at the next ``update()``."""

		self.enabled = enabled

	def update (self) -> trackgrid.snapshot.Snapshot:

		"""Recompute the row range and every row mapping, and return the new snapshot."""

		self.set_row_range()
		self._snapshot = self._build_snapshot()

		logger.debug(f"{type(self).__name__} updated: {self.describe()}")

		return self._snapshot

	def _build_snapshot (self) -> trackgrid.snapshot.Snapshot:
		raise NotImplementedError

	@property
	def has_snapshot (self) -> bool:
		return self._snapshot is not None

	def snapshot (self) -> trackgrid.snapshot.Snapshot:

		"""The state computed by the last ``update()``.

		Raises ``RuntimeError`` if the pattern was never updated, or if its
		resolution or interval changed since the last ``update()``.
		"""

		if self._snapshot is None:
			raise RuntimeError(f"{type(self).__name__} queried before its first update()")

		self._require_row_range()

		return self._snapshot

	def phenomenal_diff (self, prev: typing.Optional[trackgrid.snapshot.Snapshot]) -> "trackgrid.diff.Diff":

		"""Rows a renderer must redraw to go from *prev* to the current snapshot.

		A missing *prev* (first display) gives a full diff.
		"""

		return trackgrid.diff.phenomenal_diff(prev, self.snapshot())

	def _grid_fields (self) -> typing.Dict[str, typing.Any]:

		"""Keyword arguments for the ``Snapshot`` base fields."""

		return {
			"kind": self.kind,
			"enabled": self.enabled,
			"nrows": self.nrows,
			"position_row_beats": self.position_row_beats,
			"end_row_beats": self.end_row_beats,
			"beats_per_row": self.beats_per_row,
		}
