"""Composition of patterns that start at different times.

A composite aligns the rows of its sub-patterns in one row space.  Row 0 of
the composite is row 0 of the earliest sub-pattern, and every sub-pattern
gets a row offset: the number of rows between its first row and that
origin.

    RegionPattern      notes + MIDI automation of one region
    TrackPattern       the regions of a track + the track's own automation
    MultiTrackPattern  several tracks side by side

Rows of a track that fall in no region (gaps between regions) are *dead
space*: they exist so the tracks line up, but hold no cell.
"""

import dataclasses
import logging
import typing

import trackgrid.automation_pattern
import trackgrid.beats
import trackgrid.constants
import trackgrid.event_store
import trackgrid.note_pattern
import trackgrid.parameters
import trackgrid.pattern
import trackgrid.snapshot
import trackgrid.tempo


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class CompositeSnapshot (trackgrid.snapshot.Snapshot):

	"""Sub-pattern snapshots and their row offsets in the composite's row space."""

	children: typing.Tuple[trackgrid.snapshot.Snapshot, ...]
	row_offsets: typing.Tuple[int, ...]

	def to_local (self, row: int, index: int) -> int:

		"""Convert a composite row to a row of sub-pattern *index*."""

		return row - self.row_offsets[index]

	def is_defined (self, row: int, index: typing.Optional[int] = None) -> bool:

		"""True if the row exists in the composite, or inside sub-pattern *index* if given."""

		if index is None:
			return super().is_defined(row)

		child = self.children[index]
		return child.enabled and child.is_defined(self.to_local(row, index))

	def locate (self, row: int) -> typing.List[typing.Tuple[int, int]]:

		"""Every ``(index, local_row)`` pair of the enabled sub-patterns covering a row."""

		return [(i, self.to_local(row, i)) for i in range(len(self.children)) if self.is_defined(row, i)]


@dataclasses.dataclass(frozen=True)
class RegionSnapshot (CompositeSnapshot):

	notes: trackgrid.note_pattern.NotesSnapshot
	automation: trackgrid.automation_pattern.AutomationSnapshot


@dataclasses.dataclass(frozen=True)
class TrackSnapshot (CompositeSnapshot):

	"""Regions of a track (by position) plus the track automation."""

	automation: trackgrid.automation_pattern.AutomationSnapshot
	automation_offset: int

	def is_region_defined (self, row: int) -> bool:

		"""False for dead space: rows covered by no region."""

		return bool(self.locate(row))

	def region_index_at (self, row: int) -> typing.Optional[int]:

		"""Index of the region covering a track row (the earliest on overlap)."""

		located = self.locate(row)
		return located[0][0] if located else None


@dataclasses.dataclass(frozen=True)
class MultiTrackSnapshot (CompositeSnapshot):

	def is_region_defined (self, row: int, track_index: int) -> bool:

		if not self.is_defined(row, track_index):
			return False

		track = typing.cast(TrackSnapshot, self.children[track_index])
		return track.is_region_defined(self.to_local(row, track_index))

	def resolve (self, row: int, track_index: int) -> typing.Optional[typing.Tuple[int, int, int]]:

		"""Follow a global row down to ``(track_row, region_index, region_row)``."""

		if not self.is_defined(row, track_index):
			return None

		track = typing.cast(TrackSnapshot, self.children[track_index])
		track_row = self.to_local(row, track_index)
		region_index = track.region_index_at(track_row)

		if region_index is None:
			return None

		return track_row, region_index, track.to_local(track_row, region_index)


class CompositePattern (trackgrid.pattern.Pattern):

	"""
	A pattern made of sub-patterns aligned on a shared row origin.

	``update()`` updates every sub-pattern, then derives the row offsets and
	the global number of rows from their row ranges.
	"""

	def __init__ (
		self,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
	) -> None:

		self.children: typing.List[trackgrid.pattern.Pattern] = []
		self.row_offsets: typing.List[int] = []

		super().__init__(0, 0, 0, rows_per_beat, beats_per_bar, tempo_map)

	def set_rows_per_beat (self, rows_per_beat: int) -> None:

		super().set_rows_per_beat(rows_per_beat)

		for child in self._grids():
			child.set_rows_per_beat(rows_per_beat)

	def _grids (self) -> typing.List[trackgrid.pattern.Pattern]:

		"""Every pattern owned by this one (sub-patterns and extra columns)."""

		return list(self.children)

	def update (self) -> trackgrid.snapshot.Snapshot:

		for child in self.children:
			child.update()

		self._compose()
		self._snapshot = self._build_snapshot()

		logger.debug(f"{type(self).__name__} updated: {self.describe()}, offsets {self.row_offsets}")

		return self._snapshot

	def _compose (self) -> None:

		"""Derive the row origin, the offsets and ``nrows`` from the updated sub-patterns."""

		populated = [c for c in self.children if c.nrows > 0]

		if not populated:
			self.set_interval(0, 0)
			self.set_row_range()
			self.row_offsets = [0] * len(self.children)
			return

		first = min(c.position_beats for c in populated)
		last = max(c.end_beats for c in populated)
		self.set_interval(first, last - first)
		self.set_row_range()

		origin = min(c.position_row_beats for c in populated)
		self.row_offsets = [
			int(self.row_distance(origin, c.position_row_beats)) if c.nrows > 0 else 0
			for c in self.children
		]

		self.position_row_beats = origin
		self.nrows = max(offset + c.nrows for offset, c in zip(self.row_offsets, self.children))
		self.end_row_beats = origin + self.nrows * self.beats_per_row

	def _composite_fields (self) -> typing.Dict[str, typing.Any]:

		fields = self._grid_fields()
		fields.update(
			children = tuple(c.snapshot() for c in self.children),
			row_offsets = tuple(self.row_offsets),
		)
		return fields

	def _build_snapshot (self) -> CompositeSnapshot:
		return CompositeSnapshot(**self._composite_fields())

	# ------------------------------------------------------------------
	# Queries
	# ------------------------------------------------------------------

	def to_local (self, row: int, index: int) -> int:
		return self.snapshot().to_local(row, index)

	def is_defined (self, row: int, index: typing.Optional[int] = None) -> bool:

		if index is None:
			return super().is_defined(row)

		return self.snapshot().is_defined(row, index)

	def locate (self, row: int) -> typing.List[typing.Tuple[int, int]]:
		return self.snapshot().locate(row)


class RegionPattern (CompositePattern):

	"""
	One region of a MIDI track: its notes and its MIDI automation.

	Both sub-patterns cover the region interval, so their offsets are 0.

	Parameters:
		store: Event store.
		registry: Parameter descriptors and visibility.
		region_id: Identifies the region (and its visible automation).
		source: Store owner of the region's notes and points.
		position: Timeline beat where the region starts.
		length: Region length in beats.
		start: Source beat shown at ``position``.
	"""

	kind = trackgrid.snapshot.PatternKind.REGION

	def __init__ (
		self,
		store: trackgrid.event_store.EventStore,
		registry: trackgrid.parameters.ParameterRegistry,
		region_id: typing.Hashable,
		source: trackgrid.event_store.Owner,
		position: trackgrid.beats.BeatsLike,
		length: trackgrid.beats.BeatsLike,
		start: trackgrid.beats.BeatsLike = 0,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
		max_note_columns: int = trackgrid.constants.DEFAULT_MAX_NOTE_COLUMNS,
		max_automation_columns: int = trackgrid.constants.DEFAULT_MAX_AUTOMATION_COLUMNS,
	) -> None:

		super().__init__(rows_per_beat, beats_per_bar, tempo_map)

		self.region_id = region_id
		self.source = source

		self.notes = trackgrid.note_pattern.NotePattern(
			store, source, position, length, start,
			rows_per_beat = rows_per_beat,
			beats_per_bar = beats_per_bar,
			tempo_map = self.tempo_map,
			max_columns = max_note_columns,
		)

		self.automation = trackgrid.automation_pattern.RegionAutomationPattern(
			store, source, registry, position, length, start,
			rows_per_beat = rows_per_beat,
			beats_per_bar = beats_per_bar,
			tempo_map = self.tempo_map,
			max_columns = max_automation_columns,
			visibility_owner = region_id,
		)

		self.children = [self.notes, self.automation]
		self.set_interval(position, length, start)

	def set_interval (
		self,
		position: trackgrid.beats.BeatsLike,
		length: trackgrid.beats.BeatsLike,
		start: trackgrid.beats.BeatsLike = 0,
	) -> None:

		"""Move or resize the region."""

		super().set_interval(position, length, start)

		for child in self.children:
			child.set_interval(position, length, start)

	def set_enabled (self, enabled: bool) -> None:

		super().set_enabled(enabled)

		for child in self.children:
			child.set_enabled(enabled)

	def _compose (self) -> None:

		self.set_row_range()
		self.row_offsets = [0, 0]

	def _build_snapshot (self) -> RegionSnapshot:

		return RegionSnapshot(
			**self._composite_fields(),
			notes = self.notes.snapshot(),
			automation = self.automation.snapshot(),
		)

	def to_string (self) -> str:
		return "\n".join([f"RegionPattern {self.region_id!r} {self.describe()}", self.notes.to_string(), self.automation.to_string()])


class TrackPattern (CompositePattern):

	"""
	The regions of one track, plus the track's automation over their span.

	Example:
		```python
		track = TrackPattern(store, registry, "track-1")
		track.add_region(RegionPattern(store, registry, "r1", "src", position=0, length=4))
		track.add_region(RegionPattern(store, registry, "r2", "src", position=8, length=4))
		track.update()

		track.nrows                  # 48
		track.is_region_defined(20)  # False (gap between the regions)
		track.region_index_at(33)    # 1
		```
	"""

	kind = trackgrid.snapshot.PatternKind.TRACK

	def __init__ (
		self,
		store: trackgrid.event_store.EventStore,
		registry: trackgrid.parameters.ParameterRegistry,
		track_id: typing.Hashable,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
		max_automation_columns: int = trackgrid.constants.DEFAULT_MAX_AUTOMATION_COLUMNS,
	) -> None:

		tempo_map = tempo_map if tempo_map is not None else trackgrid.tempo.TempoMap()

		self.track_id = track_id
		self.automation = trackgrid.automation_pattern.TrackAutomationPattern(
			store, track_id, registry,
			rows_per_beat = rows_per_beat,
			beats_per_bar = beats_per_bar,
			tempo_map = tempo_map,
			max_columns = max_automation_columns,
		)
		self.automation_offset = 0

		super().__init__(rows_per_beat, beats_per_bar, tempo_map)

	def _grids (self) -> typing.List[trackgrid.pattern.Pattern]:
		return [*self.children, self.automation]

	@property
	def regions (self) -> typing.List[RegionPattern]:
		return typing.cast(typing.List[RegionPattern], self.children)

	def add_region (self, region: RegionPattern) -> None:

		"""Add a region; regions are kept sorted by position."""

		if any(r.region_id == region.region_id for r in self.regions):
			raise ValueError(f"Region {region.region_id!r} already belongs to track {self.track_id!r}")

		region.set_rows_per_beat(self.rows_per_beat)
		self.children.append(region)
		self.sort_regions()

	def remove_region (self, region_id: typing.Hashable) -> RegionPattern:

		"""Remove a region and return it.  Raises ``KeyError`` for unknown regions."""

		region = self.region(region_id)
		self.children.remove(region)
		return region

	def region (self, region_id: typing.Hashable) -> RegionPattern:

		for region in self.regions:
			if region.region_id == region_id:
				return region

		raise KeyError(region_id)

	def sort_regions (self) -> None:
		self.children.sort(key=lambda r: r.position_beats)

	def update (self) -> trackgrid.snapshot.Snapshot:

		self.sort_regions()
		return super().update()

	def _compose (self) -> None:

		super()._compose()

		# Track automation spans the regions, from the first start to the last end.
		self.automation.set_interval(self.position_beats, self.length_beats)
		self.automation.update()

		if self.automation.nrows > 0:
			self.automation_offset = int(self.row_distance(self.position_row_beats, self.automation.position_row_beats))
			self.nrows = max(self.nrows, self.automation_offset + self.automation.nrows)
			self.end_row_beats = self.position_row_beats + self.nrows * self.beats_per_row

		else:
			self.automation_offset = 0

	def _build_snapshot (self) -> TrackSnapshot:

		return TrackSnapshot(
			**self._composite_fields(),
			automation = self.automation.snapshot(),
			automation_offset = self.automation_offset,
		)

	def is_region_defined (self, row: int) -> bool:
		return typing.cast(TrackSnapshot, self.snapshot()).is_region_defined(row)

	def region_index_at (self, row: int) -> typing.Optional[int]:
		return typing.cast(TrackSnapshot, self.snapshot()).region_index_at(row)


class MultiTrackPattern (CompositePattern):

	"""
	Tracks shown side by side, aligned on the earliest track.

	Coordinates chain from a global row to a track row to a region row; see
	``resolve()``.
	"""

	kind = trackgrid.snapshot.PatternKind.MULTI_TRACK

	@property
	def tracks (self) -> typing.List[TrackPattern]:
		return typing.cast(typing.List[TrackPattern], self.children)

	def add_track (self, track: TrackPattern) -> None:

		if any(t.track_id == track.track_id for t in self.tracks):
			raise ValueError(f"Track {track.track_id!r} already shown")

		track.set_rows_per_beat(self.rows_per_beat)
		self.children.append(track)

	def remove_track (self, track_id: typing.Hashable) -> TrackPattern:

		track = self.track(track_id)
		self.children.remove(track)
		return track

	def track (self, track_id: typing.Hashable) -> TrackPattern:

		for track in self.tracks:
			if track.track_id == track_id:
				return track

		raise KeyError(track_id)

	def track_index (self, track_id: typing.Hashable) -> int:
		return self.tracks.index(self.track(track_id))

	def _build_snapshot (self) -> MultiTrackSnapshot:
		return MultiTrackSnapshot(**self._composite_fields())

	def is_region_defined (self, row: int, track_index: int) -> bool:
		return typing.cast(MultiTrackSnapshot, self.snapshot()).is_region_defined(row, track_index)

	def resolve (self, row: int, track_index: int) -> typing.Optional[typing.Tuple[int, int, int]]:
		return typing.cast(MultiTrackSnapshot, self.snapshot()).resolve(row, track_index)
