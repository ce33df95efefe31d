import logging
import typing

import trackgrid.commands
import trackgrid.composite
import trackgrid.config
import trackgrid.diff
import trackgrid.event_emitter
import trackgrid.event_store
import trackgrid.events
import trackgrid.parameters
import trackgrid.snapshot
import trackgrid.tempo


logger = logging.getLogger(__name__)


class EditorSession:

	"""
	One open tracker editor.

	The session owns the pattern tree (a ``MultiTrackPattern``), the
	parameter registry and the subscription to the event store.  Every store
	change triggers ``update()``, which recomputes the patterns and emits the
	phenomenal diff against the previous state on ``events`` as ``"diff"``.

	Example:
		```python
		session = EditorSession()
		session.add_track("bass")
		session.add_region("bass", "r1", source="bass-src", position=0, length=16)

		session.events.on("diff", lambda diff: redraw(diff.cells()))
		session.store.add_note("bass-src", pitch=36, velocity=110, time=0, length=1)
		```
	"""

	def __init__ (
		self,
		config: typing.Optional[trackgrid.config.EditorConfig] = None,
		store: typing.Optional[trackgrid.event_store.EventStore] = None,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
		registry: typing.Optional[trackgrid.parameters.ParameterRegistry] = None,
	) -> None:

		self.config = config if config is not None else trackgrid.config.EditorConfig()
		self.store = store if store is not None else trackgrid.event_store.EventStore()
		self.tempo_map = tempo_map if tempo_map is not None else trackgrid.tempo.TempoMap()
		self.registry = registry if registry is not None else trackgrid.parameters.ParameterRegistry()
		self.events = trackgrid.event_emitter.EventEmitter()

		self.pattern = trackgrid.composite.MultiTrackPattern(
			rows_per_beat = self.config.rows_per_beat,
			beats_per_bar = self.config.beats_per_bar,
			tempo_map = self.tempo_map,
		)

		self._region_track: typing.Dict[typing.Hashable, typing.Hashable] = {}
		self._previous: typing.Optional[trackgrid.snapshot.Snapshot] = None
		self._updating = False
		self._dirty = False
		self._closed = False

		self.store.events.on("changed", self._on_store_changed)

	# ------------------------------------------------------------------
	# Tracks and regions
	# ------------------------------------------------------------------

	def add_track (self, track_id: typing.Hashable) -> trackgrid.composite.TrackPattern:

		track = trackgrid.composite.TrackPattern(
			self.store,
			self.registry,
			track_id,
			rows_per_beat = self.pattern.rows_per_beat,
			beats_per_bar = self.config.beats_per_bar,
			tempo_map = self.tempo_map,
			max_automation_columns = self.config.max_automation_columns,
		)

		self.pattern.add_track(track)
		logger.info(f"Track {track_id!r} added")

		return track

	def remove_track (self, track_id: typing.Hashable) -> None:

		track = self.pattern.remove_track(track_id)

		for region in track.regions:
			self._forget_region(region.region_id)

		self.registry.forget(track_id)
		logger.info(f"Track {track_id!r} removed")

	def add_region (
		self,
		track_id: typing.Hashable,
		region_id: typing.Hashable,
		source: trackgrid.event_store.Owner,
		position: float,
		length: float,
		start: float = 0,
	) -> trackgrid.composite.RegionPattern:

		"""Show a region of *source* on a track."""

		if region_id in self._region_track:
			raise ValueError(f"Region {region_id!r} already exists")

		region = trackgrid.composite.RegionPattern(
			self.store,
			self.registry,
			region_id,
			source,
			position,
			length,
			start,
			rows_per_beat = self.pattern.rows_per_beat,
			beats_per_bar = self.config.beats_per_bar,
			tempo_map = self.tempo_map,
			max_note_columns = self.config.max_note_columns,
			max_automation_columns = self.config.max_automation_columns,
		)

		self.pattern.track(track_id).add_region(region)
		self._region_track[region_id] = track_id
		logger.info(f"Region {region_id!r} of {source!r} added to track {track_id!r}")

		return region

	def remove_region (self, region_id: typing.Hashable) -> None:

		"""Destroy a region pattern.  Raises ``KeyError`` for unknown regions."""

		track_id = self._region_track[region_id]
		self.pattern.track(track_id).remove_region(region_id)
		self._forget_region(region_id)
		logger.info(f"Region {region_id!r} removed")

	def region (self, region_id: typing.Hashable) -> trackgrid.composite.RegionPattern:
		return self.pattern.track(self._region_track[region_id]).region(region_id)

	def set_region_visible (self, region_id: typing.Hashable, visible: bool) -> None:

		"""Disable a hidden region (keeping its pattern) or enable it again."""

		self.region(region_id).set_enabled(visible)
		logger.info(f"Region {region_id!r} {'enabled' if visible else 'disabled'}")

	def set_parameter_visible (self, owner: typing.Hashable, parameter: trackgrid.events.Parameter, visible: bool = True) -> None:

		"""Show or hide an automation column of a region or a track."""

		self.registry.set_visible(owner, parameter, visible)

	def set_rows_per_beat (self, rows_per_beat: int) -> None:

		self.pattern.set_rows_per_beat(rows_per_beat)
		logger.info(f"Resolution set to {rows_per_beat} rows per beat")

	def _forget_region (self, region_id: typing.Hashable) -> None:

		self._region_track.pop(region_id, None)
		self.registry.forget(region_id)

	# ------------------------------------------------------------------
	# Updates
	# ------------------------------------------------------------------

	def update (self) -> trackgrid.diff.Diff:

		"""
		Recompute every pattern and emit the diff against the previous state.

		Store changes made by ``"diff"`` listeners are coalesced into one
		follow-up update.  Returns the diff of this update.
		"""

		if self._updating:
			raise RuntimeError("EditorSession.update() is not reentrant")

		self._updating = True

		try:
			diff = self._refresh()

			while self._dirty:
				self._dirty = False
				self._refresh()

		finally:
			self._updating = False

		return diff

	def _refresh (self) -> trackgrid.diff.Diff:

		snapshot = self.pattern.update()
		diff = trackgrid.diff.phenomenal_diff(self._previous, snapshot)
		self._previous = snapshot

		logger.debug(f"Session updated: {snapshot.nrows} rows, {'full' if diff.full else len(list(diff.cells()))} cells changed")

		if not diff.empty:
			self.events.emit("diff", diff)

		return diff

	def _on_store_changed (self, owner: typing.Hashable) -> None:

		if self._updating:
			self._dirty = True
			return

		self.update()

	def snapshot (self) -> trackgrid.snapshot.Snapshot:
		return self.pattern.snapshot()

	def apply (self, command: typing.Optional[trackgrid.commands.Command]) -> typing.Any:

		"""Apply an edit command built by a pattern; ``None`` (a refused edit) is ignored."""

		if command is None:
			return None

		return self.store.apply(command)

	def close (self) -> None:

		"""Detach from the store and drop the session's parameter state."""

		if self._closed:
			return

		self.store.events.off("changed", self._on_store_changed)
		self.registry.clear()
		self._closed = True
		logger.info("Editor session closed")
