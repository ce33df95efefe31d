"""Automation points laid out on rows, one column per visible parameter.

Each point is shown on its nearest row.  When that row already holds a point
of the same parameter, the point moves to the row in which it carries a
non-positive delay, which separates two points closer than a row whenever the
first one is late in its row.  A row holding a single point shows its value;
a row holding several points is undefined; a row holding none shows the
value interpolated between the surrounding points.

Two variants differ only in timing:

- ``RegionAutomationPattern`` - MIDI parameters (CC, pitch bend ...) of a
  region, timed in beats relative to the region's source.
- ``TrackAutomationPattern`` - track parameters (gain, pan, plugins ...),
  timed in seconds and converted through the tempo map.
"""

import dataclasses
import logging
import typing

import trackgrid.beats
import trackgrid.commands
import trackgrid.constants
import trackgrid.event_store
import trackgrid.events
import trackgrid.interpolation
import trackgrid.parameters
import trackgrid.pattern
import trackgrid.snapshot
import trackgrid.tempo


logger = logging.getLogger(__name__)

RowToPoints = typing.Dict[int, typing.Tuple[trackgrid.events.AutomationPoint, ...]]


@dataclasses.dataclass(frozen=True)
class ParameterRows:

	"""Mapping of one parameter: points per row, delays, and the interpolated value of every row."""

	parameter: trackgrid.events.Parameter
	descriptor: trackgrid.parameters.ParameterDescriptor
	rows: RowToPoints
	delays: typing.Dict[trackgrid.events.EventId, int]
	interpolated: typing.Tuple[typing.Optional[float], ...]

	def mapped_rows (self) -> typing.List[int]:
		return sorted(self.rows)

	def prev_next_range (self, row: int, nrows: int) -> typing.Tuple[int, int]:

		"""Rows whose interpolated value depends on a point at *row*.

		The range runs from just after the previous mapped row to just before
		the next one, and always includes *row* itself.
		"""

		rows = self.mapped_rows()
		previous = [r for r in rows if r < row]
		following = [r for r in rows if r > row]

		first = previous[-1] + 1 if previous else 0
		last = following[0] - 1 if following else nrows - 1

		return min(first, row), max(last, row)


@dataclasses.dataclass(frozen=True)
class AutomationSnapshot (trackgrid.snapshot.Snapshot):

	"""
	Automation of one owner mapped onto rows.

	``parameters`` lists the mapped (visible) parameters in column order.
	``excluded`` lists visible parameters dropped for lack of columns.
	"""

	parameters: typing.Tuple[trackgrid.events.Parameter, ...]
	by_parameter: typing.Dict[trackgrid.events.Parameter, ParameterRows]
	excluded: typing.Tuple[trackgrid.events.Parameter, ...] = ()

	def has_parameter (self, parameter: trackgrid.events.Parameter) -> bool:
		return parameter in self.by_parameter

	def control_events (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Tuple[trackgrid.events.AutomationPoint, ...]:

		"""Every point shown on a row (several for undefined rows)."""

		mapping = self.by_parameter.get(parameter)
		return () if mapping is None else mapping.rows.get(row, ())

	def control_events_count (self, row: int, parameter: trackgrid.events.Parameter) -> int:
		return len(self.control_events(row, parameter))

	def control_event (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[trackgrid.events.AutomationPoint]:

		points = self.control_events(row, parameter)
		return points[0] if len(points) == 1 else None

	def is_displayable (self, row: int, parameter: trackgrid.events.Parameter) -> bool:
		return self.control_events_count(row, parameter) <= 1

	def automation_value (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[float]:

		"""Value of the single point on a row, ``None`` if the row holds none or several."""

		point = self.control_event(row, parameter)
		return None if point is None else point.value

	def automation_values (self, row: int, parameter: trackgrid.events.Parameter) -> typing.List[float]:
		return [p.value for p in self.control_events(row, parameter)]

	def automation_delay (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[int]:

		point = self.control_event(row, parameter)
		return None if point is None else self.by_parameter[parameter].delays[point.id]

	def automation_delays (self, row: int, parameter: trackgrid.events.Parameter) -> typing.List[int]:

		mapping = self.by_parameter.get(parameter)
		return [] if mapping is None else [mapping.delays[p.id] for p in mapping.rows.get(row, ())]

	def interpolated_value (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[float]:

		"""Value of the parameter at the start of a row, ``None`` if it has no points at all."""

		mapping = self.by_parameter.get(parameter)

		if mapping is None or not 0 <= row < len(mapping.interpolated):
			return None

		return mapping.interpolated[row]

	def is_empty (self, parameter: trackgrid.events.Parameter) -> bool:

		"""True if no point of the parameter falls inside the interval."""

		mapping = self.by_parameter.get(parameter)
		return mapping is None or not mapping.rows


class AutomationPattern (trackgrid.pattern.Pattern):

	"""
	Maps the automation points of the visible parameters of an owner onto rows.

	Subclasses define how point times relate to the timeline; see
	``RegionAutomationPattern`` and ``TrackAutomationPattern``.

	Parameters:
		store: Event store holding the points.
		owner: Store owner of the points (a source or a track).
		registry: Parameter descriptors and visibility.
		visibility_owner: Registry key for visibility, the owner by default
			(regions sharing a source keep their own visible columns).
		max_columns: Most parameters shown at once.
	"""

	def __init__ (
		self,
		store: trackgrid.event_store.EventStore,
		owner: trackgrid.event_store.Owner,
		registry: trackgrid.parameters.ParameterRegistry,
		position: trackgrid.beats.BeatsLike = 0,
		length: trackgrid.beats.BeatsLike = 0,
		start: trackgrid.beats.BeatsLike = 0,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
		max_columns: int = trackgrid.constants.DEFAULT_MAX_AUTOMATION_COLUMNS,
		visibility_owner: typing.Optional[typing.Hashable] = None,
	) -> None:

		super().__init__(position, length, start, rows_per_beat, beats_per_bar, tempo_map)

		if max_columns <= 0:
			raise ValueError("Maximum number of automation columns must be positive")

		self.store = store
		self.owner = owner
		self.registry = registry
		self.max_columns = max_columns
		self.visibility_owner = owner if visibility_owner is None else visibility_owner

	# ------------------------------------------------------------------
	# Timing, defined by subclasses
	# ------------------------------------------------------------------

	def _accepts (self, parameter: trackgrid.events.Parameter) -> bool:
		raise NotImplementedError

	def _in_interval (self, point: trackgrid.events.AutomationPoint) -> bool:
		raise NotImplementedError

	def _point_beats (self, point: trackgrid.events.AutomationPoint) -> trackgrid.beats.Beats:

		"""Timeline beats of a point."""

		raise NotImplementedError

	def native_time_at_row (self, row: int, delay: int = 0) -> typing.Any:

		"""Point time (in the store's unit) of a row and delay."""

		raise NotImplementedError

	# ------------------------------------------------------------------
	# Update
	# ------------------------------------------------------------------

	def _build_snapshot (self) -> AutomationSnapshot:

		visible = [p for p in self.registry.visible_parameters(self.visibility_owner) if self._accepts(p)]
		shown = visible[:self.max_columns]
		excluded = visible[self.max_columns:]

		if excluded:
			logger.warning(f"{len(excluded)} automation parameter(s) of {self.visibility_owner!r} exceed {self.max_columns} columns and are not shown: {', '.join(str(p) for p in excluded)}")

		return AutomationSnapshot(
			**self._grid_fields(),
			parameters = tuple(shown),
			by_parameter = {parameter: self._map_parameter(parameter) for parameter in shown},
			excluded = tuple(excluded),
		)

	def _map_parameter (self, parameter: trackgrid.events.Parameter) -> ParameterRows:

		descriptor = self.registry.describe(parameter)
		points = self.store.points(self.owner, parameter)

		rows: typing.Dict[int, typing.List[trackgrid.events.AutomationPoint]] = {}
		delays: typing.Dict[trackgrid.events.EventId, int] = {}

		for point in points:

			if not self._in_interval(point):
				continue

			beats = self._point_beats(point)
			row = self.row_at_beats(beats)

			if row in rows:
				row = self.row_at_beats_min_delay(beats)

			rows.setdefault(row, []).append(point)
			delays[point.id] = self.delay_ticks(beats, row)

		curve = [(p.time, p.value) for p in points]
		interpolated = tuple(
			trackgrid.interpolation.evaluate(curve, self.native_time_at_row(row), descriptor.interpolation)
			for row in range(self.nrows)
		)

		return ParameterRows(
			parameter = parameter,
			descriptor = descriptor,
			rows = {row: tuple(mapped) for row, mapped in rows.items()},
			delays = delays,
			interpolated = interpolated,
		)

	# ------------------------------------------------------------------
	# Queries
	# ------------------------------------------------------------------

	def parameters (self) -> typing.Tuple[trackgrid.events.Parameter, ...]:
		return self.snapshot().parameters

	def control_events_count (self, row: int, parameter: trackgrid.events.Parameter) -> int:
		return self.snapshot().control_events_count(row, parameter)

	def control_event (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[trackgrid.events.AutomationPoint]:
		return self.snapshot().control_event(row, parameter)

	def is_displayable (self, row: int, parameter: trackgrid.events.Parameter) -> bool:
		return self.snapshot().is_displayable(row, parameter)

	def automation_value (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[float]:
		return self.snapshot().automation_value(row, parameter)

	def automation_values (self, row: int, parameter: trackgrid.events.Parameter) -> typing.List[float]:
		return self.snapshot().automation_values(row, parameter)

	def automation_delay (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[int]:
		return self.snapshot().automation_delay(row, parameter)

	def automation_delays (self, row: int, parameter: trackgrid.events.Parameter) -> typing.List[int]:
		return self.snapshot().automation_delays(row, parameter)

	def interpolated_value (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[float]:
		return self.snapshot().interpolated_value(row, parameter)

	def is_empty (self, parameter: trackgrid.events.Parameter) -> bool:
		return self.snapshot().is_empty(parameter)

	def lower (self, parameter: trackgrid.events.Parameter) -> float:
		return self.registry.describe(parameter).lower

	def upper (self, parameter: trackgrid.events.Parameter) -> float:
		return self.registry.describe(parameter).upper

	# ------------------------------------------------------------------
	# Edit commands
	# ------------------------------------------------------------------

	def set_value_command (
		self,
		value: float,
		row: int,
		parameter: trackgrid.events.Parameter,
		delay: int = 0,
	) -> typing.Optional[trackgrid.commands.Command]:

		"""Command that sets the value shown on a row.

		Changes the point already on the row, or adds one at the row plus
		*delay*.  The value is clamped to the parameter's bounds.
		"""

		if not self._is_editable(row, parameter) or not self.is_delay_in_range(delay):
			return None

		value = self.registry.describe(parameter).clamp(value)
		point = self.control_event(row, parameter)

		if point is not None:
			return trackgrid.commands.ChangePoint(point_id=point.id, value=value)

		when = self.native_time_at_row(row, delay)

		if when < 0:
			return None

		return trackgrid.commands.AddPoint(owner=self.owner, parameter=parameter, time=when, value=value)

	def delete_value_command (self, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[trackgrid.commands.Command]:

		point = self.control_event(row, parameter) if self._is_editable(row, parameter) else None
		return None if point is None else trackgrid.commands.RemovePoint(point.id)

	def set_delay_command (self, delay: int, row: int, parameter: trackgrid.events.Parameter) -> typing.Optional[trackgrid.commands.Command]:

		"""Command that moves the point on a row to the row plus *delay*."""

		if not self._is_editable(row, parameter) or not self.is_delay_in_range(delay):
			return None

		point = self.control_event(row, parameter)

		if point is None:
			return None

		return trackgrid.commands.ChangePoint(point_id=point.id, time=self._clamp_time(self.native_time_at_row(row, delay)))

	def _is_editable (self, row: int, parameter: trackgrid.events.Parameter) -> bool:

		snapshot = self.snapshot()
		return snapshot.is_defined(row) and snapshot.has_parameter(parameter) and snapshot.is_displayable(row, parameter)

	def _clamp_time (self, when: typing.Any) -> typing.Any:
		return max(when, 0)

	def to_string (self) -> str:

		snapshot = self.snapshot()
		lines = [f"{type(self).__name__} {self.visibility_owner!r} {self.describe()}"]

		for parameter in snapshot.parameters:
			mapping = snapshot.by_parameter[parameter]
			cells = ", ".join(f"{row}:{'/'.join(f'{p.value:g}' for p in points)}" for row, points in sorted(mapping.rows.items()))
			lines.append(f"  {parameter}: {cells}")

		return "\n".join(lines)


class RegionAutomationPattern (AutomationPattern):

	"""MIDI parameters of a region; points are timed in source beats."""

	kind = trackgrid.snapshot.PatternKind.REGION_AUTOMATION

	def _accepts (self, parameter: trackgrid.events.Parameter) -> bool:
		return parameter.is_region_automation

	def _in_interval (self, point: trackgrid.events.AutomationPoint) -> bool:
		return self.start_beats <= point.time < self.start_beats + self.length_beats

	def _point_beats (self, point: trackgrid.events.AutomationPoint) -> trackgrid.beats.Beats:
		return self.to_timeline_beats(point.time)

	def native_time_at_row (self, row: int, delay: int = 0) -> trackgrid.beats.Beats:
		return self.region_relative_beats_at_row(row, delay)

	def _clamp_time (self, when: trackgrid.beats.Beats) -> trackgrid.beats.Beats:

		# A point moved before the region start would leave the region.
		return max(when, self.start_beats)


class TrackAutomationPattern (AutomationPattern):

	"""
	Track parameters; points are timed in seconds.

	The interval is the span of the track's regions on the timeline, so
	``start`` is always 0.
	"""

	kind = trackgrid.snapshot.PatternKind.TRACK_AUTOMATION

	def _accepts (self, parameter: trackgrid.events.Parameter) -> bool:
		return not parameter.is_region_automation

	def _in_interval (self, point: trackgrid.events.AutomationPoint) -> bool:

		first = self.tempo_map.seconds_at_beats(self.position_beats)
		last = self.tempo_map.seconds_at_beats(self.end_beats)

		return first <= point.time < last

	def _point_beats (self, point: trackgrid.events.AutomationPoint) -> trackgrid.beats.Beats:
		return self.tempo_map.beats_at_seconds(point.time)

	def native_time_at_row (self, row: int, delay: int = 0) -> float:
		return self.seconds_at_row(row, delay)
