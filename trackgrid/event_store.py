"""In-memory musical event store.

The store holds notes and automation points grouped by *owner*: a MIDI
source for notes and region automation, a track for track automation.  Every
event receives a stable integer id when it is added; editing an event keeps
its id, so patterns can recognise "the same note" across updates without
holding references into the store.

Any mutation emits a ``"changed"`` event (with the owner as argument) on
``EventStore.events``.  Use ``batch()`` to apply several edits with a single
notification per owner.
"""

import contextlib
import dataclasses
import itertools
import typing

import trackgrid.beats
import trackgrid.commands
import trackgrid.constants
import trackgrid.event_emitter
import trackgrid.events


Owner = typing.Hashable


class EventStore:

	"""
	Notes and automation points keyed by owner, with change notifications.

	Example:
		```python
		store = EventStore()
		note = store.add_note("source-1", pitch=60, velocity=100, time=0, length=1)

		store.events.on("changed", lambda owner: print("changed", owner))
		store.change_note(note.id, velocity=90)   # prints: changed source-1
		```
	"""

	def __init__ (self) -> None:

		self.events = trackgrid.event_emitter.EventEmitter()

		self._ids = itertools.count(1)
		self._notes: typing.Dict[Owner, typing.Dict[trackgrid.events.EventId, trackgrid.events.Note]] = {}
		self._note_owner: typing.Dict[trackgrid.events.EventId, Owner] = {}
		self._points: typing.Dict[Owner, typing.Dict[trackgrid.events.Parameter, typing.Dict[trackgrid.events.EventId, trackgrid.events.AutomationPoint]]] = {}
		self._point_owner: typing.Dict[trackgrid.events.EventId, Owner] = {}

	# ------------------------------------------------------------------
	# Notes
	# ------------------------------------------------------------------

	def add_note (
		self,
		owner: Owner,
		pitch: int,
		velocity: int,
		time: trackgrid.beats.BeatsLike,
		length: trackgrid.beats.BeatsLike,
		channel: int = 0,
	) -> trackgrid.events.Note:

		"""Add a note; *time* and *length* are beats relative to the owner's source."""

		note = self._make_note(next(self._ids), channel, pitch, velocity, time, length)

		self._notes.setdefault(owner, {})[note.id] = note
		self._note_owner[note.id] = owner
		self._changed(owner)

		return note

	def change_note (self, note_id: trackgrid.events.EventId, **changes: typing.Any) -> trackgrid.events.Note:

		"""Replace some fields of a note, keeping its id.

		Raises ``KeyError`` for unknown ids.
		"""

		owner = self._note_owner[note_id]
		current = self._notes[owner][note_id]
		fields = {k: v for k, v in changes.items() if v is not None}

		note = self._make_note(
			note_id,
			fields.get("channel", current.channel),
			fields.get("pitch", current.pitch),
			fields.get("velocity", current.velocity),
			fields.get("time", current.time),
			fields.get("length", current.length),
		)

		self._notes[owner][note_id] = note
		self._changed(owner)

		return note

	def remove_note (self, note_id: trackgrid.events.EventId) -> None:

		"""Remove a note.  Raises ``KeyError`` for unknown ids."""

		owner = self._note_owner.pop(note_id)
		del self._notes[owner][note_id]
		self._changed(owner)

	def note (self, note_id: trackgrid.events.EventId) -> trackgrid.events.Note:
		return self._notes[self._note_owner[note_id]][note_id]

	def notes (self, owner: Owner) -> typing.List[trackgrid.events.Note]:

		"""All notes of an owner, by start time then pitch."""

		return sorted(self._notes.get(owner, {}).values(), key=trackgrid.events.note_sort_key)

	def notes_in (self, owner: Owner, start: trackgrid.beats.Beats, end: trackgrid.beats.Beats) -> typing.List[trackgrid.events.Note]:

		"""Notes of an owner starting in ``[start, end)``, by start time then pitch."""

		return [n for n in self.notes(owner) if start <= n.time < end]

	# ------------------------------------------------------------------
	# Automation
	# ------------------------------------------------------------------

	def add_point (
		self,
		owner: Owner,
		parameter: trackgrid.events.Parameter,
		time: typing.Union[trackgrid.beats.BeatsLike, float],
		value: float,
	) -> trackgrid.events.AutomationPoint:

		"""Add an automation point.

		Region parameters are timed in source-relative beats, track parameters
		in seconds.
		"""

		point = trackgrid.events.AutomationPoint(
			id = next(self._ids),
			parameter = parameter,
			time = self._point_time(parameter, time),
			value = float(value),
		)

		self._points.setdefault(owner, {}).setdefault(parameter, {})[point.id] = point
		self._point_owner[point.id] = owner
		self._changed(owner)

		return point

	def change_point (
		self,
		point_id: trackgrid.events.EventId,
		time: typing.Union[trackgrid.beats.BeatsLike, float, None] = None,
		value: typing.Optional[float] = None,
	) -> trackgrid.events.AutomationPoint:

		"""Move and/or revalue a point, keeping its id."""

		owner = self._point_owner[point_id]
		current = self._find_point(owner, point_id)

		point = dataclasses.replace(
			current,
			time = current.time if time is None else self._point_time(current.parameter, time),
			value = current.value if value is None else float(value),
		)

		self._points[owner][current.parameter][point_id] = point
		self._changed(owner)

		return point

	def remove_point (self, point_id: trackgrid.events.EventId) -> None:

		"""Remove an automation point.  Raises ``KeyError`` for unknown ids."""

		owner = self._point_owner.pop(point_id)
		point = self._find_point(owner, point_id)
		del self._points[owner][point.parameter][point_id]
		self._changed(owner)

	def point (self, point_id: trackgrid.events.EventId) -> trackgrid.events.AutomationPoint:
		return self._find_point(self._point_owner[point_id], point_id)

	def points (self, owner: Owner, parameter: trackgrid.events.Parameter) -> typing.List[trackgrid.events.AutomationPoint]:

		"""All points of a parameter, by time then id."""

		points = self._points.get(owner, {}).get(parameter, {}).values()
		return sorted(points, key=lambda p: (p.time, p.id))

	def points_in (
		self,
		owner: Owner,
		parameter: trackgrid.events.Parameter,
		start: typing.Any,
		end: typing.Any,
	) -> typing.List[trackgrid.events.AutomationPoint]:

		"""Points of a parameter timed in ``[start, end)``."""

		return [p for p in self.points(owner, parameter) if start <= p.time < end]

	def parameters (self, owner: Owner) -> typing.List[trackgrid.events.Parameter]:

		"""Parameters of an owner that hold at least one point."""

		return [p for p, points in self._points.get(owner, {}).items() if points]

	# ------------------------------------------------------------------
	# Commands
	# ------------------------------------------------------------------

	def apply (self, command: trackgrid.commands.Command) -> typing.Any:

		"""Apply an edit command and return the added or changed event (if any)."""

		if isinstance(command, trackgrid.commands.AddNote):
			return self.add_note(command.owner, command.pitch, command.velocity, command.time, command.length, channel=command.channel)

		if isinstance(command, trackgrid.commands.ChangeNote):
			return self.change_note(
				command.note_id,
				channel = command.channel,
				pitch = command.pitch,
				velocity = command.velocity,
				time = command.time,
				length = command.length,
			)

		if isinstance(command, trackgrid.commands.RemoveNote):
			return self.remove_note(command.note_id)

		if isinstance(command, trackgrid.commands.AddPoint):
			return self.add_point(command.owner, command.parameter, command.time, command.value)

		if isinstance(command, trackgrid.commands.ChangePoint):
			return self.change_point(command.point_id, time=command.time, value=command.value)

		if isinstance(command, trackgrid.commands.RemovePoint):
			return self.remove_point(command.point_id)

		raise TypeError(f"Unknown command {command!r}")

	@contextlib.contextmanager
	def batch (self) -> typing.Iterator[None]:

		"""Group several edits so listeners are notified once per owner."""

		with self.events.hold():
			yield

	# ------------------------------------------------------------------
	# Internal helpers
	# ------------------------------------------------------------------

	def _changed (self, owner: Owner) -> None:
		self.events.emit("changed", owner)

	def _find_point (self, owner: Owner, point_id: trackgrid.events.EventId) -> trackgrid.events.AutomationPoint:

		for points in self._points[owner].values():
			if point_id in points:
				return points[point_id]

		raise KeyError(point_id)

	@staticmethod
	def _point_time (parameter: trackgrid.events.Parameter, time: typing.Any) -> typing.Any:

		"""Region automation is timed in beats, track automation in seconds."""

		if parameter.is_region_automation:
			return trackgrid.beats.to_beats(time)

		return float(time)

	@staticmethod
	def _make_note (
		note_id: trackgrid.events.EventId,
		channel: int,
		pitch: int,
		velocity: int,
		time: trackgrid.beats.BeatsLike,
		length: trackgrid.beats.BeatsLike,
	) -> trackgrid.events.Note:

		if not trackgrid.constants.MIDI_MIN <= pitch <= trackgrid.constants.MIDI_MAX:
			raise ValueError(f"Pitch {pitch} outside MIDI range")

		if not trackgrid.constants.MIDI_MIN <= velocity <= trackgrid.constants.MIDI_MAX:
			raise ValueError(f"Velocity {velocity} outside MIDI range")

		if not 0 <= channel < trackgrid.constants.MIDI_CHANNELS:
			raise ValueError(f"Channel {channel} outside MIDI range")

		time = trackgrid.beats.to_beats(time)
		length = trackgrid.beats.to_beats(length)

		if time < 0:
			raise ValueError("Note time cannot be negative")

		if length < 0:
			raise ValueError("Note length cannot be negative")

		return trackgrid.events.Note(
			id = note_id,
			channel = channel,
			pitch = pitch,
			velocity = velocity,
			time = time,
			length = length,
		)
