"""Edit commands.

Patterns never mutate the event store.  Editor requests ("put C-4 on row
12", "delete this automation value") are translated by the patterns into
one of these immutable commands, which the host applies to the store with
``EventStore.apply()``.  The store then notifies the session, which updates
the patterns.
"""

import dataclasses
import typing

import trackgrid.beats
import trackgrid.events


@dataclasses.dataclass(frozen=True)
class AddNote:

	owner: typing.Hashable
	channel: int
	pitch: int
	velocity: int
	time: trackgrid.beats.Beats
	length: trackgrid.beats.Beats


@dataclasses.dataclass(frozen=True)
class ChangeNote:

	"""Change some fields of an existing note; ``None`` leaves a field as it is."""

	note_id: trackgrid.events.EventId
	channel: typing.Optional[int] = None
	pitch: typing.Optional[int] = None
	velocity: typing.Optional[int] = None
	time: typing.Optional[trackgrid.beats.Beats] = None
	length: typing.Optional[trackgrid.beats.Beats] = None


@dataclasses.dataclass(frozen=True)
class RemoveNote:

	note_id: trackgrid.events.EventId


@dataclasses.dataclass(frozen=True)
class AddPoint:

	owner: typing.Hashable
	parameter: trackgrid.events.Parameter
	time: typing.Union[trackgrid.beats.Beats, float]
	value: float


@dataclasses.dataclass(frozen=True)
class ChangePoint:

	"""Move and/or revalue an existing automation point."""

	point_id: trackgrid.events.EventId
	time: typing.Union[trackgrid.beats.Beats, float, None] = None
	value: typing.Optional[float] = None


@dataclasses.dataclass(frozen=True)
class RemovePoint:

	point_id: trackgrid.events.EventId


Command = typing.Union[AddNote, ChangeNote, RemoveNote, AddPoint, ChangePoint, RemovePoint]
