import dataclasses
import typing

import trackgrid.beats


EventId = int


# Parameter kinds carried by MIDI regions; every other kind is track automation.
REGION_PARAMETER_KINDS = frozenset({"cc", "pitchbend", "channel_pressure", "program_change"})

TRACK_PARAMETER_KINDS = frozenset({"gain", "trim", "mute", "pan_azimuth", "pan_width", "plugin"})


@dataclasses.dataclass(frozen=True)
class Parameter:

	"""
	Identifies one automatable parameter.

	``kind`` selects the family (``"cc"``, ``"pitchbend"``, ``"gain"`` ...),
	``channel`` the MIDI channel for region parameters and ``control`` the
	controller number (CC number, plugin parameter index).
	"""

	kind: str
	channel: int = 0
	control: int = 0

	@property
	def is_region_automation (self) -> bool:

		"""True for MIDI parameters, which live in regions and are timed in beats."""

		return self.kind in REGION_PARAMETER_KINDS

	def __str__ (self) -> str:

		if self.kind == "cc":
			return f"cc{self.control}/ch{self.channel + 1}"
		if self.is_region_automation:
			return f"{self.kind}/ch{self.channel + 1}"
		if self.kind == "plugin":
			return f"plugin#{self.control}"
		return self.kind


@dataclasses.dataclass(frozen=True)
class Note:

	"""
	A MIDI note as held by the event store.

	``time`` and ``length`` are beats relative to the start of the note's
	source (not the timeline).  Instances are immutable; editing a note in
	the store replaces the instance but keeps its ``id``.
	"""

	id: EventId
	channel: int
	pitch: int
	velocity: int
	time: trackgrid.beats.Beats
	length: trackgrid.beats.Beats

	@property
	def end_time (self) -> trackgrid.beats.Beats:
		return self.time + self.length

	def is_on_equal (self, other: "Note") -> bool:

		"""True if both notes would render the same on-event."""

		return (
			self.time == other.time
			and self.pitch == other.pitch
			and self.velocity == other.velocity
			and self.channel == other.channel
		)

	def is_off_equal (self, other: "Note") -> bool:

		"""True if both notes would render the same off-event."""

		return self.end_time == other.end_time


@dataclasses.dataclass(frozen=True)
class AutomationPoint:

	"""
	A single automation value at an instant.

	``time`` is in source-relative beats for region parameters and in native
	seconds for track parameters.
	"""

	id: EventId
	parameter: Parameter
	time: typing.Union[trackgrid.beats.Beats, float]
	value: float

	def is_equal (self, other: "AutomationPoint") -> bool:
		return self.time == other.time and self.value == other.value


def note_sort_key (note: Note) -> typing.Tuple[trackgrid.beats.Beats, int, EventId]:

	"""Order notes by start time, then ascending pitch, then id."""

	return (note.time, note.pitch, note.id)
