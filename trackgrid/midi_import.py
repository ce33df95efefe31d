"""Load a Standard MIDI File into an editor session.

Every MIDI track holding notes or controller data becomes one session track
with a single region covering the track's events, rounded up to whole bars.
Notes are paired from note-on/note-off messages (a note-on with velocity 0
counts as a note-off), controllers become region automation, and
``set_tempo`` meta messages build the session's tempo map.
"""

import dataclasses
import fractions
import logging
import math
import typing

import mido

import trackgrid.beats
import trackgrid.events
import trackgrid.session


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class ImportedNote:

	channel: int
	pitch: int
	velocity: int
	start_tick: int
	end_tick: int


@dataclasses.dataclass
class ImportedPart:

	"""Events of one MIDI track, in file ticks."""

	index: int
	name: str
	notes: typing.List[ImportedNote] = dataclasses.field(default_factory=list)
	points: typing.List[typing.Tuple[trackgrid.events.Parameter, int, float]] = dataclasses.field(default_factory=list)

	@property
	def last_tick (self) -> int:

		ticks = [n.end_tick for n in self.notes] + [tick for _, tick, _ in self.points]
		return max(ticks, default=0)

	@property
	def is_empty (self) -> bool:
		return not self.notes and not self.points


def _controller_point (msg: mido.Message) -> typing.Optional[typing.Tuple[trackgrid.events.Parameter, float]]:

	"""Map a channel message to a region automation parameter and value."""

	if msg.type == "control_change":
		return trackgrid.events.Parameter("cc", msg.channel, msg.control), float(msg.value)

	if msg.type == "pitchwheel":
		return trackgrid.events.Parameter("pitchbend", msg.channel), float(msg.pitch)

	if msg.type == "aftertouch":
		return trackgrid.events.Parameter("channel_pressure", msg.channel), float(msg.value)

	if msg.type == "program_change":
		return trackgrid.events.Parameter("program_change", msg.channel), float(msg.program)

	return None


def extract_parts (mid: mido.MidiFile) -> typing.Tuple[typing.List[ImportedPart], typing.List[typing.Tuple[int, float]]]:

	"""
	Read the notes and controllers of every track, and the tempo changes.

	Returns the parts (one per MIDI track) and ``(tick, bpm)`` tempo changes.
	"""

	parts: typing.List[ImportedPart] = []
	tempos: typing.List[typing.Tuple[int, float]] = []

	for track_idx, track in enumerate(mid.tracks):

		part = ImportedPart(index=track_idx, name=track.name or f"Track {track_idx + 1}")

		# pending[(channel, pitch)] -> queue[(onset_tick, velocity)], released oldest first
		pending: typing.Dict[typing.Tuple[int, int], typing.List[typing.Tuple[int, int]]] = {}
		unmatched_offs = 0
		abs_tick = 0

		for msg in track:

			abs_tick += msg.time

			if msg.type == "set_tempo":
				tempos.append((abs_tick, mido.tempo2bpm(msg.tempo)))
				continue

			if msg.type == "note_on" and msg.velocity > 0:
				pending.setdefault((msg.channel, msg.note), []).append((abs_tick, msg.velocity))
				continue

			if msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):

				starts = pending.get((msg.channel, msg.note))

				if not starts:
					unmatched_offs += 1
					continue

				onset, velocity = starts.pop(0)
				part.notes.append(ImportedNote(msg.channel, msg.note, velocity, onset, abs_tick))
				continue

			point = _controller_point(msg)

			if point is not None:
				parameter, value = point
				part.points.append((parameter, abs_tick, value))

		# Notes still held at the end of the track end with it.
		hanging = 0

		for (channel, pitch), starts in pending.items():
			for onset, velocity in starts:
				part.notes.append(ImportedNote(channel, pitch, velocity, onset, abs_tick))
				hanging += 1

		if unmatched_offs:
			logger.warning(f"{part.name}: skipped {unmatched_offs} note-off message(s) without a matching note-on")

		if hanging:
			logger.warning(f"{part.name}: {hanging} note(s) never released, ending them at the end of the track")

		part.notes.sort(key=lambda n: (n.start_tick, n.pitch))
		parts.append(part)

	return parts, tempos


def load_midi_file (path: str, session: trackgrid.session.EditorSession) -> typing.List[typing.Hashable]:

	"""
	Import a MIDI file into *session* and return the ids of the created tracks.

	Track ids are ``"track-<n>"``, region ids ``"region-<n>"`` and store
	owners ``"source-<n>"``, where ``<n>`` is the MIDI track index.  MIDI
	automation is made visible in the created regions.
	"""

	mid = mido.MidiFile(path)
	parts, tempos = extract_parts(mid)
	tpb = mid.ticks_per_beat

	def to_beats (tick: int) -> trackgrid.beats.Beats:
		return trackgrid.beats.to_beats(fractions.Fraction(tick, tpb))

	for tick, bpm in sorted(tempos):
		session.tempo_map.add_tempo(to_beats(tick), bpm)

	track_ids: typing.List[typing.Hashable] = []
	beats_per_bar = session.config.beats_per_bar

	with session.store.batch():

		for part in parts:

			if part.is_empty:
				continue

			track_id = f"track-{part.index}"
			region_id = f"region-{part.index}"
			source = f"source-{part.index}"

			# Whole bars, at least one; points need the region to extend past them.
			bars = max(1, math.ceil(to_beats(part.last_tick) / beats_per_bar))
			if any(to_beats(tick) >= bars * beats_per_bar for _, tick, _ in part.points):
				bars += 1

			session.add_track(track_id)
			session.add_region(track_id, region_id, source, position=0, length=bars * beats_per_bar)

			for note in part.notes:
				session.store.add_note(
					source,
					pitch = note.pitch,
					velocity = note.velocity,
					time = to_beats(note.start_tick),
					length = to_beats(note.end_tick - note.start_tick),
					channel = note.channel,
				)

			for parameter, tick, value in part.points:
				session.store.add_point(source, parameter, to_beats(tick), value)
				if not session.registry.is_visible(region_id, parameter):
					session.set_parameter_visible(region_id, parameter)

			logger.info(f"Imported {part.name!r}: {len(part.notes)} notes, {len(part.points)} controller events, {bars} bars")
			track_ids.append(track_id)

	return track_ids
