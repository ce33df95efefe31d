"""Notes of one region laid out on rows and columns.

Simultaneous notes cannot share a column, so the notes of a region are
partitioned into columns (an interval partitioning problem, solved greedily
in start-time order).  The partition is stable: a note keeps the column it had
at the previous update whenever that column is still free for it, so editing
one note does not reshuffle its neighbours.

Within a column every note contributes an *on* boundary (its start) and,
unless it ends at or after the interval end, an *off* boundary (its end).
Each boundary is placed on a row.  A row of a column is *displayable* when it
can be drawn as a single cell: at most one on and one off, and if both, the
off ends exactly where the on starts.  Other rows are shown as undefined.
"""

import bisect
import dataclasses
import logging
import typing

import trackgrid.beats
import trackgrid.commands
import trackgrid.constants
import trackgrid.event_store
import trackgrid.events
import trackgrid.pattern
import trackgrid.snapshot
import trackgrid.tempo


logger = logging.getLogger(__name__)

RowToNotes = typing.Dict[int, typing.Tuple[trackgrid.events.Note, ...]]


def overlap (a: trackgrid.events.Note, b: trackgrid.events.Note) -> bool:

	"""True if two notes cannot share a column.

	Notes overlap when their half-open intervals intersect, or when they
	start together (zero-length notes included).
	"""

	return a.time == b.time or (a.time < b.end_time and b.time < a.end_time)


def is_free (column: typing.Sequence[trackgrid.events.Note], note: trackgrid.events.Note) -> bool:
	return not any(overlap(other, note) for other in column)


def is_displayable_cell (
	ons: typing.Sequence[trackgrid.events.Note],
	offs: typing.Sequence[trackgrid.events.Note],
) -> bool:

	"""True if the on and off boundaries of a cell fit in one displayed cell."""

	if len(ons) > 1 or len(offs) > 1:
		return False

	if len(ons) == 1 and len(offs) == 1:
		return offs[0].end_time == ons[0].time

	return True


@dataclasses.dataclass(frozen=True)
class NotesSnapshot (trackgrid.snapshot.Snapshot):

	"""
	Notes mapped onto rows, per column.

	``on_rows[c][row]`` and ``off_rows[c][row]`` hold the notes whose on or
	off boundary was placed on that row of column ``c``, sorted by time.
	Delays are keyed by note id.
	"""

	ntracks: int
	nreqtracks: int
	columns: typing.Tuple[typing.Tuple[trackgrid.events.Note, ...], ...]
	on_rows: typing.Tuple[RowToNotes, ...]
	off_rows: typing.Tuple[RowToNotes, ...]
	on_delays: typing.Dict[trackgrid.events.EventId, int]
	off_delays: typing.Dict[trackgrid.events.EventId, int]
	excluded: typing.Tuple[trackgrid.events.EventId, ...] = ()

	def grid_fields (self) -> dict:

		fields = super().grid_fields()
		fields.update(ntracks=self.ntracks, nreqtracks=self.nreqtracks)
		return fields

	# ------------------------------------------------------------------
	# Cells
	# ------------------------------------------------------------------

	def on_notes (self, row: int, column: int) -> typing.Tuple[trackgrid.events.Note, ...]:

		"""Every note starting on a cell (several for undefined rows)."""

		if not 0 <= column < len(self.on_rows):
			return ()

		return self.on_rows[column].get(row, ())

	def off_notes (self, row: int, column: int) -> typing.Tuple[trackgrid.events.Note, ...]:

		if not 0 <= column < len(self.off_rows):
			return ()

		return self.off_rows[column].get(row, ())

	def on_notes_count (self, row: int, column: int) -> int:
		return len(self.on_notes(row, column))

	def off_notes_count (self, row: int, column: int) -> int:
		return len(self.off_notes(row, column))

	def on_note (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:

		"""The note starting on a displayable cell, if any."""

		notes = self.on_notes(row, column)
		return notes[0] if len(notes) == 1 else None

	def off_note (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:

		notes = self.off_notes(row, column)
		return notes[0] if len(notes) == 1 else None

	def is_displayable (self, row: int, column: int) -> bool:
		return is_displayable_cell(self.on_notes(row, column), self.off_notes(row, column))

	def on_note_delay (self, row: int, column: int) -> typing.Optional[int]:

		note = self.on_note(row, column)
		return None if note is None else self.on_delays[note.id]

	def off_note_delay (self, row: int, column: int) -> typing.Optional[int]:

		note = self.off_note(row, column)
		return None if note is None else self.off_delays[note.id]

	# ------------------------------------------------------------------
	# Neighbours
	# ------------------------------------------------------------------

	def find_prev_on (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:

		"""The latest note starting on the closest row before *row*."""

		return self._find_prev(self.on_rows, row, column)

	def find_next_on (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:

		"""The earliest note starting on the closest row after *row*."""

		return self._find_next(self.on_rows, row, column)

	def find_prev_off (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self._find_prev(self.off_rows, row, column)

	def find_next_off (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self._find_next(self.off_rows, row, column)

	@staticmethod
	def _find_prev (mapping: typing.Tuple[RowToNotes, ...], row: int, column: int) -> typing.Optional[trackgrid.events.Note]:

		if not 0 <= column < len(mapping):
			return None

		rows = sorted(mapping[column])
		i = bisect.bisect_left(rows, row)

		return mapping[column][rows[i - 1]][-1] if i > 0 else None

	@staticmethod
	def _find_next (mapping: typing.Tuple[RowToNotes, ...], row: int, column: int) -> typing.Optional[trackgrid.events.Note]:

		if not 0 <= column < len(mapping):
			return None

		rows = sorted(mapping[column])
		i = bisect.bisect_right(rows, row)

		return mapping[column][rows[i]][0] if i < len(rows) else None

	# ------------------------------------------------------------------
	# Columns
	# ------------------------------------------------------------------

	def column_of (self, note_id: trackgrid.events.EventId) -> typing.Optional[int]:

		for column, notes in enumerate(self.columns):
			if any(n.id == note_id for n in notes):
				return column

		return None

	def notes_in_column (self, column: int) -> typing.Tuple[trackgrid.events.Note, ...]:

		if not 0 <= column < len(self.columns):
			return ()

		return self.columns[column]


class NotePattern (trackgrid.pattern.Pattern):

	"""
	Maps the notes of one event source onto a column-and-row grid.

	The pattern covers the region interval ``[position, position + length)``
	of the timeline, which shows the source from ``start`` onwards.  Notes
	are read from the store in source time.

	Example:
		```python
		store = EventStore()
		store.add_note("src", pitch=60, velocity=100, time=0, length=1)
		store.add_note("src", pitch=64, velocity=100, time=0, length=1)

		pattern = NotePattern(store, "src", position=0, length=4)
		pattern.update()

		pattern.nreqtracks            # 2
		pattern.on_note(0, 1).pitch   # 64
		```
	"""

	kind = trackgrid.snapshot.PatternKind.NOTES

	def __init__ (
		self,
		store: trackgrid.event_store.EventStore,
		owner: trackgrid.event_store.Owner,
		position: trackgrid.beats.BeatsLike = 0,
		length: trackgrid.beats.BeatsLike = 0,
		start: trackgrid.beats.BeatsLike = 0,
		rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT,
		beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR,
		tempo_map: typing.Optional[trackgrid.tempo.TempoMap] = None,
		max_columns: int = trackgrid.constants.DEFAULT_MAX_NOTE_COLUMNS,
	) -> None:

		super().__init__(position, length, start, rows_per_beat, beats_per_bar, tempo_map)

		if max_columns <= 0:
			raise ValueError("Maximum number of note columns must be positive")

		self.store = store
		self.owner = owner
		self.max_columns = max_columns

		self.ntracks = 0
		self.nreqtracks = 0

		self._columns: typing.List[typing.List[trackgrid.events.Note]] = []
		self._excluded: typing.List[trackgrid.events.EventId] = []
		self._on_placement: typing.Dict[trackgrid.events.EventId, int] = {}
		self._off_placement: typing.Dict[trackgrid.events.EventId, int] = {}

	# ------------------------------------------------------------------
	# Update
	# ------------------------------------------------------------------

	def _build_snapshot (self) -> NotesSnapshot:

		self.update_columns()
		return self.update_rows()

	def update_columns (self) -> None:

		"""Partition the notes of the interval into non-overlapping columns."""

		notes = self.store.notes_in(self.owner, self.start_beats, self.start_beats + self.length_beats)
		previous_column = {note.id: i for i, column in enumerate(self._columns) for note in column}

		columns: typing.List[typing.List[trackgrid.events.Note]] = []
		excluded: typing.List[trackgrid.events.EventId] = []

		for note in notes:

			target = previous_column.get(note.id)

			if target is None or target >= len(columns) or not is_free(columns[target], note):
				target = next((i for i, column in enumerate(columns) if is_free(column, note)), None)

			if target is None:

				if len(columns) >= self.max_columns:
					excluded.append(note.id)
					continue

				columns.append([])
				target = len(columns) - 1

			columns[target].append(note)

		if excluded:
			logger.warning(f"{len(excluded)} note(s) of {self.owner!r} need more than {self.max_columns} columns and are not shown")

		self._columns = columns
		self._excluded = excluded
		self.nreqtracks = len(columns)
		self.ntracks = max(self.nreqtracks, self.ntracks)

	def update_rows (self) -> NotesSnapshot:

		"""Place the on and off boundaries of every column on rows."""

		on_rows: typing.List[RowToNotes] = []
		off_rows: typing.List[RowToNotes] = []
		on_delays: typing.Dict[trackgrid.events.EventId, int] = {}
		off_delays: typing.Dict[trackgrid.events.EventId, int] = {}
		on_placement: typing.Dict[trackgrid.events.EventId, int] = {}
		off_placement: typing.Dict[trackgrid.events.EventId, int] = {}

		for column in self._columns:

			ons: typing.Dict[int, typing.List[trackgrid.events.Note]] = {}
			offs: typing.Dict[int, typing.List[trackgrid.events.Note]] = {}

			for note in column:

				on_time = self.to_timeline_beats(note.time)
				on_row = self._place(
					note,
					on_time,
					self._on_placement.get(note.id),
					(self.row_at_beats_max_delay(on_time), self.row_at_beats_min_delay(on_time)),
					lambda row: is_displayable_cell(ons.get(row, []) + [note], offs.get(row, [])),
				)

				ons.setdefault(on_row, []).append(note)
				on_placement[note.id] = on_row
				on_delays[note.id] = self.delay_ticks(on_time, on_row)

				off_time = self.to_timeline_beats(note.end_time)

				if off_time >= self.end_beats:
					continue

				off_row = self._place(
					note,
					off_time,
					self._off_placement.get(note.id),
					(self.row_at_beats_min_delay(off_time), self.row_at_beats_max_delay(off_time)),
					lambda row: row >= on_row and is_displayable_cell(ons.get(row, []), offs.get(row, []) + [note]),
				)

				off_row = max(off_row, on_row)
				offs.setdefault(off_row, []).append(note)
				off_placement[note.id] = off_row
				off_delays[note.id] = self.delay_ticks(off_time, off_row)

			on_rows.append({row: tuple(sorted(notes, key=trackgrid.events.note_sort_key)) for row, notes in ons.items()})
			off_rows.append({row: tuple(sorted(notes, key=lambda n: (n.end_time, n.pitch, n.id))) for row, notes in offs.items()})

		# Columns kept open with set_ntracks() hold no notes.
		for _ in range(self.ntracks - self.nreqtracks):
			on_rows.append({})
			off_rows.append({})

		self._on_placement = on_placement
		self._off_placement = off_placement

		return NotesSnapshot(
			**self._grid_fields(),
			ntracks = self.ntracks,
			nreqtracks = self.nreqtracks,
			columns = tuple(tuple(column) for column in self._columns) + ((),) * (self.ntracks - self.nreqtracks),
			on_rows = tuple(on_rows),
			off_rows = tuple(off_rows),
			on_delays = on_delays,
			off_delays = off_delays,
			excluded = tuple(self._excluded),
		)

	def _place (
		self,
		note: trackgrid.events.Note,
		time: trackgrid.beats.Beats,
		previous_row: typing.Optional[int],
		biased_rows: typing.Tuple[int, int],
		is_available: typing.Callable[[int], bool],
	) -> int:

		"""Pick the row of one boundary.

		Candidates, in order: the row of the previous update (if its delay
		still fits), the nearest row, then the two biased rows.  The first
		available one wins; when none is, the nearest row is used and the
		cell shows as undefined.
		"""

		centred_row = self.row_at_beats(time)
		candidates = [centred_row, *biased_rows]

		if previous_row is not None and self.is_defined(previous_row):
			candidates.insert(0, previous_row)

		for row in candidates:
			if self.is_delay_in_range(self.delay_ticks(time, row)) and is_available(row):
				return row

		logger.debug(f"Note {note.id} of {self.owner!r} collides on row {centred_row}")

		return centred_row

	# ------------------------------------------------------------------
	# Columns
	# ------------------------------------------------------------------

	def set_ntracks (self, n: int) -> None:

		"""Show *n* columns; ignored if fewer than the notes require."""

		if self.nreqtracks <= n <= self.max_columns:
			self.ntracks = n

	def inc_ntracks (self) -> None:

		if self.ntracks < self.max_columns:
			self.ntracks += 1

	def dec_ntracks (self) -> None:

		if self.nreqtracks < self.ntracks:
			self.ntracks -= 1

	# ------------------------------------------------------------------
	# Queries
	# ------------------------------------------------------------------

	def on_note (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.snapshot().on_note(row, column)

	def off_note (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.snapshot().off_note(row, column)

	def on_notes (self, row: int, column: int) -> typing.Tuple[trackgrid.events.Note, ...]:
		return self.snapshot().on_notes(row, column)

	def off_notes (self, row: int, column: int) -> typing.Tuple[trackgrid.events.Note, ...]:
		return self.snapshot().off_notes(row, column)

	def on_notes_count (self, row: int, column: int) -> int:
		return self.snapshot().on_notes_count(row, column)

	def off_notes_count (self, row: int, column: int) -> int:
		return self.snapshot().off_notes_count(row, column)

	def is_displayable (self, row: int, column: int) -> bool:
		return self.snapshot().is_displayable(row, column)

	def on_note_delay (self, row: int, column: int) -> typing.Optional[int]:
		return self.snapshot().on_note_delay(row, column)

	def off_note_delay (self, row: int, column: int) -> typing.Optional[int]:
		return self.snapshot().off_note_delay(row, column)

	def find_prev_on (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.snapshot().find_prev_on(row, column)

	def find_next_on (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.snapshot().find_next_on(row, column)

	def find_prev_off (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.snapshot().find_prev_off(row, column)

	def find_next_off (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.snapshot().find_next_off(row, column)

	def column_of (self, note_id: trackgrid.events.EventId) -> typing.Optional[int]:
		return self.snapshot().column_of(note_id)

	def notes_in_column (self, column: int) -> typing.Tuple[trackgrid.events.Note, ...]:
		return self.snapshot().notes_in_column(column)

	def next_on_beats (self, row: int, column: int) -> trackgrid.beats.Beats:

		"""Timeline beat of the next note starting after *row*, or the interval end."""

		note = self.find_next_on(row, column)
		return self.end_beats if note is None else self.to_timeline_beats(note.time)

	def next_off_beats (self, row: int, column: int) -> trackgrid.beats.Beats:

		note = self.find_next_off(row, column)
		return self.end_beats if note is None else self.to_timeline_beats(note.end_time)

	def note_ends_within_interval (self, note: trackgrid.events.Note) -> bool:

		"""True if the note has a displayed off boundary."""

		return self.to_timeline_beats(note.end_time) < self.end_beats

	# ------------------------------------------------------------------
	# Edit commands
	# ------------------------------------------------------------------

	def set_note_command (
		self,
		row: int,
		column: int,
		pitch: int,
		velocity: typing.Optional[int] = None,
		channel: int = 0,
		delay: int = 0,
	) -> typing.Optional[trackgrid.commands.Command]:

		"""Command that puts a note on a cell.

		An existing note on the cell changes pitch (and velocity, if given).
		Otherwise a new note starts on the cell and lasts until the next note
		of the column, or the interval end.
		"""

		if not self._is_editable(row, column) or not self.is_delay_in_range(delay):
			return None

		pitch = _clamp_midi(pitch)
		existing = self.on_note(row, column)

		if existing is not None:
			return trackgrid.commands.ChangeNote(
				note_id = existing.id,
				pitch = pitch,
				velocity = None if velocity is None else _clamp_midi(velocity),
			)

		on_time = self.beats_at_row(row, delay)
		length = self.next_on_beats(row, column) - on_time

		if length <= 0 or self.to_source_beats(on_time) < 0:
			return None

		return trackgrid.commands.AddNote(
			owner = self.owner,
			channel = channel,
			pitch = pitch,
			velocity = _clamp_midi(trackgrid.constants.DEFAULT_VELOCITY if velocity is None else velocity),
			time = self.to_source_beats(on_time),
			length = length,
		)

	def set_velocity_command (self, row: int, column: int, velocity: int) -> typing.Optional[trackgrid.commands.Command]:

		note = self._editable_on_note(row, column)

		if note is None:
			return None

		return trackgrid.commands.ChangeNote(note_id=note.id, velocity=_clamp_midi(velocity))

	def set_on_delay_command (self, row: int, column: int, delay: int) -> typing.Optional[trackgrid.commands.Command]:

		"""Command that moves the start of the note on a cell, keeping its end."""

		note = self._editable_on_note(row, column)

		if note is None or not self.is_delay_in_range(delay):
			return None

		time = self.region_relative_beats_at_row(row, delay)

		if time < 0 or time > note.end_time:
			return None

		return trackgrid.commands.ChangeNote(note_id=note.id, time=time, length=note.end_time - time)

	def set_off_delay_command (self, row: int, column: int, delay: int) -> typing.Optional[trackgrid.commands.Command]:

		"""Command that moves the end of the note ending on a cell."""

		if not self._is_editable(row, column) or not self.is_delay_in_range(delay):
			return None

		note = self.off_note(row, column)

		if note is None:
			return None

		length = self.region_relative_beats_at_row(row, delay) - note.time

		if length < 0:
			return None

		return trackgrid.commands.ChangeNote(note_id=note.id, length=length)

	def delete_note_command (self, row: int, column: int) -> typing.Optional[trackgrid.commands.Command]:

		note = self._editable_on_note(row, column)
		return None if note is None else trackgrid.commands.RemoveNote(note.id)

	def _is_editable (self, row: int, column: int) -> bool:
		return self.is_defined(row) and 0 <= column < self.ntracks and self.is_displayable(row, column)

	def _editable_on_note (self, row: int, column: int) -> typing.Optional[trackgrid.events.Note]:
		return self.on_note(row, column) if self._is_editable(row, column) else None

	def to_string (self) -> str:

		snapshot = self.snapshot()
		lines = [f"NotePattern {self.owner!r} {self.describe()}, {snapshot.ntracks} columns ({snapshot.nreqtracks} required)"]

		for column, notes in enumerate(snapshot.columns):
			lines.append(f"  column {column}: " + ", ".join(f"#{n.id} p{n.pitch} @{float(n.time):g}+{float(n.length):g}" for n in notes))

		return "\n".join(lines)


def _clamp_midi (value: int) -> int:
	return max(trackgrid.constants.MIDI_MIN, min(trackgrid.constants.MIDI_MAX, int(value)))
