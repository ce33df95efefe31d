"""Tracker-style text rendering of pattern snapshots.

Used by the command line and handy in tests and logs.  A track renders as one
line per row::

	     | note           | note           |     cc74/ch1
	   0:| C-4 100        | E-4  90        |          64
	   1 | --- ---        | ===     -12    |        (66)
	   2 | ===     +12    | ***            |         ***

Note cells show the pitch, the velocity and the delay (if any); ``===`` is
a note-off; ``***`` marks an undefined cell (several events on one row).
Automation cells show the value of the point on the row, or the
interpolated value in parentheses.  Rows outside every region (dead space)
are left blank.
"""

import typing

import trackgrid.automation_pattern
import trackgrid.composite
import trackgrid.events
import trackgrid.note_pattern


_NOTE_NAMES = ["C-", "C#", "D-", "D#", "E-", "F-", "F#", "G-", "G#", "A-", "A#", "B-"]

_NOTE_CELL_WIDTH = 14
_VALUE_CELL_WIDTH = 12
_UNDEFINED = "***"


def note_name (pitch: int) -> str:

	"""Convert a MIDI note number to a tracker note name.

	Examples: 60 → ``"C-4"``, 42 → ``"F#2"``, 0 → ``"C--1"``.
	"""

	octave = (pitch // 12) - 1
	return f"{_NOTE_NAMES[pitch % 12]}{octave}"


def _delay_text (delay: typing.Optional[int]) -> str:
	return f"{delay:+d}" if delay else ""


def render_note_cell (notes: trackgrid.note_pattern.NotesSnapshot, row: int, column: int) -> str:

	"""Text of one note cell, padded to a fixed width."""

	if not notes.is_displayable(row, column):
		text = _UNDEFINED

	elif notes.on_note(row, column) is not None:
		note = notes.on_note(row, column)
		text = f"{note_name(note.pitch):<4}{note.velocity:>3} {_delay_text(notes.on_note_delay(row, column))}"

	elif notes.off_note(row, column) is not None:
		text = f"===     {_delay_text(notes.off_note_delay(row, column))}"

	else:
		text = "--- ---"

	return text[:_NOTE_CELL_WIDTH].ljust(_NOTE_CELL_WIDTH)


def render_automation_cell (
	automation: trackgrid.automation_pattern.AutomationSnapshot,
	row: int,
	parameter: trackgrid.events.Parameter,
) -> str:

	if not automation.is_displayable(row, parameter):
		text = _UNDEFINED

	elif automation.control_event(row, parameter) is not None:
		value = automation.automation_value(row, parameter)
		text = f"{value:g} {_delay_text(automation.automation_delay(row, parameter))}"

	else:
		value = automation.interpolated_value(row, parameter)
		text = "" if value is None else f"({value:.4g})"

	return text[:_VALUE_CELL_WIDTH].rjust(_VALUE_CELL_WIDTH)


def render_notes (notes: trackgrid.note_pattern.NotesSnapshot) -> str:

	"""Render a single note pattern."""

	lines = []

	for row in range(notes.nrows):
		cells = [render_note_cell(notes, row, column) for column in range(notes.ntracks)]
		lines.append(f"{row:>4} | " + " | ".join(cells))

	return "\n".join(lines)


def render_track (track: trackgrid.composite.TrackSnapshot, name: str = "") -> str:

	"""
	Render a track: note columns and MIDI automation of the region covering
	each row, then the track automation.
	"""

	regions = typing.cast(typing.Sequence[trackgrid.composite.RegionSnapshot], track.children)
	ncolumns = max((r.notes.ntracks for r in regions), default=0)

	region_parameters: typing.List[trackgrid.events.Parameter] = []

	for region in regions:
		for parameter in region.automation.parameters:
			if parameter not in region_parameters:
				region_parameters.append(parameter)

	header = ["note".ljust(_NOTE_CELL_WIDTH)] * ncolumns
	header += [str(p)[:_VALUE_CELL_WIDTH].rjust(_VALUE_CELL_WIDTH) for p in region_parameters]
	header += [str(p)[:_VALUE_CELL_WIDTH].rjust(_VALUE_CELL_WIDTH) for p in track.automation.parameters]

	lines = [name, "     | " + " | ".join(header)] if name else ["     | " + " | ".join(header)]

	for row in range(track.nrows):

		cells: typing.List[str] = []
		index = track.region_index_at(row)

		if index is None:
			cells += [" " * _NOTE_CELL_WIDTH] * ncolumns
			cells += [" " * _VALUE_CELL_WIDTH] * len(region_parameters)

		else:
			region = regions[index]
			local = track.to_local(row, index)

			cells += [
				render_note_cell(region.notes, local, column) if column < region.notes.ntracks else " " * _NOTE_CELL_WIDTH
				for column in range(ncolumns)
			]
			cells += [
				render_automation_cell(region.automation, local, p) if region.automation.has_parameter(p) else " " * _VALUE_CELL_WIDTH
				for p in region_parameters
			]

		automation_row = row - track.automation_offset
		cells += [
			render_automation_cell(track.automation, automation_row, p) if track.automation.is_defined(automation_row) else " " * _VALUE_CELL_WIDTH
			for p in track.automation.parameters
		]

		marker = ":" if track.beats_at_row(row).denominator == 1 else " "
		lines.append(f"{row:>4}{marker}| " + " | ".join(cells))

	return "\n".join(lines)


def render_multi_track (multi: trackgrid.composite.MultiTrackSnapshot, names: typing.Optional[typing.Sequence[str]] = None) -> str:

	"""Render every track of a multi-track snapshot, one block after another."""

	blocks = []

	for index, track in enumerate(multi.children):
		name = names[index] if names else f"track {index}"
		blocks.append(render_track(typing.cast(trackgrid.composite.TrackSnapshot, track), name=f"{name} (from row {multi.row_offsets[index]})"))

	return "\n\n".join(blocks)
