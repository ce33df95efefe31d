import fractions

import pytest

import conftest
import trackgrid.commands
import trackgrid.event_store


def test_add_note_assigns_ids_and_snaps_times (store: trackgrid.event_store.EventStore) -> None:

	"""Notes get distinct ids and tick-exact times."""

	a = store.add_note("src", pitch=60, velocity=100, time=0.5, length=1)
	b = store.add_note("src", pitch=62, velocity=100, time=1 / 3, length=1)

	assert a.id != b.id
	assert a.time == fractions.Fraction(1, 2)
	assert b.time == fractions.Fraction(1, 3)
	assert store.notes("src") == [b, a]


def test_change_note_keeps_id (store: trackgrid.event_store.EventStore) -> None:

	"""Editing a note replaces it under the same id."""

	note = store.add_note("src", pitch=60, velocity=100, time=0, length=1)
	changed = store.change_note(note.id, pitch=64, length=2)

	assert changed.id == note.id
	assert store.note(note.id).pitch == 64
	assert store.note(note.id).velocity == 100
	assert store.note(note.id).end_time == 2


def test_notes_in_interval (store: trackgrid.event_store.EventStore) -> None:

	"""notes_in() selects notes starting in a half-open interval."""

	for time in (0, 1, 2, 3):
		store.add_note("src", pitch=60, velocity=100, time=time, length=1)

	assert [n.time for n in store.notes_in("src", 1, 3)] == [1, 2]


def test_invalid_notes_raise (store: trackgrid.event_store.EventStore) -> None:

	"""MIDI ranges and negative times are refused."""

	with pytest.raises(ValueError):
		store.add_note("src", pitch=128, velocity=100, time=0, length=1)

	with pytest.raises(ValueError):
		store.add_note("src", pitch=60, velocity=100, time=-1, length=1)

	with pytest.raises(ValueError):
		store.add_note("src", pitch=60, velocity=100, time=0, length=1, channel=16)


def test_remove_unknown_note_raises (store: trackgrid.event_store.EventStore) -> None:

	"""Unknown ids raise KeyError."""

	with pytest.raises(KeyError):
		store.remove_note(99)


def test_point_time_units (store: trackgrid.event_store.EventStore) -> None:

	"""Region automation is timed in beats, track automation in seconds."""

	cc = store.add_point("src", conftest.CUTOFF, 0.5, 64)
	gain = store.add_point("track", conftest.GAIN, 0.25, 1)

	assert cc.time == fractions.Fraction(1, 2)
	assert isinstance(gain.time, float)
	assert store.parameters("src") == [conftest.CUTOFF]


def test_change_and_remove_point (store: trackgrid.event_store.EventStore) -> None:

	"""Points keep their id when moved or revalued."""

	point = store.add_point("src", conftest.CUTOFF, 0, 10)
	store.change_point(point.id, time=1, value=20)

	assert store.points("src", conftest.CUTOFF)[0].time == 1
	assert store.point(point.id).value == 20.0

	store.remove_point(point.id)

	assert store.points("src", conftest.CUTOFF) == []
	assert store.parameters("src") == []


def test_changes_notify_owner (store: trackgrid.event_store.EventStore) -> None:

	"""Every mutation emits "changed" with the owner."""

	received: list = []
	store.events.on("changed", received.append)

	note = store.add_note("src", pitch=60, velocity=100, time=0, length=1)
	store.remove_note(note.id)
	store.add_point("track", conftest.GAIN, 0, 1)

	assert received == ["src", "src", "track"]


def test_batch_notifies_once_per_owner (store: trackgrid.event_store.EventStore) -> None:

	"""Edits inside batch() are reported once per owner when the batch ends."""

	received: list = []
	store.events.on("changed", received.append)

	with store.batch():
		store.add_note("src", pitch=60, velocity=100, time=0, length=1)
		store.add_note("src", pitch=62, velocity=100, time=1, length=1)
		store.add_point("track", conftest.GAIN, 0, 1)
		assert received == []

	assert received == ["src", "track"]


def test_apply_commands (store: trackgrid.event_store.EventStore) -> None:

	"""Every command kind is applied to the store."""

	note = store.apply(trackgrid.commands.AddNote("src", 0, 60, 100, fractions.Fraction(0), fractions.Fraction(1)))
	store.apply(trackgrid.commands.ChangeNote(note.id, velocity=10))

	assert store.note(note.id).velocity == 10

	store.apply(trackgrid.commands.RemoveNote(note.id))
	assert store.notes("src") == []

	point = store.apply(trackgrid.commands.AddPoint("src", conftest.CUTOFF, fractions.Fraction(0), 5))
	store.apply(trackgrid.commands.ChangePoint(point.id, value=6))

	assert store.point(point.id).value == 6.0

	store.apply(trackgrid.commands.RemovePoint(point.id))
	assert store.points("src", conftest.CUTOFF) == []


def test_apply_unknown_command_raises (store: trackgrid.event_store.EventStore) -> None:

	"""Objects that are not commands are refused."""

	with pytest.raises(TypeError):
		store.apply("add a note")
