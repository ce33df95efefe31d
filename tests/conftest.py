import typing

import mido
import pytest

import trackgrid.event_store
import trackgrid.events
import trackgrid.parameters
import trackgrid.session
import trackgrid.tempo


CUTOFF = trackgrid.events.Parameter("cc", channel=0, control=74)
GAIN = trackgrid.events.Parameter("gain")


@pytest.fixture
def store () -> trackgrid.event_store.EventStore:

	"""An empty event store."""

	return trackgrid.event_store.EventStore()


@pytest.fixture
def registry () -> trackgrid.parameters.ParameterRegistry:

	"""A parameter registry with nothing visible."""

	return trackgrid.parameters.ParameterRegistry()


@pytest.fixture
def tempo_map () -> trackgrid.tempo.TempoMap:

	"""A constant 120 BPM tempo map (one beat = 0.5 s)."""

	return trackgrid.tempo.TempoMap(bpm=120)


@pytest.fixture
def session () -> typing.Iterator[trackgrid.session.EditorSession]:

	"""A session with one track ``"lead"`` holding region ``"r1"`` of ``"lead-src"`` over beats 0-4."""

	editor = trackgrid.session.EditorSession()
	editor.add_track("lead")
	editor.add_region("lead", "r1", source="lead-src", position=0, length=4)

	yield editor

	editor.close()


def make_midi_file (
	messages: typing.List[typing.Union[mido.Message, mido.MetaMessage]],
	ticks_per_beat: int = 480,
) -> mido.MidiFile:

	"""Build a single-track MIDI file from messages with delta times."""

	mid = mido.MidiFile(ticks_per_beat=ticks_per_beat)
	track = mido.MidiTrack()

	for msg in messages:
		track.append(msg)

	mid.tracks.append(track)
	return mid
