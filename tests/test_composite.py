import fractions

import conftest
import trackgrid.composite
import trackgrid.event_store
import trackgrid.parameters
import trackgrid.tempo


def _region (
	store: trackgrid.event_store.EventStore,
	registry: trackgrid.parameters.ParameterRegistry,
	region_id: str,
	position: float,
	length: float,
	**kwargs,
) -> trackgrid.composite.RegionPattern:

	return trackgrid.composite.RegionPattern(store, registry, region_id, f"{region_id}-src", position, length, **kwargs)


def _track (
	store: trackgrid.event_store.EventStore,
	registry: trackgrid.parameters.ParameterRegistry,
	track_id: str,
	*regions: tuple,
) -> trackgrid.composite.TrackPattern:

	"""A track holding ``(region_id, position, length)`` regions."""

	track = trackgrid.composite.TrackPattern(store, registry, track_id)

	for region_id, position, length in regions:
		track.add_region(_region(store, registry, region_id, position, length))

	return track


# ─── Regions ─────────────────────────────────────────────────────────────────


def test_region_spans_its_interval (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A region at beat 4 of length 4 has 16 rows starting on beat 4."""

	region = _region(store, registry, "r1", 4, 4)
	snapshot = region.update()

	assert region.nrows == 16
	assert snapshot.position_row_beats == 4
	assert snapshot.row_offsets == (0, 0)
	assert snapshot.notes.nrows == 16
	assert snapshot.automation.nrows == 16


def test_region_notes_and_automation (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Both sub-patterns read the region's source and use the region's visibility."""

	store.add_note("r1-src", pitch=60, velocity=100, time=0, length=1)
	store.add_point("r1-src", conftest.CUTOFF, 0.5, 64)
	registry.set_visible("r1", conftest.CUTOFF)

	region = _region(store, registry, "r1", 4, 4)
	region.update()

	assert region.notes.on_note(0, 0).pitch == 60
	assert region.automation.automation_value(2, conftest.CUTOFF) == 64
	assert "RegionPattern 'r1'" in region.to_string()


def test_region_interval_change_reaches_children (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Moving a region moves its notes and automation."""

	region = _region(store, registry, "r1", 0, 4)
	region.set_interval(8, 2, start=1)
	region.update()

	assert region.notes.position_beats == 8
	assert region.automation.start_beats == 1
	assert region.nrows == 8


# ─── Tracks ──────────────────────────────────────────────────────────────────


def test_row_offsets_follow_region_positions (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Sub-patterns at beats 0 and 2 at 4 rows per beat are 8 rows apart."""

	track = _track(store, registry, "t1", ("a", 0, 2), ("b", 2, 2))
	snapshot = track.update()

	assert snapshot.row_offsets == (0, 8)
	assert track.nrows == 16


def test_regions_are_sorted_by_position (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Regions added out of order are indexed by position."""

	track = _track(store, registry, "t1", ("late", 8, 4), ("early", 0, 4))
	track.update()

	assert [r.region_id for r in track.regions] == ["early", "late"]
	assert track.row_offsets == [0, 32]


def test_gap_between_regions_is_dead_space (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Rows between two regions belong to no region."""

	track = _track(store, registry, "t1", ("a", 0, 4), ("b", 8, 4))
	track.update()

	assert track.nrows == 48
	assert track.is_defined(20)
	assert not track.is_region_defined(20)
	assert track.region_index_at(33) == 1
	assert track.to_local(33, 1) == 1
	assert track.locate(3) == [(0, 3)]


def test_disabled_region_is_dead_space (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A hidden region keeps its rows but no longer defines them."""

	track = _track(store, registry, "t1", ("a", 0, 4), ("b", 4, 4))
	track.region("b").set_enabled(False)
	track.update()

	assert track.nrows == 32
	assert not track.is_region_defined(20)
	assert not track.region("b").notes.enabled


def test_unaligned_region_offset (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A region starting between rows starts on the next row of the track."""

	track = _track(store, registry, "t1", ("a", 0, 1), ("b", 0.1, 1))
	track.update()

	assert track.region("b").position_row_beats == fractions.Fraction(1, 4)
	assert track.row_offsets == [0, 1]


def test_empty_track (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A track without regions has no rows."""

	track = _track(store, registry, "t1")
	track.update()

	assert track.nrows == 0
	assert not track.is_region_defined(0)


def test_duplicate_region_is_refused (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A region id can only be added once to a track."""

	track = _track(store, registry, "t1", ("a", 0, 4))

	try:
		track.add_region(_region(store, registry, "a", 4, 4))
		assert False, "should have raised"
	except ValueError:
		pass


def test_remove_region (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Removing a region shrinks the track."""

	track = _track(store, registry, "t1", ("a", 0, 4), ("b", 4, 4))
	removed = track.remove_region("b")
	track.update()

	assert removed.region_id == "b"
	assert track.nrows == 16


def test_track_automation_spans_regions (
	store: trackgrid.event_store.EventStore,
	registry: trackgrid.parameters.ParameterRegistry,
) -> None:

	"""Track automation covers the regions; at 120 BPM one second is beat 2."""

	registry.set_visible("t1", conftest.GAIN)
	store.add_point("t1", conftest.GAIN, 1.0, 0.5)

	track = _track(store, registry, "t1", ("a", 0, 4))
	snapshot = track.update()

	assert snapshot.automation_offset == 0
	assert snapshot.automation.nrows == 16
	assert snapshot.automation.automation_value(8, conftest.GAIN) == 0.5


# ─── Multiple tracks ─────────────────────────────────────────────────────────


def test_multi_track_alignment (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Tracks align on the earliest track and global rows resolve to region rows."""

	multi = trackgrid.composite.MultiTrackPattern()
	multi.add_track(_track(store, registry, "late", ("a", 4, 4)))
	multi.add_track(_track(store, registry, "early", ("b", 0, 4)))
	multi.update()

	assert multi.row_offsets == [16, 0]
	assert multi.nrows == 32
	assert multi.track_index("early") == 1
	assert multi.resolve(17, 0) == (1, 0, 1)
	assert multi.resolve(2, 0) is None
	assert multi.is_region_defined(2, 1)
	assert not multi.is_region_defined(20, 1)


def test_multi_track_empty_track_offset (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A track without regions gets offset 0."""

	multi = trackgrid.composite.MultiTrackPattern()
	multi.add_track(_track(store, registry, "full", ("a", 4, 4)))
	multi.add_track(_track(store, registry, "empty"))
	multi.update()

	assert multi.row_offsets == [0, 0]
	assert multi.nrows == 16
	assert multi.position_row_beats == 4


def test_resolution_change_reaches_every_pattern (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Changing the resolution of the top pattern changes every sub-pattern."""

	multi = trackgrid.composite.MultiTrackPattern(rows_per_beat=4)
	track = _track(store, registry, "t1", ("a", 0, 4))
	multi.add_track(track)

	multi.set_rows_per_beat(2)
	multi.update()

	region = track.region("a")

	assert multi.nrows == 8
	assert region.notes.rows_per_beat == 2
	assert track.automation.rows_per_beat == 2


def test_added_track_takes_current_resolution (
	store: trackgrid.event_store.EventStore,
	registry: trackgrid.parameters.ParameterRegistry,
	tempo_map: trackgrid.tempo.TempoMap,
) -> None:

	"""A track added after a resolution change follows it."""

	multi = trackgrid.composite.MultiTrackPattern(rows_per_beat=8, tempo_map=tempo_map)
	multi.add_track(_track(store, registry, "t1", ("a", 0, 1)))
	multi.update()

	assert multi.nrows == 8
