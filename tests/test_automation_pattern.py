import fractions
import logging

import pytest

import conftest
import trackgrid.automation_pattern
import trackgrid.commands
import trackgrid.event_store
import trackgrid.events
import trackgrid.parameters
import trackgrid.tempo


CUTOFF = conftest.CUTOFF
GAIN = conftest.GAIN


def _region_automation (
	store: trackgrid.event_store.EventStore,
	registry: trackgrid.parameters.ParameterRegistry,
	**kwargs,
) -> trackgrid.automation_pattern.RegionAutomationPattern:

	"""MIDI automation of source ``"src"`` over beats 0-4 with the cutoff visible, updated."""

	options = {"position": 0, "length": 4, "rows_per_beat": 4}
	options.update(kwargs)

	registry.set_visible("src", CUTOFF)
	pattern = trackgrid.automation_pattern.RegionAutomationPattern(store, "src", registry, **options)
	pattern.update()
	return pattern


# ─── Region automation ───────────────────────────────────────────────────────


def test_point_maps_to_nearest_row (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A point at beat 0.5 shows on row 2 with no delay."""

	store.add_point("src", CUTOFF, 0.5, 64)
	pattern = _region_automation(store, registry)

	assert pattern.parameters() == (CUTOFF,)
	assert pattern.automation_value(2, CUTOFF) == 64
	assert pattern.automation_delay(2, CUTOFF) == 0
	assert pattern.control_events_count(2, CUTOFF) == 1


def test_hidden_parameter_is_not_mapped (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Only visible parameters get a column."""

	store.add_point("src", CUTOFF, 0.5, 64)
	pattern = trackgrid.automation_pattern.RegionAutomationPattern(store, "src", registry, 0, 4)
	pattern.update()

	assert pattern.parameters() == ()
	assert pattern.automation_value(2, CUTOFF) is None
	assert pattern.is_empty(CUTOFF)


def test_track_parameters_are_not_region_automation (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A visible track parameter is ignored by region automation."""

	registry.set_visible("src", GAIN)
	pattern = _region_automation(store, registry)

	assert pattern.parameters() == (CUTOFF,)


def test_colliding_point_moves_to_min_delay_row (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A second point on an occupied row moves to the next row with a negative delay."""

	store.add_point("src", CUTOFF, 0.5, 10)
	store.add_point("src", CUTOFF, 0.55, 20)
	pattern = _region_automation(store, registry)

	assert pattern.automation_value(2, CUTOFF) == 10
	assert pattern.automation_value(3, CUTOFF) == 20
	assert pattern.automation_delay(3, CUTOFF) == -384


def test_crowded_row_is_undefined (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Three points within one row leave two on the same row."""

	for time, value in ((0.5, 10), (0.52, 20), (0.55, 30)):
		store.add_point("src", CUTOFF, time, value)

	pattern = _region_automation(store, registry)

	assert pattern.control_events_count(3, CUTOFF) == 2
	assert not pattern.is_displayable(3, CUTOFF)
	assert pattern.automation_value(3, CUTOFF) is None
	assert pattern.automation_values(3, CUTOFF) == [20.0, 30.0]
	assert len(pattern.automation_delays(3, CUTOFF)) == 2


def test_interpolated_values (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Empty rows show the linear interpolation; the last value holds afterwards."""

	store.add_point("src", CUTOFF, 0, 0)
	store.add_point("src", CUTOFF, 1, 100)
	pattern = _region_automation(store, registry)

	assert pattern.interpolated_value(2, CUTOFF) == pytest.approx(50.0)
	assert pattern.interpolated_value(8, CUTOFF) == pytest.approx(100.0)


def test_points_outside_interval_shape_interpolation (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A point past the interval end is not shown but still bends the values."""

	store.add_point("src", CUTOFF, 0, 0)
	store.add_point("src", CUTOFF, 2, 100)
	pattern = _region_automation(store, registry, length=1)

	assert pattern.nrows == 4
	assert pattern.snapshot().by_parameter[CUTOFF].mapped_rows() == [0]
	assert pattern.interpolated_value(2, CUTOFF) == pytest.approx(25.0)


def test_prev_next_range (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""The range runs between the neighbouring mapped rows."""

	for time in (0, 1, 2):
		store.add_point("src", CUTOFF, time, 64)

	mapping = _region_automation(store, registry).snapshot().by_parameter[CUTOFF]

	assert mapping.mapped_rows() == [0, 4, 8]
	assert mapping.prev_next_range(4, 16) == (1, 7)
	assert mapping.prev_next_range(8, 16) == (5, 15)
	assert mapping.prev_next_range(0, 16) == (0, 3)


def test_column_capacity (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry, caplog: pytest.LogCaptureFixture) -> None:

	"""Visible parameters beyond max_columns are excluded with a warning."""

	other = trackgrid.events.Parameter("cc", channel=0, control=1)
	registry.set_visible("src", other)

	with caplog.at_level(logging.WARNING, logger="trackgrid.automation_pattern"):
		pattern = _region_automation(store, registry, max_columns=1)

	assert pattern.parameters() == (other,)
	assert pattern.snapshot().excluded == (CUTOFF,)
	assert "not shown" in caplog.text


def test_region_start_offsets_points (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Points are read in source time from the region start."""

	store.add_point("src", CUTOFF, 1, 10)
	store.add_point("src", CUTOFF, 2.5, 20)
	pattern = _region_automation(store, registry, position=8, start=2)

	assert pattern.automation_value(2, CUTOFF) == 20
	assert pattern.control_events_count(0, CUTOFF) == 0


# ─── Track automation ────────────────────────────────────────────────────────


def test_track_automation_in_seconds (
	store: trackgrid.event_store.EventStore,
	registry: trackgrid.parameters.ParameterRegistry,
	tempo_map: trackgrid.tempo.TempoMap,
) -> None:

	"""At 120 BPM a gain point at 0.25 s shows on row 2."""

	registry.set_visible("track", GAIN)
	store.add_point("track", GAIN, 0.25, 1.5)

	pattern = trackgrid.automation_pattern.TrackAutomationPattern(store, "track", registry, 0, 4, tempo_map=tempo_map)
	pattern.update()

	assert pattern.automation_value(2, GAIN) == 1.5
	assert pattern.upper(GAIN) == 2.0
	assert pattern.lower(GAIN) == 0.0

	command = pattern.set_value_command(1.0, 4, GAIN)
	assert command == trackgrid.commands.AddPoint(owner="track", parameter=GAIN, time=0.5, value=1.0)


# ─── Edit commands ───────────────────────────────────────────────────────────


def test_set_value_on_empty_row_adds_clamped_point (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A value on an empty row adds a point, clamped to the parameter range."""

	pattern = _region_automation(store, registry)

	assert pattern.set_value_command(200, 5, CUTOFF) == trackgrid.commands.AddPoint(
		owner = "src",
		parameter = CUTOFF,
		time = fractions.Fraction(5, 4),
		value = 127,
	)


def test_set_value_on_point_changes_it (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A value on a row holding a point revalues that point."""

	point = store.add_point("src", CUTOFF, 0.5, 64)
	pattern = _region_automation(store, registry)

	assert pattern.set_value_command(32, 2, CUTOFF) == trackgrid.commands.ChangePoint(point_id=point.id, value=32)
	assert pattern.delete_value_command(2, CUTOFF) == trackgrid.commands.RemovePoint(point.id)
	assert pattern.delete_value_command(3, CUTOFF) is None


def test_set_delay_moves_point (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""A delay moves the point within its row."""

	point = store.add_point("src", CUTOFF, 0.5, 64)
	pattern = _region_automation(store, registry)

	assert pattern.set_delay_command(120, 2, CUTOFF) == trackgrid.commands.ChangePoint(
		point_id = point.id,
		time = fractions.Fraction(9, 16),
	)
	assert pattern.set_delay_command(480, 2, CUTOFF) is None


def test_commands_refused_on_undefined_rows (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""Undefined rows and hidden parameters cannot be edited."""

	for time, value in ((0.5, 10), (0.52, 20), (0.55, 30)):
		store.add_point("src", CUTOFF, time, value)

	pattern = _region_automation(store, registry)
	hidden = trackgrid.events.Parameter("cc", channel=0, control=7)

	assert pattern.set_value_command(64, 3, CUTOFF) is None
	assert pattern.set_value_command(64, 0, hidden) is None


def test_to_string_lists_points (store: trackgrid.event_store.EventStore, registry: trackgrid.parameters.ParameterRegistry) -> None:

	"""to_string() shows each mapped row and value."""

	store.add_point("src", CUTOFF, 0.5, 64)
	text = _region_automation(store, registry).to_string()

	assert "cc74/ch1: 2:64" in text
