"""Phenomenal diffs between two snapshots of a pattern.

A phenomenal diff lists the cells whose *appearance* changed, not the events
that changed: a note moved by a few ticks inside its row changes its delay
cell, a note moved from one undefined row to another undefined row changes
nothing that is drawn.  A renderer redraws exactly the cells of the diff.

Every diff has ``full`` (redraw everything it covers), ``empty`` (redraw
nothing) and ``cells()``, which yields a ``Cell`` per cell to redraw.  Cell
columns are tuples that identify the column down the pattern tree, e.g.
``(2, "notes", 0)`` is note column 0 of region 2 of a track.
"""

import dataclasses
import typing

import trackgrid.events
import trackgrid.snapshot


PatternKind = trackgrid.snapshot.PatternKind


class Cell (typing.NamedTuple):

	column: typing.Tuple[typing.Any, ...]
	row: int


@dataclasses.dataclass
class RowsDiff:

	"""Changed rows of a single column."""

	nrows: int = 0
	full: bool = False
	rows: typing.Set[int] = dataclasses.field(default_factory=set)

	@property
	def empty (self) -> bool:
		return not self.full and not self.rows

	def row_set (self) -> typing.Set[int]:
		return set(range(self.nrows)) if self.full else set(self.rows)

	def cells (self) -> typing.Iterator[Cell]:

		for row in sorted(self.row_set()):
			yield Cell((), row)

	def to_string (self, indent: str = "") -> str:

		if self.full:
			return f"{indent}full ({self.nrows} rows)"

		return f"{indent}rows = {','.join(str(r) for r in sorted(self.rows))}"


@dataclasses.dataclass
class NotesDiff:

	"""Changed rows per note column."""

	nrows: int = 0
	ncolumns: int = 0
	full: bool = False
	columns: typing.Dict[int, RowsDiff] = dataclasses.field(default_factory=dict)

	@property
	def empty (self) -> bool:
		return not self.full and not self.columns

	def cells (self) -> typing.Iterator[Cell]:

		if self.full:
			for column in range(self.ncolumns):
				for row in range(self.nrows):
					yield Cell((column,), row)
			return

		for column, rows_diff in sorted(self.columns.items()):
			for cell in rows_diff.cells():
				yield Cell((column,), cell.row)

	def to_string (self, indent: str = "") -> str:

		if self.full:
			return f"{indent}notes: full ({self.ncolumns} columns x {self.nrows} rows)"

		lines = [f"{indent}notes:"]
		lines.extend(f"{indent}  column {column}: {rows_diff.to_string()}" for column, rows_diff in sorted(self.columns.items()))
		return "\n".join(lines)


@dataclasses.dataclass
class AutomationDiff:

	"""Changed rows per automation parameter."""

	nrows: int = 0
	parameters: typing.Tuple[trackgrid.events.Parameter, ...] = ()
	full: bool = False
	by_parameter: typing.Dict[trackgrid.events.Parameter, RowsDiff] = dataclasses.field(default_factory=dict)

	@property
	def empty (self) -> bool:
		return not self.full and not self.by_parameter

	def cells (self) -> typing.Iterator[Cell]:

		if self.full:
			for parameter in self.parameters:
				for row in range(self.nrows):
					yield Cell((parameter,), row)
			return

		for parameter, rows_diff in self.by_parameter.items():
			for cell in rows_diff.cells():
				yield Cell((parameter,), cell.row)

	def to_string (self, indent: str = "") -> str:

		if self.full:
			return f"{indent}automation: full ({len(self.parameters)} parameters x {self.nrows} rows)"

		lines = [f"{indent}automation:"]
		lines.extend(f"{indent}  {parameter}: {rows_diff.to_string()}" for parameter, rows_diff in self.by_parameter.items())
		return "\n".join(lines)


@dataclasses.dataclass
class RegionDiff:

	nrows: int = 0
	full: bool = False
	notes: NotesDiff = dataclasses.field(default_factory=NotesDiff)
	automation: AutomationDiff = dataclasses.field(default_factory=AutomationDiff)

	@property
	def empty (self) -> bool:
		return not self.full and self.notes.empty and self.automation.empty

	def cells (self) -> typing.Iterator[Cell]:

		for cell in self.notes.cells():
			yield Cell(("notes",) + cell.column, cell.row)

		for cell in self.automation.cells():
			yield Cell(("automation",) + cell.column, cell.row)

	def to_string (self, indent: str = "") -> str:

		header = f"{indent}region: full={self.full} nrows={self.nrows}"
		return "\n".join([header, self.notes.to_string(indent + "  "), self.automation.to_string(indent + "  ")])


@dataclasses.dataclass
class CompositeDiff:

	"""Diffs of the sub-patterns that changed, keyed by sub-pattern index."""

	nrows: int = 0
	full: bool = False
	children: typing.Dict[int, typing.Any] = dataclasses.field(default_factory=dict)
	row_offsets: typing.Tuple[int, ...] = ()

	@property
	def empty (self) -> bool:
		return not self.full and not self.children

	def cells (self) -> typing.Iterator[Cell]:

		"""Cells in the composite's own row space."""

		for index, child in sorted(self.children.items()):
			for cell in child.cells():
				yield Cell((index,) + cell.column, cell.row + self.row_offsets[index])

	def to_string (self, indent: str = "") -> str:

		lines = [f"{indent}{type(self).__name__}: full={self.full} nrows={self.nrows}"]

		for index, child in sorted(self.children.items()):
			lines.append(f"{indent}  [{index}] offset {self.row_offsets[index]}")
			lines.append(child.to_string(indent + "    "))

		return "\n".join(lines)


@dataclasses.dataclass
class TrackDiff (CompositeDiff):

	"""Region diffs plus the diff of the track automation."""

	automation: AutomationDiff = dataclasses.field(default_factory=AutomationDiff)
	automation_offset: int = 0

	@property
	def empty (self) -> bool:
		return super().empty and self.automation.empty

	def cells (self) -> typing.Iterator[Cell]:

		yield from super().cells()

		for cell in self.automation.cells():
			yield Cell(("automation",) + cell.column, cell.row + self.automation_offset)

	def to_string (self, indent: str = "") -> str:
		return "\n".join([super().to_string(indent), self.automation.to_string(indent + "  ")])


Diff = typing.Union[RowsDiff, NotesDiff, AutomationDiff, RegionDiff, CompositeDiff, TrackDiff]


# ─── Entry points ─────────────────────────────────────────────────────────────


def phenomenal_diff (prev: typing.Optional[trackgrid.snapshot.Snapshot], current: trackgrid.snapshot.Snapshot) -> Diff:

	"""
	Cells to redraw to go from *prev* to *current*.

	Both snapshots disabled gives an empty diff; a structural change (enabled
	flag, row range, note column counts) or a missing *prev* gives a full
	diff; otherwise the rows are compared column by column.
	"""

	if prev is None:
		return full_diff(current)

	if prev.kind != current.kind:
		raise ValueError(f"Cannot diff a {prev.kind.value} snapshot against a {current.kind.value} snapshot")

	if not prev.enabled and not current.enabled:
		return empty_diff(current)

	if prev.grid_fields() != current.grid_fields():
		return full_diff(current)

	return _DIFFERS[current.kind](prev, current)


def full_diff (snapshot: trackgrid.snapshot.Snapshot) -> Diff:

	"""A diff covering every cell of a snapshot."""

	return _SHAPES[snapshot.kind](snapshot, True)


def empty_diff (snapshot: trackgrid.snapshot.Snapshot) -> Diff:
	return _SHAPES[snapshot.kind](snapshot, False)


# ─── Shapes ───────────────────────────────────────────────────────────────────


def _notes_shape (snapshot: typing.Any, full: bool) -> NotesDiff:
	return NotesDiff(nrows=snapshot.nrows, ncolumns=snapshot.ntracks, full=full)


def _automation_shape (snapshot: typing.Any, full: bool) -> AutomationDiff:
	return AutomationDiff(nrows=snapshot.nrows, parameters=snapshot.parameters, full=full)


def _region_shape (snapshot: typing.Any, full: bool) -> RegionDiff:

	return RegionDiff(
		nrows = snapshot.nrows,
		full = full,
		notes = _notes_shape(snapshot.notes, full),
		automation = _automation_shape(snapshot.automation, full),
	)


def _composite_shape (snapshot: typing.Any, full: bool) -> CompositeDiff:

	return CompositeDiff(
		nrows = snapshot.nrows,
		full = full,
		children = {i: full_diff(child) for i, child in enumerate(snapshot.children)} if full else {},
		row_offsets = snapshot.row_offsets,
	)


def _track_shape (snapshot: typing.Any, full: bool) -> TrackDiff:

	return TrackDiff(
		nrows = snapshot.nrows,
		full = full,
		children = {i: full_diff(child) for i, child in enumerate(snapshot.children)} if full else {},
		row_offsets = snapshot.row_offsets,
		automation = _automation_shape(snapshot.automation, full),
		automation_offset = snapshot.automation_offset,
	)


_SHAPES: typing.Dict[PatternKind, typing.Callable[[typing.Any, bool], Diff]] = {
	PatternKind.NOTES: _notes_shape,
	PatternKind.REGION_AUTOMATION: _automation_shape,
	PatternKind.TRACK_AUTOMATION: _automation_shape,
	PatternKind.REGION: _region_shape,
	PatternKind.TRACK: _track_shape,
	PatternKind.MULTI_TRACK: _composite_shape,
}


# ─── Notes ────────────────────────────────────────────────────────────────────


def notes_rows_diff (column: int, left: typing.Any, right: typing.Any, rows: typing.Set[int]) -> None:

	"""Add to *rows* the rows of *left* that look different in *right*.

	Only rows holding a boundary in *left* are visited, so the diff is made
	symmetric by calling this both ways.
	"""

	for row in left.on_rows[column]:

		displayable = left.is_displayable(row, column)

		if displayable != right.is_displayable(row, column):
			rows.add(row)
			continue

		if not displayable:
			continue

		other = right.on_note(row, column)

		if other is None or not left.on_note(row, column).is_on_equal(other):
			rows.add(row)

	for row in left.off_rows[column]:

		displayable = left.is_displayable(row, column)

		if displayable != right.is_displayable(row, column):
			rows.add(row)
			continue

		if not displayable:
			continue

		other = right.off_note(row, column)

		# An on boundary hides the off boundary of the same cell.
		hidden_changed = bool(left.on_notes(row, column)) != bool(right.on_notes(row, column))

		if other is None or not left.off_note(row, column).is_off_equal(other) or hidden_changed:
			rows.add(row)


def _notes_diff (prev: typing.Any, current: typing.Any) -> NotesDiff:

	diff = _notes_shape(current, False)

	for column in range(current.ntracks):

		rows: typing.Set[int] = set()
		notes_rows_diff(column, current, prev, rows)
		notes_rows_diff(column, prev, current, rows)

		if rows:
			diff.columns[column] = RowsDiff(nrows=current.nrows, rows=rows)

	return diff


# ─── Automation ───────────────────────────────────────────────────────────────


def automation_rows_diff (left: typing.Any, right: typing.Any, rows: typing.Set[int]) -> None:

	"""Add to *rows* the rows of *left* (a ``ParameterRows``) that look different in *right*.

	Only the point rows are visited.  Rows between points show interpolated
	values, which ``_automation_diff`` compares separately.
	"""

	for row in left.mapped_rows():

		points = left.rows[row]
		others = right.rows.get(row, ())
		displayable = len(points) <= 1

		if displayable != (len(others) <= 1):
			rows.add(row)
			continue

		if not displayable:
			continue

		if not others or not points[0].is_equal(others[0]):
			rows.add(row)


def _automation_diff (prev: typing.Any, current: typing.Any) -> AutomationDiff:

	diff = _automation_shape(current, False)
	parameters = list(current.parameters) + [p for p in prev.parameters if p not in current.parameters]

	for parameter in parameters:

		if not (current.has_parameter(parameter) and prev.has_parameter(parameter)):
			diff.by_parameter[parameter] = RowsDiff(nrows=current.nrows, full=True)
			continue

		left = current.by_parameter[parameter]
		right = prev.by_parameter[parameter]

		rows: typing.Set[int] = set()
		automation_rows_diff(left, right, rows)
		automation_rows_diff(right, left, rows)

		# Rows without a point show the interpolated value, which any point
		# (inside the interval or not) can move.
		for row, (a, b) in enumerate(zip(left.interpolated, right.interpolated)):
			if a != b and row not in left.rows and row not in right.rows:
				rows.add(row)

		if rows:
			diff.by_parameter[parameter] = RowsDiff(nrows=current.nrows, rows=rows)

	return diff


# ─── Composites ───────────────────────────────────────────────────────────────


def _region_diff (prev: typing.Any, current: typing.Any) -> RegionDiff:

	return RegionDiff(
		nrows = current.nrows,
		notes = typing.cast(NotesDiff, phenomenal_diff(prev.notes, current.notes)),
		automation = typing.cast(AutomationDiff, phenomenal_diff(prev.automation, current.automation)),
	)


def _children_diff (prev: typing.Any, current: typing.Any) -> typing.Optional[typing.Dict[int, Diff]]:

	"""Per-child diffs, or ``None`` when the number of children changed."""

	if len(prev.children) != len(current.children):
		return None

	children: typing.Dict[int, Diff] = {}

	for index, (before, after) in enumerate(zip(prev.children, current.children)):

		if prev.row_offsets[index] != current.row_offsets[index] or before.nrows != after.nrows:
			children[index] = full_diff(after)
			continue

		child_diff = phenomenal_diff(before, after)

		if not child_diff.empty:
			children[index] = child_diff

	return children


def _composite_diff (prev: typing.Any, current: typing.Any) -> CompositeDiff:

	children = _children_diff(prev, current)

	if children is None:
		return _composite_shape(current, True)

	return CompositeDiff(nrows=current.nrows, children=children, row_offsets=current.row_offsets)


def _track_diff (prev: typing.Any, current: typing.Any) -> TrackDiff:

	children = _children_diff(prev, current)

	if children is None:
		return _track_shape(current, True)

	if prev.automation_offset != current.automation_offset:
		automation = _automation_shape(current.automation, True)
	else:
		automation = typing.cast(AutomationDiff, phenomenal_diff(prev.automation, current.automation))

	return TrackDiff(
		nrows = current.nrows,
		children = children,
		row_offsets = current.row_offsets,
		automation = automation,
		automation_offset = current.automation_offset,
	)


_DIFFERS: typing.Dict[PatternKind, typing.Callable[[typing.Any, typing.Any], Diff]] = {
	PatternKind.NOTES: _notes_diff,
	PatternKind.REGION_AUTOMATION: _automation_diff,
	PatternKind.TRACK_AUTOMATION: _automation_diff,
	PatternKind.REGION: _region_diff,
	PatternKind.TRACK: _track_diff,
	PatternKind.MULTI_TRACK: _composite_diff,
}
