"""Immutable pattern state.

Every ``update()`` materializes the state of a pattern into a snapshot.  The
pattern's queries read from its latest snapshot, and the previous snapshot
is the left operand of a phenomenal diff.  Snapshots never reference the
pattern or the event store, so an old snapshot stays valid after the store
has moved on.
"""

import dataclasses
import enum

import trackgrid.beats


class PatternKind (enum.Enum):

	"""Closed set of pattern variants; diffs dispatch on it."""

	NOTES = "notes"
	REGION_AUTOMATION = "region_automation"
	TRACK_AUTOMATION = "track_automation"
	REGION = "region"
	TRACK = "track"
	MULTI_TRACK = "multi_track"


@dataclasses.dataclass(frozen=True)
class Snapshot:

	"""
	Grid state shared by every pattern kind.

	``beats_per_row`` is kept so that a snapshot can convert its own rows to
	beats without the pattern that produced it.
	"""

	kind: PatternKind
	enabled: bool
	nrows: int
	position_row_beats: trackgrid.beats.Beats
	end_row_beats: trackgrid.beats.Beats
	beats_per_row: trackgrid.beats.Beats

	def is_defined (self, row: int) -> bool:
		return 0 <= row < self.nrows

	def beats_at_row (self, row: int, delay: int = 0) -> trackgrid.beats.Beats:
		return self.position_row_beats + row * self.beats_per_row + trackgrid.beats.from_ticks(delay)

	def grid_fields (self) -> dict:

		"""The fields compared when deciding whether a change is structural."""

		return {
			"enabled": self.enabled,
			"nrows": self.nrows,
			"position_row_beats": self.position_row_beats,
			"end_row_beats": self.end_row_beats,
		}
