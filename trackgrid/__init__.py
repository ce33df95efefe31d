"""
trackgrid - time-grid mapping and diff engine for tracker-style MIDI editors.

A tracker shows music as a table: time runs down the rows, simultaneous
notes sit side by side in columns, and automation gets one column per
parameter.  trackgrid computes that table from continuous-time musical
events and keeps it up to date as the events change:

- **Row quantization.** Beats map to rows at a chosen resolution; the exact
  time of an event is kept as a signed per-row *delay* in ticks, so nothing
  is lost to quantization.
- **Note columns.** Overlapping notes are spread over the fewest columns,
  and keep their column across edits.
- **Undefined rows.** A cell that would need to show two events at the
  chosen resolution is flagged instead of silently hiding one.
- **Automation.** Points of each visible parameter map to rows; empty rows
  show the interpolated value.
- **Regions and tracks.** Regions starting at different times, tracks made
  of several regions and several tracks side by side share one row space.
- **Phenomenal diffs.** Each update yields only the cells whose appearance
  changed, so a renderer redraws the minimum.

Minimal example:

```python
import trackgrid

session = trackgrid.EditorSession()
session.add_track("lead")
session.add_region("lead", "intro", source="lead-src", position=0, length=8)

session.events.on("diff", lambda diff: print(sorted(diff.cells())))
session.store.add_note("lead-src", pitch=60, velocity=100, time=0.5, length=1)
```

Package-level exports: ``EditorSession``, ``EditorConfig``, ``EventStore``,
``Parameter``, ``TimeGrid``.
"""

import trackgrid.config
import trackgrid.event_store
import trackgrid.events
import trackgrid.session
import trackgrid.time_grid

EditorConfig = trackgrid.config.EditorConfig
EditorSession = trackgrid.session.EditorSession
EventStore = trackgrid.event_store.EventStore
Parameter = trackgrid.events.Parameter
TimeGrid = trackgrid.time_grid.TimeGrid
