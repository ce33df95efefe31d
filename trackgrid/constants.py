"""Timing and range constants for trackgrid.

All musical time is measured in **beats** (1.0 = one quarter note). Each beat
subdivides into ``TICKS_PER_BEAT`` ticks, the unit used for delays:

- ``TICKS_PER_BEAT = 1920`` - divisible by 1-6, 8, 10, 12, 15, 16 and more,
  so the usual resolutions give a whole number of ticks per row.
- ``DEFAULT_ROWS_PER_BEAT = 4`` - one row per sixteenth note.
- ``ONE_ROW_PER_BAR = 0`` - the reserved "one row per bar" resolution.
"""

TICKS_PER_BEAT = 1920

DEFAULT_ROWS_PER_BEAT = 4
ONE_ROW_PER_BAR = 0
DEFAULT_BEATS_PER_BAR = 4

MAX_ROWS_PER_BEAT = 128

# Display capacity

DEFAULT_MAX_NOTE_COLUMNS = 16
DEFAULT_MAX_AUTOMATION_COLUMNS = 32

# MIDI ranges

MIDI_MIN = 0
MIDI_MAX = 127
MIDI_CHANNELS = 16

PITCHBEND_MIN = -8192
PITCHBEND_MAX = 8191

DEFAULT_VELOCITY = 100
