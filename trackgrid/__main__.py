import argparse
import dataclasses
import logging
import typing

import trackgrid.composite
import trackgrid.config
import trackgrid.dump
import trackgrid.midi_import
import trackgrid.session


logger = logging.getLogger(__name__)


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="trackgrid", description="Show a MIDI file as a tracker pattern")
	parser.add_argument("midi_file", help="Standard MIDI File to show")
	parser.add_argument("--config", default="trackgrid.yaml", help="YAML configuration file (default: trackgrid.yaml)")
	parser.add_argument("--rows-per-beat", type=int, default=None, help="Grid resolution, 0 for one row per bar (default: from config)")
	return parser


def main (argv: typing.Optional[typing.Sequence[str]] = None) -> None:

	"""
	Load a MIDI file into an editor session and print every track.
	"""

	args = build_parser().parse_args(argv)
	config = trackgrid.config.load_config(args.config)

	if args.rows_per_beat is not None:
		config = dataclasses.replace(config, rows_per_beat=args.rows_per_beat)

	logging.basicConfig(level=getattr(logging, config.log_level))

	session = trackgrid.session.EditorSession(config)
	track_ids = trackgrid.midi_import.load_midi_file(args.midi_file, session)

	if not track_ids:
		logger.warning(f"{args.midi_file} holds no notes or controller data")
		return

	session.update()

	snapshot = typing.cast(trackgrid.composite.MultiTrackSnapshot, session.snapshot())
	print(trackgrid.dump.render_multi_track(snapshot, names=[str(t) for t in track_ids]))

	session.close()


if __name__ == "__main__":
	main()
