import dataclasses
import logging
import os
import typing

import yaml

import trackgrid.constants


logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclasses.dataclass
class EditorConfig:

	"""
	Settings of an editor session.

	Parameters:
		rows_per_beat: Grid resolution, 0 for one row per bar.
		beats_per_bar: Bar length, used in the one-row-per-bar mode.
		max_note_columns: Most note columns per region.
		max_automation_columns: Most visible automation parameters per pattern.
		log_level: Level passed to ``logging.basicConfig`` by the command line.
	"""

	rows_per_beat: int = trackgrid.constants.DEFAULT_ROWS_PER_BEAT
	beats_per_bar: int = trackgrid.constants.DEFAULT_BEATS_PER_BAR
	max_note_columns: int = trackgrid.constants.DEFAULT_MAX_NOTE_COLUMNS
	max_automation_columns: int = trackgrid.constants.DEFAULT_MAX_AUTOMATION_COLUMNS
	log_level: str = "INFO"

	def __post_init__ (self) -> None:

		if not 0 <= self.rows_per_beat <= trackgrid.constants.MAX_ROWS_PER_BEAT:
			raise ValueError(f"rows_per_beat must be between 0 and {trackgrid.constants.MAX_ROWS_PER_BEAT}")

		if self.beats_per_bar <= 0:
			raise ValueError("beats_per_bar must be positive")

		if self.max_note_columns <= 0:
			raise ValueError("max_note_columns must be positive")

		if self.max_automation_columns <= 0:
			raise ValueError("max_automation_columns must be positive")

		self.log_level = self.log_level.upper()

		if self.log_level not in LOG_LEVELS:
			raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

	@classmethod
	def from_dict (cls, data: typing.Optional[typing.Dict[str, typing.Any]]) -> "EditorConfig":

		"""
		Build a config from the parsed YAML layout:

		```yaml
		grid:
		  rows_per_beat: 4
		  beats_per_bar: 4
		columns:
		  max_note_columns: 16
		  max_automation_columns: 32
		logging:
		  level: INFO
		```
		"""

		data = data or {}
		grid = data.get("grid", {}) or {}
		columns = data.get("columns", {}) or {}
		log = data.get("logging", {}) or {}

		return cls(
			rows_per_beat = int(grid.get("rows_per_beat", trackgrid.constants.DEFAULT_ROWS_PER_BEAT)),
			beats_per_bar = int(grid.get("beats_per_bar", trackgrid.constants.DEFAULT_BEATS_PER_BAR)),
			max_note_columns = int(columns.get("max_note_columns", trackgrid.constants.DEFAULT_MAX_NOTE_COLUMNS)),
			max_automation_columns = int(columns.get("max_automation_columns", trackgrid.constants.DEFAULT_MAX_AUTOMATION_COLUMNS)),
			log_level = str(log.get("level", "INFO")),
		)


def load_config (config_path: str = 'trackgrid.yaml') -> EditorConfig:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return EditorConfig()

	with open(config_path, 'r') as f:
		return EditorConfig.from_dict(yaml.safe_load(f))
