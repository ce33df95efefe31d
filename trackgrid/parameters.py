"""Parameter value model and the per-session parameter registry.

Every automatable parameter has a ``ParameterDescriptor`` giving its bounds
and the interpolation shape used for rows that hold no point.  The
``ParameterRegistry`` owns those descriptors together with the visibility of
each parameter per owner (a region or a track), for the lifetime of one
editor session.
"""

import dataclasses
import logging
import typing

import trackgrid.constants
import trackgrid.events
import trackgrid.interpolation


logger = logging.getLogger(__name__)

OwnerId = typing.Hashable


@dataclasses.dataclass(frozen=True)
class ParameterDescriptor:

	"""
	Bounds and interpolation of one parameter.

	Parameters:
		name: Label shown in column headers.
		lower: Smallest allowed value.
		upper: Largest allowed value.
		interpolation: Shape name or callable, see ``trackgrid.interpolation``.
	"""

	name: str
	lower: float
	upper: float
	interpolation: typing.Union[str, trackgrid.interpolation.InterpolationFn] = "linear"

	def __post_init__ (self) -> None:
		if self.lower > self.upper:
			raise ValueError(f"Lower bound {self.lower} exceeds upper bound {self.upper} for {self.name!r}")
		trackgrid.interpolation.get_interpolation(self.interpolation)

	def clamp (self, value: float) -> float:

		"""Clamp a value into ``[lower, upper]``."""

		return min(max(value, self.lower), self.upper)

	def contains (self, value: float) -> bool:
		return self.lower <= value <= self.upper


def default_descriptor (parameter: trackgrid.events.Parameter) -> ParameterDescriptor:

	"""
	Return the built-in descriptor for a parameter kind.

	Unknown kinds fall back to a ``0.0``-``1.0`` linear range.
	"""

	name = str(parameter)
	kind = parameter.kind

	if kind == "cc" or kind == "channel_pressure":
		return ParameterDescriptor(name, trackgrid.constants.MIDI_MIN, trackgrid.constants.MIDI_MAX, "linear")
	if kind == "program_change":
		return ParameterDescriptor(name, trackgrid.constants.MIDI_MIN, trackgrid.constants.MIDI_MAX, "discrete")
	if kind == "pitchbend":
		return ParameterDescriptor(name, trackgrid.constants.PITCHBEND_MIN, trackgrid.constants.PITCHBEND_MAX, "linear")
	if kind == "gain" or kind == "trim":
		return ParameterDescriptor(name, 0.0, 2.0, "exponential")
	if kind == "mute":
		return ParameterDescriptor(name, 0.0, 1.0, "discrete")

	# pan_azimuth, pan_width, plugin and anything else
	return ParameterDescriptor(name, 0.0, 1.0, "linear")


class ParameterRegistry:

	"""
	Descriptors and visibility of parameters for one editor session.

	Visibility is keyed by owner (a region id for region automation, a track
	id for track automation).  Patterns only map visible parameters.

	Example:
		```python
		registry = ParameterRegistry()
		cutoff = Parameter("cc", channel=0, control=74)

		registry.set_visible("region-1", cutoff, True)
		registry.visible_parameters("region-1")  # [cutoff]
		registry.describe(cutoff).upper          # 127
		```
	"""

	def __init__ (self) -> None:

		self._descriptors: typing.Dict[trackgrid.events.Parameter, ParameterDescriptor] = {}
		self._visible: typing.Dict[OwnerId, typing.Dict[trackgrid.events.Parameter, bool]] = {}

	def register (self, parameter: trackgrid.events.Parameter, descriptor: ParameterDescriptor) -> None:

		"""Override the descriptor of a parameter (plugin parameters, custom ranges)."""

		self._descriptors[parameter] = descriptor

	def describe (self, parameter: trackgrid.events.Parameter) -> ParameterDescriptor:

		"""Return the registered descriptor, creating the default one on first use."""

		if parameter not in self._descriptors:
			self._descriptors[parameter] = default_descriptor(parameter)

		return self._descriptors[parameter]

	def set_visible (self, owner: OwnerId, parameter: trackgrid.events.Parameter, visible: bool = True) -> None:

		"""Show or hide a parameter column of an owner."""

		self._visible.setdefault(owner, {})[parameter] = visible
		logger.debug(f"{'Showing' if visible else 'Hiding'} {parameter} for {owner!r}")

	def is_visible (self, owner: OwnerId, parameter: trackgrid.events.Parameter) -> bool:
		return self._visible.get(owner, {}).get(parameter, False)

	def visible_parameters (self, owner: OwnerId) -> typing.List[trackgrid.events.Parameter]:

		"""Visible parameters of an owner, in the order they were first shown."""

		return [p for p, visible in self._visible.get(owner, {}).items() if visible]

	def forget (self, owner: OwnerId) -> None:

		"""Drop the visibility state of an owner (its source was removed)."""

		self._visible.pop(owner, None)

	def clear (self) -> None:

		"""Forget everything; called when the editor session ends."""

		self._descriptors.clear()
		self._visible.clear()
