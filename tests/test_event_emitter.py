import pytest
import trackgrid.event_emitter


def test_on_and_emit () -> None:

	"""Registered callbacks are called on emit."""

	emitter = trackgrid.event_emitter.EventEmitter()
	received: list[int] = []

	emitter.on("tick", lambda v: received.append(v))
	emitter.emit("tick", 42)

	assert received == [42]


def test_off_removes_callback () -> None:

	"""off() prevents a previously registered callback from being called."""

	emitter = trackgrid.event_emitter.EventEmitter()
	received: list[int] = []

	def cb (v: int) -> None:
		received.append(v)

	emitter.on("tick", cb)
	emitter.off("tick", cb)
	emitter.emit("tick", 1)

	assert received == []
	assert not emitter.has_listeners("tick")


def test_off_unknown_callback_raises () -> None:

	"""off() raises ValueError for callbacks that were never registered."""

	emitter = trackgrid.event_emitter.EventEmitter()

	with pytest.raises(ValueError, match="tick"):
		emitter.off("tick", lambda v: None)


def test_callback_may_unregister_itself () -> None:

	"""A listener removing itself during emit does not disturb the others."""

	emitter = trackgrid.event_emitter.EventEmitter()
	received: list[str] = []

	def once (v: int) -> None:
		received.append("once")
		emitter.off("tick", once)

	emitter.on("tick", once)
	emitter.on("tick", lambda v: received.append("always"))

	emitter.emit("tick", 1)
	emitter.emit("tick", 2)

	assert received == ["once", "always", "always"]


def test_hold_defers_and_coalesces () -> None:

	"""Events emitted while held are delivered once, after the outermost hold."""

	emitter = trackgrid.event_emitter.EventEmitter()
	received: list[str] = []
	emitter.on("changed", received.append)

	with emitter.hold():
		emitter.emit("changed", "a")

		with emitter.hold():
			emitter.emit("changed", "a")
			emitter.emit("changed", "b")

		assert received == []

	assert received == ["a", "b"]


def test_hold_releases_on_error () -> None:

	"""Held events are still delivered if the held block raises."""

	emitter = trackgrid.event_emitter.EventEmitter()
	received: list[str] = []
	emitter.on("changed", received.append)

	with pytest.raises(RuntimeError):
		with emitter.hold():
			emitter.emit("changed", "a")
			raise RuntimeError("boom")

	assert received == ["a"]
