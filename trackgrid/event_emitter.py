import contextlib
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	A synchronous event emitter with notification holding.

	While ``hold()`` is active, emitted events are not delivered; identical
	events are coalesced and delivered once when the outermost hold ends.
	The editor session uses this to keep ``update()`` from being re-entered
	by notifications raised during an update.
	"""

	def __init__ (self) -> None:

		"""
		Initialize an empty event registry.
		"""

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}
		self._hold_depth = 0
		self._pending: typing.List[typing.Tuple[str, typing.Tuple[typing.Any, ...]]] = []


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.
		"""

		if event_name not in self._listeners:
			self._listeners[event_name] = []

		self._listeners[event_name].append(callback)

	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if event_name not in self._listeners or callback not in self._listeners[event_name]:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)

	def has_listeners (self, event_name: str) -> bool:
		return bool(self._listeners.get(event_name))


	def emit (self, event_name: str, *args: typing.Any) -> None:

		"""
		Call every listener of an event now, or queue it while held.
		"""

		if self._hold_depth > 0:
			if (event_name, args) not in self._pending:
				self._pending.append((event_name, args))
			return

		# Copy so listeners may unregister themselves while being called.
		for callback in list(self._listeners.get(event_name, [])):
			callback(*args)

	@contextlib.contextmanager
	def hold (self) -> typing.Iterator[None]:

		"""
		Defer delivery of events until the outermost ``hold()`` exits.
		"""

		self._hold_depth += 1

		try:
			yield

		finally:
			self._hold_depth -= 1

			if self._hold_depth == 0:
				pending, self._pending = self._pending, []

				for event_name, args in pending:
					self.emit(event_name, *args)
