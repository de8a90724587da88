"""Text generation contract and the callback-to-future bridge."""

import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from typing import Callable, Optional, Protocol

from ..errors import ForwardingError, GenerationCancelled, TransportError

logger = logging.getLogger(__name__)

# (response, error) -> None; exactly one of the two is set
GenerationCallback = Callable[[Optional[str], Optional[BaseException]], None]


class TextGenerator(Protocol):
    """Anything that turns a prompt into text.

    ``generate`` raises ``TransportError`` (or ``ModelNotLoadedError``) instead
    of returning an empty string.
    """

    def generate(self, prompt: str) -> str:
        ...

    def stop(self) -> None:
        ...


class CallbackEngine(Protocol):
    """A generation runtime that reports results through a callback."""

    def generate_response(self, prompt: str, callback: GenerationCallback) -> None:
        ...

    def stop_generation(self) -> None:
        ...


class CallbackBridge:
    """Adapts a ``CallbackEngine`` into a blocking ``TextGenerator``.

    Each call parks on a ``Future``. The first callback resolves it and later
    callbacks are ignored. ``stop()`` cancels the pending call from any thread.
    """

    def __init__(self, engine: CallbackEngine, timeout: float = 60.0):
        self.engine = engine
        self.timeout = timeout
        self._lock = threading.Lock()
        self._pending: Optional[Future] = None

    def generate(self, prompt: str) -> str:
        """Run one generation and wait for its callback."""
        future: Future = Future()
        with self._lock:
            self._pending = future

        def on_result(response: Optional[str], error: Optional[BaseException]) -> None:
            if future.done():
                logger.debug("Ignoring late generation callback")
                return
            try:
                if error is not None:
                    future.set_exception(error)
                else:
                    future.set_result(response)
            except Exception:
                # Lost the race against cancel() or another callback
                logger.debug("Generation future already resolved")

        try:
            self.engine.generate_response(prompt, on_result)
            response = future.result(timeout=self.timeout)
        except FutureTimeout:
            self.engine.stop_generation()
            raise TransportError(f"Generation timed out after {self.timeout}s")
        except ForwardingError:
            raise
        except Exception as e:
            raise TransportError(f"Generation failed: {e}") from e
        finally:
            with self._lock:
                if self._pending is future:
                    self._pending = None

        if not response or not response.strip():
            raise TransportError("Empty generator output")
        return response

    def stop(self) -> None:
        """Cancel the in-flight generation, if any."""
        with self._lock:
            future = self._pending
        self.engine.stop_generation()
        if future is not None and not future.done():
            try:
                future.set_exception(GenerationCancelled("Generation cancelled"))
            except Exception:
                logger.debug("Generation finished before cancellation")
