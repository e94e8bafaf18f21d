"""Producer/consumer hand-off between the provider line feed and the client."""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Union

from .errors import TranslationError
from .streaming import StreamTranslator

logger = logging.getLogger(__name__)


@dataclass
class StreamEnd:
    """Graceful end of stream."""


@dataclass
class StreamFailure:
    """Stream terminated by an error."""
    error: Exception


class StreamPipeline:
    """
    Reads provider lines on a worker thread and hands chunks to the consumer.

    The worker feeds each line through the translator and puts the resulting
    chunks on a bounded queue, followed by exactly one StreamEnd or
    StreamFailure. Iterating the pipeline yields chunks in read order and
    re-raises the failure, if any.

    Call close() when the consumer goes away; the worker stops reading and
    `on_close` runs once.
    """

    def __init__(
        self,
        translator: StreamTranslator,
        lines: Iterable[Union[bytes, str]],
        on_close: Optional[Callable[[], Any]] = None,
        max_queue: int = 64
    ):
        self.translator = translator
        self._lines = lines
        self._on_close = on_close
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue)
        self._cancelled = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False
        self._worker: Optional[threading.Thread] = None

    def start(self) -> 'StreamPipeline':
        if self._worker is None:
            self._worker = threading.Thread(target=self._produce, name='stream-producer', daemon=True)
            self._worker.start()
        return self

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        self.start()
        try:
            while True:
                item = self._queue.get()
                if isinstance(item, StreamEnd):
                    return
                if isinstance(item, StreamFailure):
                    raise item.error
                yield item
        finally:
            self.close()

    def _produce(self):
        try:
            for chunk in self.translator.iter_chunks(self._iter_lines()):
                if not self._put(chunk):
                    return
        except TranslationError as e:
            self._put(StreamFailure(e))
            return
        except Exception as e:
            if self._cancelled.is_set():
                logger.debug(f"Producer stopped after cancel: {e}")
                return
            logger.exception(f"Stream producer failed: {e}")
            self._put(StreamFailure(e))
            return

        self._put(StreamEnd())

    def _iter_lines(self) -> Iterator[Union[bytes, str]]:
        for line in self._lines:
            if self._cancelled.is_set():
                logger.info("Stream cancelled, stop reading provider response")
                return
            yield line

    def _put(self, item) -> bool:
        """Block on the bounded queue, giving up once cancelled."""
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=0.1)
                return True
            except queue.Full:
                continue
        return False

    def close(self):
        """Stop the worker and release the provider response."""
        self._cancelled.set()
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        if self._on_close is not None:
            try:
                self._on_close()
            except Exception as e:
                logger.warning(f"Failed to release provider response: {e}")
