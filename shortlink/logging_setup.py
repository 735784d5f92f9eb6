"""Log output: a buffering background writer and the default logger setup."""

from __future__ import annotations

import logging
import logging.handlers
import queue
import sys
import threading
import time
from pathlib import Path
from typing import Any

__all__ = ["AsyncWriter", "init_logger", "LOG_FORMAT"]

LOG_FORMAT = "time=%(asctime)s level=%(levelname)s source=%(pathname)s:%(lineno)d msg=%(message)s"


class AsyncWriter:
    """Queues writes and flushes them to ``sink`` from a background thread.

    Data is flushed once 100 bytes are buffered or every third of a second.
    Writes are dropped (returning 0) when the queue is full.
    """

    def __init__(
        self,
        sink: Any,
        capacity: int = 1024,
        flush_interval: float = 0.333,
        flush_size: int = 100,
    ) -> None:
        self._sink = sink
        self._queue: queue.Queue[bytes | threading.Event] = queue.Queue(capacity)
        self._interval = flush_interval
        self._flush_size = flush_size
        self._done = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _emit(self, buffer: bytearray) -> None:
        if buffer:
            try:
                self._sink.write(bytes(buffer))
            except Exception:
                pass
            buffer.clear()

    def _take(self, item: bytes | threading.Event, buffer: bytearray) -> None:
        if isinstance(item, threading.Event):
            self._emit(buffer)
            item.set()
        else:
            buffer += item

    def _run(self) -> None:
        buffer = bytearray()
        last = time.monotonic()
        while not self._done.is_set():
            try:
                self._take(self._queue.get(timeout=self._interval), buffer)
            except queue.Empty:
                pass
            now = time.monotonic()
            if len(buffer) >= self._flush_size or now - last >= self._interval:
                self._emit(buffer)
                last = now
        while True:
            try:
                self._take(self._queue.get_nowait(), buffer)
            except queue.Empty:
                break
        self._emit(buffer)

    def write(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self._done.is_set():
            return 0
        try:
            self._queue.put_nowait(bytes(data))
        except queue.Full:
            return 0
        return len(data)

    def flush(self, timeout: float = 1.0) -> bool:
        """Wait until everything queued so far has reached the sink."""
        if self._done.is_set():
            return False
        marker = threading.Event()
        try:
            self._queue.put(marker, timeout=timeout)
        except queue.Full:
            return False
        return marker.wait(timeout)

    def stop(self) -> None:
        """Flush pending data, stop the thread and close the sink."""
        if self._done.is_set():
            return
        self._done.set()
        self._thread.join()
        try:
            self._sink.close()
        except Exception:
            pass


def init_logger(log_path: str = "./logs/app.log") -> logging.Logger:
    """Send debug-level text logs to a rotating file and to stdout."""
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)
    rolling = logging.handlers.RotatingFileHandler(
        path, maxBytes=64 * 1024 * 1024, backupCount=30, encoding="utf-8"
    )
    console = logging.StreamHandler(sys.stdout)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in (rolling, console):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    return root