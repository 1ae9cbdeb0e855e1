"""Call detail records written to a CSV file by a background thread."""

from __future__ import annotations

import os
import threading
from collections import deque
from datetime import datetime
from types import TracebackType

from pgwsim.logger import get_logger


class CdrManager:
    """Queue CDR lines and append them to a file every flush interval."""

    def __init__(self, filename: str | os.PathLike[str], flush_interval: float = 0.1) -> None:
        self.filename = os.fspath(filename)
        try:
            self._file = open(self.filename, "a", encoding="utf-8")
        except OSError as exc:
            raise OSError(f"Failed to open CDR file: {self.filename}") from exc
        self._flush_interval = flush_interval
        self._queue: deque[str] = deque()
        self._queue_lock = threading.Lock()
        self._file_lock = threading.Lock()
        self._stop = threading.Event()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="cdr-writer", daemon=True)
        self._worker.start()
        get_logger().info("CDR manager initialized with file: %s", self.filename)

    def add_record(self, imsi: str, action: str) -> None:
        """Queue a record stamped with the current local time."""
        if self._closed:
            raise ValueError("CDR manager is closed")
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"{stamp},{imsi},{action}\n"
        with self._queue_lock:
            self._queue.append(line)

    def flush(self) -> None:
        """Write all queued records to the file."""
        with self._queue_lock:
            pending, self._queue = self._queue, deque()
        with self._file_lock:
            if self._file.closed:
                return
            self._file.write("".join(pending))
            self._file.flush()

    def close(self) -> None:
        """Stop the writer thread, write what is left and close the file."""
        if self._closed:
            return
        self._closed = True
        self._stop.set()
        self._worker.join()
        self.flush()
        with self._file_lock:
            self._file.close()

    def __enter__(self) -> CdrManager:
        return self

    def __exit__(
        self,
        *args: type[BaseException] | BaseException | TracebackType | None,
    ) -> None:
        self.close()

    def _run(self) -> None:
        while not self._stop.wait(self._flush_interval):
            self.flush()
        get_logger().debug("CDR worker thread stopped")