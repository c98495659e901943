import asyncio
import csv
import io
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from quiz_server.models.state_models import UserRecord


class WriteFailure(Exception):
    """A redemption record could not be appended"""


def format_row(record: UserRecord) -> bytes:
    buffer = io.StringIO()
    csv.writer(buffer).writerow(record.to_row())
    return buffer.getvalue().encode("utf-8")


class UserWriter:
    """Append-only CSV sink for redemption records.

    Writes are serialized by a lock and run on a dedicated worker thread,
    so a slow disk never blocks the event loop. The file is unbuffered:
    a record is either fully on disk when write returns, or not at all.
    """

    def __init__(self, path: str | Path, max_workers: int = 1):
        self.path = Path(path)
        try:
            self._file = open(self.path, "ab", buffering=0)
        except OSError as e:
            raise WriteFailure(f"Cannot open {self.path}: {e}") from e
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="user-writer"
        )

    def write(self, record: UserRecord) -> None:
        """Append one record. On failure the file is cut back to its previous end.

        Args:
            record (UserRecord): Record to append

        Raises:
            WriteFailure: The record could not be written
        """
        line = memoryview(format_row(record))
        with self._lock:
            try:
                offset = self._file.seek(0, os.SEEK_END)
            except (OSError, ValueError) as e:
                logging.error(f"Failed to write user record {record.id}: {e}")
                raise WriteFailure(f"Failed to write user record: {e}") from e

            try:
                while line:
                    written = self._file.write(line)
                    line = line[written:]
            except (OSError, ValueError) as e:
                logging.error(f"Failed to write user record {record.id}: {e}")
                self._rollback(offset)
                raise WriteFailure(f"Failed to write user record: {e}") from e

    def _rollback(self, offset: int) -> None:
        try:
            self._file.truncate(offset)
        except (OSError, ValueError) as e:
            logging.error(f"Failed to truncate {self.path} back to {offset} bytes: {e}")

    async def write_async(self, record: UserRecord) -> None:
        """Run write on the writer's own executor and wait for it"""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self.write, record)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        with self._lock:
            self._file.close()
        logging.info(f"Closed user writer {self.path}")
