"""Transport between the coordinator and its single worker process."""

from __future__ import annotations

import multiprocessing as mp
import threading
from typing import Any, Callable, Optional

from nicestream.core.errors import OffloadFailure
from nicestream.offload.messages import Shutdown, encode_message
from nicestream.offload.worker import worker_main
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

OnMessage = Callable[[Any], None]
OnClosed = Callable[[], None]


class WorkerChannel:
    """Interface the OffloadCoordinator talks to.

    ``start`` registers callbacks that are invoked from a background thread:
    ``on_message`` for each wire dict the worker sends, ``on_closed`` once when
    the worker side goes away.
    """

    def start(self, on_message: OnMessage, on_closed: Optional[OnClosed] = None) -> None:
        raise NotImplementedError

    def send(self, message: dict[str, Any]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    @property
    def alive(self) -> bool:
        raise NotImplementedError


class ProcessWorkerChannel(WorkerChannel):
    """Runs ``worker_main`` in a daemon child process connected by a Pipe.

    A reader thread receives replies and hands them to ``on_message``.
    """

    def __init__(
        self,
        *,
        mp_context: Optional[Any] = None,
        join_timeout: float = 2.0,
    ) -> None:
        self._ctx = mp_context or mp.get_context()
        self._join_timeout = join_timeout
        self._conn: Any = None
        self._process: Any = None
        self._reader: Optional[threading.Thread] = None
        self._send_lock = threading.Lock()

    def start(self, on_message: OnMessage, on_closed: Optional[OnClosed] = None) -> None:
        if self._process is not None:
            raise RuntimeError("worker channel already started")

        parent_conn, child_conn = self._ctx.Pipe(duplex=True)
        process = self._ctx.Process(
            target=worker_main,
            args=(child_conn,),
            name="nicestream-worker",
            daemon=True,
        )
        try:
            process.start()
        finally:
            # the parent must drop its copy so EOF reaches the reader when the child exits
            child_conn.close()

        self._conn = parent_conn
        self._process = process
        self._reader = threading.Thread(
            target=self._read_loop,
            args=(on_message, on_closed),
            name="nicestream-worker-reader",
            daemon=True,
        )
        self._reader.start()
        logger.info("started worker process pid=%s", process.pid)

    def _read_loop(self, on_message: OnMessage, on_closed: Optional[OnClosed]) -> None:
        while True:
            try:
                msg = self._conn.recv()
            except (EOFError, OSError):
                break
            try:
                on_message(msg)
            except Exception:
                logger.exception("worker message handler failed")
        logger.debug("worker reader exiting")
        if on_closed is not None:
            try:
                on_closed()
            except Exception:
                logger.exception("worker closed handler failed")

    @property
    def alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def send(self, message: dict[str, Any]) -> None:
        if not self.alive:
            raise OffloadFailure("worker process is not running")
        try:
            with self._send_lock:
                self._conn.send(message)
        except (OSError, ValueError) as e:
            raise OffloadFailure(f"failed to send to worker: {e}") from e

    def close(self) -> None:
        """Stop the worker: ask it to shut down, then terminate if it lingers."""
        process = self._process
        if process is None:
            return

        if process.is_alive():
            try:
                with self._send_lock:
                    self._conn.send(encode_message(Shutdown()))
            except (OSError, ValueError) as e:
                logger.debug("could not send shutdown to worker: %s", e)
            process.join(self._join_timeout)
            if process.is_alive():
                logger.warning("worker pid=%s did not exit, terminating", process.pid)
                process.terminate()
                process.join(self._join_timeout)

        if self._reader is not None:
            self._reader.join(self._join_timeout)
        self._conn.close()
        logger.info("stopped worker process pid=%s", process.pid)
