from __future__ import annotations
import queue
import threading
from typing import Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


class Closed(Exception):
    """Raised by Pipe.get() once the producer has closed the pipe."""


class Pipe(Generic[T]):
    """
    One-way FIFO between two stages. A single producer puts items and
    finally calls close(); a single consumer iterates until the close.
    Unbounded unless maxsize is given, in which case put() blocks when full.
    """

    def __init__(self, maxsize: int = 0):
        self._q: queue.Queue = queue.Queue(maxsize)
        self._closed = False

    def put(self, item: T) -> None:
        self._q.put(item)

    def close(self) -> None:
        self._q.put(_CLOSED)

    def get(self, timeout: Optional[float] = None) -> T:
        """Next item; queue.Empty on timeout, Closed at end of stream."""
        if self._closed:
            raise Closed()
        item = self._q.get(timeout=timeout)
        if item is _CLOSED:
            self._closed = True
            raise Closed()
        return item

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except Closed:
                return


def spawn(name: str, target: Callable[[], None]) -> threading.Thread:
    t = threading.Thread(target=target, name=name, daemon=True)
    t.start()
    return t


def stage(name: str, out: Pipe, body: Callable[[Pipe], None]) -> Pipe:
    """Run body(out) on its own thread; out is closed when body returns or fails."""
    def run():
        try:
            body(out)
        finally:
            out.close()
    spawn(name, run)
    return out

