from __future__ import annotations
import errno
import logging
import threading

log = logging.getLogger(__name__)

PERMISSION_HINT = "Permission denied, try running as root."


def is_permission_error(err: BaseException) -> bool:
    if isinstance(err, PermissionError):
        return True
    return isinstance(err, OSError) and err.errno in (errno.EACCES, errno.EPERM)


class ErrorReporter:
    """
    Per-item failures that must not stop the scan.

    Permission problems are reported once per reporter, everything else on
    every occurrence. Safe to share between stage threads.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.log = logger or log
        self._lock = threading.Lock()
        self._warned = False
        self.errors = 0

    @property
    def warned(self) -> bool:
        return self._warned

    def handle(self, err: BaseException | None) -> None:
        if err is None:
            return
        if is_permission_error(err):
            with self._lock:
                if self._warned:
                    return
                self._warned = True
            self.log.warning(PERMISSION_HINT)
            return
        with self._lock:
            self.errors += 1
        self.log.error("Error %s", err)
