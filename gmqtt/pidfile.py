"""Creation and removal of a file holding the running process ID."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


class PIDFileExistsError(FileExistsError):
    """A PID file names a process that is still running."""


@dataclass(frozen=True)
class PIDFile:
    """A file that stores the process ID of a running process."""

    path: PathLike

    def remove(self) -> None:
        """Delete the PID file; raises OSError if it cannot be removed."""
        os.remove(self.path)


def process_exists(pid: int) -> bool:
    """Return whether a process with the given ID is running."""
    if sys.platform == "darwin":
        try:
            os.kill(pid, 0)
        except OSError:
            return False
        return True
    if os.name == "nt":
        # The standard library offers no side-effect-free process query here.
        return pid == os.getpid()
    return os.path.exists(os.path.join("/proc", str(pid)))


def _check_not_running(path: str) -> None:
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            content = fh.read().strip()
    except OSError:
        return
    try:
        pid = int(content)
    except ValueError:
        return
    if process_exists(pid):
        raise PIDFileExistsError(
            f"pid file found, ensure gmqtt is not running or delete {path}"
        )


def create_pidfile(path: PathLike) -> PIDFile:
    """Write the current process ID to ``path`` and return the PID file."""
    path = os.fspath(path)
    _check_not_running(path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, mode=0o755, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(str(os.getpid()))
    return PIDFile(path)