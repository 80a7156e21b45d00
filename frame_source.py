"""
Shared Memory Frame Source
Attaches to an image buffer published by a separate producer process
"""

import os
import sys
import fcntl
from multiprocessing import shared_memory, resource_tracker
from typing import Optional

import numpy as np

from hsv_inspector import Config


class FrameSourceError(RuntimeError):
    """Raised when the shared frame buffer cannot be attached or is unusable"""


class SharedFrameSource:
    """
    Read-only attachment to an existing shared memory segment.

    The segment is owned by the producer: it is never created or unlinked
    here. Writers and readers serialize on an exclusive flock() of
    <lock_directory>/<name>.lock.
    """

    def __init__(self, name: str, lock_directory: Optional[str] = None):
        self._name = name
        self._shm = None
        self._lock_fd = None
        self._lock_path = os.path.join(lock_directory or Config.LOCK_DIRECTORY,
                                       f"{name.lstrip('/')}.lock")

        try:
            self._shm = _open_segment(name)
        except (OSError, ValueError):
            self._shm = None

    @property
    def name(self) -> str:
        return self._name

    def valid(self) -> bool:
        return self._shm is not None

    def size(self) -> int:
        return self._shm.size if self._shm is not None else 0

    def data(self) -> memoryview:
        return self._shm.buf

    def lock(self) -> None:
        if self._lock_fd is None:
            self._lock_fd = os.open(self._lock_path, os.O_RDWR | os.O_CREAT, 0o666)
        fcntl.flock(self._lock_fd, fcntl.LOCK_EX)

    def unlock(self) -> None:
        if self._lock_fd is not None:
            fcntl.flock(self._lock_fd, fcntl.LOCK_UN)

    def close(self) -> None:
        """Detach from the segment and drop the lock file handle"""
        if self._lock_fd is not None:
            os.close(self._lock_fd)
            self._lock_fd = None
        if self._shm is not None:
            self._shm.close()
            self._shm = None


def _open_segment(name: str) -> shared_memory.SharedMemory:
    # Attaching registers the segment with the resource tracker on older
    # interpreters, which would unlink the producer's buffer when we exit.
    if sys.version_info >= (3, 13):
        return shared_memory.SharedMemory(name=name, track=False)
    shm = shared_memory.SharedMemory(name=name)
    resource_tracker.unregister(shm._name, "shared_memory")
    return shm


def attach(name: str, width: int, height: int,
           lock_directory: Optional[str] = None) -> SharedFrameSource:
    """
    Attach to the named frame buffer and check it can hold one frame.

    Raises:
        FrameSourceError: segment missing or smaller than width*height*4 bytes
    """
    source = SharedFrameSource(name, lock_directory)
    if not source.valid():
        raise FrameSourceError(f"Failed to attach to shared memory '{name}'.")

    required = width * height * Config.CHANNELS
    if source.size() < required:
        actual = source.size()
        source.close()
        raise FrameSourceError(
            f"Shared memory '{name}' holds {actual} bytes, "
            f"a {width}x{height} frame needs {required} bytes."
        )
    return source


def take_snapshot(source, width: int, height: int) -> np.ndarray:
    """
    Copy the current frame out of the shared buffer.

    Only the copy runs while the lock is held; the producer is never
    blocked by downstream processing. Does not wait for a new frame, so
    a paused producer can still be inspected.

    Returns:
        Owned (height, width, 4) uint8 array
    """
    count = width * height * Config.CHANNELS
    source.lock()
    try:
        snapshot = np.frombuffer(source.data(), dtype=np.uint8, count=count).copy()
    finally:
        source.unlock()
    return snapshot.reshape(height, width, Config.CHANNELS)
