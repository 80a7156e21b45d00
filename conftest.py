"""
Shared fixtures: producer-owned shared memory segments
"""

import sys
import uuid
from multiprocessing import shared_memory, resource_tracker

import pytest


def _create_segment(name, size):
    if sys.version_info >= (3, 13):
        return shared_memory.SharedMemory(name=name, create=True, size=size, track=False)
    return shared_memory.SharedMemory(name=name, create=True, size=size)


def _destroy_segment(shm):
    shm.close()
    if sys.version_info < (3, 13):
        # Attaching in this process dropped the tracker entry; unlink() removes it again
        resource_tracker.register(shm._name, "shared_memory")
    shm.unlink()


@pytest.fixture
def make_segment():
    """Factory creating segments as a producer would; all are unlinked afterwards"""
    created = []

    def factory(size):
        name = f"hsvtest_{uuid.uuid4().hex[:12]}"
        shm = _create_segment(name, size)
        created.append(shm)
        return name, shm

    yield factory
    for shm in created:
        _destroy_segment(shm)
