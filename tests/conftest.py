"""
Shared fixtures for mediamotion tests.
"""
import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mediamotion.composition.media_probe import MediaDuration, MediaProbe
from mediamotion.errors import AssemblyAborted, ProbeError


class ScriptedProbe(MediaProbe):
    """In-memory probe returning scripted durations; unknown sources fail."""

    def __init__(self, durations=None, failures=()):
        self.durations = dict(durations or {})
        self.failures = set(failures)
        self.calls = []

    async def probe(self, src, signal=None):
        self.calls.append(src)
        if signal is not None and signal.is_set():
            raise AssemblyAborted(f"Aborted while probing {src}")
        await asyncio.sleep(0)
        if src in self.failures or src not in self.durations:
            raise ProbeError(src, "scripted failure")
        return MediaDuration(duration_seconds=self.durations[src])


@pytest.fixture
def scripted_probe():
    """Factory for scripted probes: scripted_probe({"a.mp4": 10}, failures=["b.mp4"])."""
    return ScriptedProbe
