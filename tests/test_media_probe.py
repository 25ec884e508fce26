"""
Tests for the ffprobe and media-info probe adapters.
"""
import asyncio
import json

import httpx
import pytest

from mediamotion.composition import media_probe
from mediamotion.composition.media_probe import (
    FFprobeMediaProbe,
    HttpMediaInfoProbe,
    create_media_probe,
)
from mediamotion.errors import AssemblyAborted, ProbeError


class FakeProcess:
    """Stands in for an asyncio subprocess running ffprobe."""

    def __init__(self, stdout=b"", stderr=b"", delay=0.0):
        self.stdout = stdout
        self.stderr = stderr
        self.delay = delay
        self.returncode = None
        self.killed = False

    async def communicate(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.returncode = 0
        return self.stdout, self.stderr

    def kill(self):
        self.killed = True
        self.returncode = -9


@pytest.fixture
def fake_ffprobe(monkeypatch):
    """Patch subprocess creation; returns (install, calls)."""
    calls = []

    def install(process):
        async def fake_exec(*cmd, **kwargs):
            calls.append(cmd)
            return process

        monkeypatch.setattr(media_probe.asyncio, "create_subprocess_exec", fake_exec)
        return process

    return install, calls


class TestFFprobeMediaProbe:

    def test_parses_duration(self, fake_ffprobe):
        install, calls = fake_ffprobe
        install(FakeProcess(stdout=b"12.480000\n"))

        result = asyncio.run(FFprobeMediaProbe(ffprobe_path="ffprobe").probe("https://cdn.example.com/a.mp4"))

        assert result.duration_seconds == pytest.approx(12.48)
        assert calls[0][0] == "ffprobe"
        assert calls[0][-1] == "https://cdn.example.com/a.mp4"

    @pytest.mark.parametrize("stdout", [b"", b"N/A\n", b"0.0\n"])
    def test_bad_output_raises(self, fake_ffprobe, stdout):
        install, _ = fake_ffprobe
        install(FakeProcess(stdout=stdout, stderr=b"Invalid data found"))

        with pytest.raises(ProbeError):
            asyncio.run(FFprobeMediaProbe().probe("broken.mp4"))

    def test_timeout_kills_process(self, fake_ffprobe):
        install, _ = fake_ffprobe
        process = install(FakeProcess(stdout=b"3.0", delay=1.0))

        with pytest.raises(ProbeError):
            asyncio.run(FFprobeMediaProbe(timeout=0.01).probe("slow.mp4"))
        assert process.killed

    def test_abort_signal(self, fake_ffprobe):
        install, _ = fake_ffprobe
        process = install(FakeProcess(stdout=b"3.0", delay=1.0))

        async def scenario():
            signal = asyncio.Event()
            asyncio.get_running_loop().call_later(0.01, signal.set)
            await FFprobeMediaProbe(timeout=5).probe("slow.mp4", signal)

        with pytest.raises(AssemblyAborted):
            asyncio.run(scenario())
        assert process.killed

    def test_missing_binary(self, monkeypatch):
        async def fake_exec(*cmd, **kwargs):
            raise FileNotFoundError("ffprobe")

        monkeypatch.setattr(media_probe.asyncio, "create_subprocess_exec", fake_exec)
        with pytest.raises(ProbeError):
            asyncio.run(FFprobeMediaProbe().probe("a.mp4"))


class TestHttpMediaInfoProbe:

    def test_reads_duration(self):
        requests = []

        def handler(request):
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"duration": "7.5", "width": 1920})

        probe = HttpMediaInfoProbe(base_url="http://media.test/api/media-info", transport=httpx.MockTransport(handler))
        result = asyncio.run(probe.probe("https://cdn.example.com/a.mp4"))

        assert result.duration_seconds == 7.5
        assert requests == [{"src": "https://cdn.example.com/a.mp4"}]

    def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "Failed"}))
        probe = HttpMediaInfoProbe(base_url="http://media.test/api/media-info", transport=transport)

        with pytest.raises(ProbeError):
            asyncio.run(probe.probe("a.mp4"))

    def test_missing_duration(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"width": 10}))
        probe = HttpMediaInfoProbe(base_url="http://media.test/api/media-info", transport=transport)

        with pytest.raises(ProbeError):
            asyncio.run(probe.probe("a.mp4"))

    def test_abort_before_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"duration": 1})

        probe = HttpMediaInfoProbe(base_url="http://media.test/api/media-info", transport=httpx.MockTransport(handler))

        async def scenario():
            signal = asyncio.Event()
            signal.set()
            await probe.probe("a.mp4", signal)

        with pytest.raises(AssemblyAborted):
            asyncio.run(scenario())
        assert calls == []


class TestFactory:

    def test_backends(self):
        assert isinstance(create_media_probe("ffprobe"), FFprobeMediaProbe)
        assert isinstance(create_media_probe("HTTP"), HttpMediaInfoProbe)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_media_probe("mediabunny")
