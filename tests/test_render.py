"""
Tests for per-clip rendering and the batch loop.
Run with: python -m pytest tests/test_render.py -v
"""
import tempfile
from pathlib import Path

import pytest

from video_loop import ffmpeg_runner, probe, render
from video_loop.config import LoopConfig
from video_loop.errors import DegenerateClipError, EngineExecutionError, ProbeError
from video_loop.types import LoopOptions, LoopRequest, TransitionSpec, format_duration


@pytest.fixture
def clip(tmp_path):
    path = tmp_path / "waves.mp4"
    path.write_bytes(b"\x00")
    return path


@pytest.fixture
def engine(monkeypatch):
    """Record ffmpeg invocations instead of running them."""
    calls = []

    def fake_run_concat(list_file, output, config):
        calls.append(("concat", list_file.read_text(encoding="utf-8"), output))

    def fake_run_filter_graph(source, graph, output, config):
        calls.append(("graph", graph.serialize(), output))

    monkeypatch.setattr(ffmpeg_runner, "run_concat", fake_run_concat)
    monkeypatch.setattr(ffmpeg_runner, "run_filter_graph", fake_run_filter_graph)
    return calls


def _durations(monkeypatch, value):
    probed = []

    def fake_probe(path, config):
        probed.append(path)
        if isinstance(value, Exception):
            raise value
        return value

    monkeypatch.setattr(probe, "probe_duration", fake_probe)
    return probed


def _options(tmp_path, request, transition=None, dry_run=False):
    return LoopOptions(
        request=request,
        transition=transition or TransitionSpec(),
        output_dir=tmp_path / "out",
        dry_run=dry_run,
    )


class TestOutputNaming:

    def test_fixed_count(self):
        out = render.output_path_for(Path("/v/waves.mov"), LoopRequest.fixed(3), Path("/o"))
        assert out == Path("/o/waves_loop-3.mp4")

    def test_target_length_in_minutes(self):
        out = render.output_path_for(Path("waves.mp4"), LoopRequest.target(600), Path("o"))
        assert out == Path("o/waves_length-10.mp4")

    @pytest.mark.parametrize("seconds,text", [(0, "0:00"), (35, "0:35"), (600, "10:00"), (3725, "1:02:05")])
    def test_duration_in_log_lines(self, seconds, text):
        assert format_duration(seconds) == text


class TestCreateLoop:

    def test_fixed_count_without_crossfade(self, tmp_path, clip, engine, monkeypatch):
        probed = _durations(monkeypatch, 15)
        output = render.create_loop(clip, _options(tmp_path, LoopRequest.fixed(3)), LoopConfig())

        assert output == tmp_path / "out" / "waves_loop-3.mp4"
        assert len(engine) == 1
        kind, listing, _ = engine[0]
        assert kind == "concat"
        assert listing.splitlines() == [f"file '{clip.resolve()}'"] * 3
        assert probed == []
        # list file is gone once the engine returns
        assert sorted(p.name for p in tmp_path.iterdir()) == ["waves.mp4"]

    def test_target_length_without_crossfade(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 45)
        output = render.create_loop(clip, _options(tmp_path, LoopRequest.target(600)), LoopConfig())

        assert output.name == "waves_length-10.mp4"
        assert len(engine[0][1].splitlines()) == 14

    def test_target_length_with_crossfade(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 15)
        options = _options(tmp_path, LoopRequest.target(35), TransitionSpec(enabled=True, seconds=5))
        render.create_loop(clip, options, LoopConfig())

        kind, text, _ = engine[0]
        assert kind == "graph"
        assert text.endswith("concat=n=6:v=1[output]")

    def test_crossfade_never_builds_single_copy_graph(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 120)
        options = _options(tmp_path, LoopRequest.target(60), TransitionSpec(enabled=True, seconds=2))
        render.create_loop(clip, options, LoopConfig())
        assert engine[0][1].endswith("concat=n=4:v=1[output]")

    def test_degenerate_clip_skips_engine(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 5)
        options = _options(tmp_path, LoopRequest.fixed(3), TransitionSpec(enabled=True, seconds=5))
        with pytest.raises(DegenerateClipError):
            render.create_loop(clip, options, LoopConfig())
        assert engine == []

    def test_degenerate_target_skips_engine(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 5)
        options = _options(tmp_path, LoopRequest.target(60), TransitionSpec(enabled=True, seconds=5))
        with pytest.raises(DegenerateClipError):
            render.create_loop(clip, options, LoopConfig())
        assert engine == []

    def test_dry_run_does_not_call_engine(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 15)
        options = _options(tmp_path, LoopRequest.fixed(2), TransitionSpec(enabled=True, seconds=2), dry_run=True)
        output = render.create_loop(clip, options, LoopConfig())
        assert output.name == "waves_loop-2.mp4"
        assert engine == []

        render.create_loop(clip, _options(tmp_path, LoopRequest.fixed(2), dry_run=True), LoopConfig())
        assert engine == []
        assert sorted(p.name for p in tmp_path.iterdir()) == ["waves.mp4"]


class TestRunBatch:

    def test_bad_clip_does_not_stop_the_rest(self, tmp_path, clip, engine, monkeypatch):
        _durations(monkeypatch, 15)
        notes = tmp_path / "notes.txt"
        notes.write_text("not a video")
        second = tmp_path / "rain.mp4"
        second.write_bytes(b"\x00")

        result = render.run_batch([notes, clip, second], _options(tmp_path, LoopRequest.fixed(2)), LoopConfig())

        assert [src for src, _ in result.succeeded] == [clip, second]
        assert [src for src, _ in result.failed] == [notes]
        assert not result.ok
        assert len(engine) == 2

    def test_probe_and_engine_failures_are_collected(self, tmp_path, clip, monkeypatch):
        _durations(monkeypatch, ProbeError("ffprobe failed"))

        def failing_concat(list_file, output, config):
            raise EngineExecutionError("ffmpeg exited with status 1", returncode=1, stderr_tail="Invalid data")

        monkeypatch.setattr(ffmpeg_runner, "run_concat", failing_concat)
        other = tmp_path / "rain.mp4"
        other.write_bytes(b"\x00")

        options = _options(tmp_path, LoopRequest.target(60))
        result = render.run_batch([clip, other], options, LoopConfig())
        assert len(result.failed) == 2
        assert all(isinstance(err, ProbeError) for _, err in result.failed)

        result = render.run_batch([clip], _options(tmp_path, LoopRequest.fixed(2)), LoopConfig())
        assert isinstance(result.failed[0][1], EngineExecutionError)
        assert result.failed[0][1].returncode == 1

    def test_unwritable_source_folder_skips_only_that_clip(self, tmp_path, clip, engine, monkeypatch):
        real_mkstemp = tempfile.mkstemp

        def picky_mkstemp(*args, **kwargs):
            if kwargs.get("prefix", "").startswith("waves_"):
                raise PermissionError(13, "Permission denied")
            return real_mkstemp(*args, **kwargs)

        monkeypatch.setattr(tempfile, "mkstemp", picky_mkstemp)
        other = tmp_path / "rain.mp4"
        other.write_bytes(b"\x00")

        result = render.run_batch([clip, other], _options(tmp_path, LoopRequest.fixed(2)), LoopConfig())

        assert [src for src, _ in result.succeeded] == [other]
        assert [src for src, _ in result.failed] == [clip]
        assert isinstance(result.failed[0][1], EngineExecutionError)
        assert len(engine) == 1
