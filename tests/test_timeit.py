"""Tests for the stage timing context manager."""
import pytest

from tts_store.utils.timeit import timeit


def test_records_duration():
    with timeit("synthesize") as t:
        pass
    assert t.timing.name == "synthesize"
    assert t.seconds >= 0.0


def test_unfinished_is_negative():
    t = timeit("upload")
    assert t.seconds == -1.0


def test_records_into_dict():
    timings = {}
    with timeit("drain", into=timings):
        pass
    assert set(timings) == {"drain"}


def test_records_when_block_raises():
    timings = {}
    with pytest.raises(RuntimeError):
        with timeit("upload", into=timings):
            raise RuntimeError("boom")
    assert "upload" in timings
