"""Tests for the metric buffer."""

import threading

from src.buffer import MetricBuffer


class TestCoalescing:
    def test_last_write_wins(self):
        buf = MetricBuffer()
        buf.put("a", "1|c")
        buf.put("a", "2|g")
        assert buf.drain_all() == ["a:2|g"]

    def test_one_entry_per_key(self):
        buf = MetricBuffer()
        for i in range(10):
            buf.put("hits", f"{i}|c")
        buf.put("misses", "1|c")
        assert buf.pending_count == 2
        assert sorted(buf.drain_all()) == ["hits:9|c", "misses:1|c"]


class TestDrain:
    def test_drain_clears_buffer(self):
        buf = MetricBuffer()
        buf.put("a", "1|c")
        buf.drain_all()
        assert buf.pending_count == 0
        assert buf.drain_all() == []

    def test_empty_drain(self):
        assert MetricBuffer().drain_all() == []

    def test_puts_after_drain_start_fresh(self):
        buf = MetricBuffer()
        buf.put("a", "1|c")
        buf.drain_all()
        buf.put("b", "2|s")
        assert buf.drain_all() == ["b:2|s"]


class TestConcurrentPuts:
    def test_parallel_writers_and_drainer(self):
        buf = MetricBuffer()
        drained: list[str] = []
        stop = threading.Event()

        def writer(tid: int):
            for i in range(1000):
                buf.put(f"t{tid}.k{i % 10}", f"{i}|c")

        def drainer():
            while not stop.is_set():
                drained.extend(buf.drain_all())

        drain_thread = threading.Thread(target=drainer)
        drain_thread.start()
        writers = [threading.Thread(target=writer, args=(tid,)) for tid in range(8)]
        for t in writers:
            t.start()
        for t in writers:
            t.join()
        stop.set()
        drain_thread.join()
        drained.extend(buf.drain_all())

        keys = {entry.split(":", 1)[0] for entry in drained}
        assert keys == {f"t{tid}.k{k}" for tid in range(8) for k in range(10)}
        assert buf.pending_count == 0


class TestSeal:
    def test_seal_returns_remaining_entries(self):
        buf = MetricBuffer()
        buf.put("a", "1|c")
        assert buf.seal() == ["a:1|c"]
        assert buf.pending_count == 0

    def test_put_after_seal_refused(self):
        buf = MetricBuffer()
        assert buf.put("a", "1|c") is True
        buf.seal()
        assert buf.put("b", "2|c") is False
        assert buf.pending_count == 0
        assert buf.drain_all() == []
