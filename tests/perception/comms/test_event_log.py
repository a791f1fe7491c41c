"""Unit tests for EventLog — the bounded newest-first event ring."""

from __future__ import annotations

import re
import threading

import pytest

from perception.comms.event_log import EventLog, LogEntry, LogLevel

pytestmark = pytest.mark.unit


class TestAppend:

    def test_returns_entry(self):
        log = EventLog()
        entry = log.append("HAZARD LOG", LogLevel.CRIT)
        assert isinstance(entry, LogEntry)
        assert entry.level is LogLevel.CRIT
        assert entry.message == "HAZARD LOG"

    def test_default_level_is_info(self):
        log = EventLog()
        assert log.append("hello").level is LogLevel.INFO

    def test_accepts_level_string(self):
        log = EventLog()
        assert log.append("boot", "SYS").level is LogLevel.SYS

    def test_ids_are_unique_and_increasing(self):
        log = EventLog()
        ids = [log.append(f"m{i}").id for i in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_timestamp_format(self):
        log = EventLog()
        ts = log.append("x").timestamp
        assert re.fullmatch(r"\d{2}:\d{2}:\d{2}\.\d{3}", ts)

    def test_newest_first(self):
        log = EventLog()
        log.append("first")
        log.append("second")
        assert [e.message for e in log.entries()] == ["second", "first"]


class TestCapacity:

    def test_default_capacity_is_21(self):
        assert EventLog().capacity == 21

    def test_twenty_two_events_evict_oldest(self):
        log = EventLog()
        for i in range(22):
            log.append(f"event {i}")
        entries = log.entries()
        assert len(entries) == 21
        assert entries[0].message == "event 21"
        assert entries[-1].message == "event 1"
        assert "event 0" not in [e.message for e in entries]

    def test_custom_capacity(self):
        log = EventLog(capacity=3)
        for i in range(10):
            log.append(str(i))
        assert [e.message for e in log.entries()] == ["9", "8", "7"]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            EventLog(capacity=0)


class TestQueries:

    def test_count_by_level(self):
        log = EventLog()
        log.append("a", LogLevel.WARN)
        log.append("b", LogLevel.CRIT)
        log.append("c", LogLevel.WARN)
        assert log.count(LogLevel.WARN) == 2
        assert log.count(LogLevel.INFO) == 0

    def test_clear(self):
        log = EventLog()
        log.append("a")
        log.clear()
        assert len(log) == 0

    def test_to_dict(self):
        d = EventLog().append("x", LogLevel.WARN).to_dict()
        assert d["level"] == "WARN"
        assert set(d) == {"id", "timestamp", "level", "message"}


class TestConcurrentWriters:

    def test_appends_from_many_threads(self):
        log = EventLog(capacity=1000)

        def writer(n: int) -> None:
            for i in range(100):
                log.append(f"{n}-{i}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        entries = log.entries()
        assert len(entries) == 800
        assert len({e.id for e in entries}) == 800
