"""
Tests for the DependencyCollector side channel.
"""

import threading

import pytest

from ripple import Bus, ChangeEvent, CollectorError, EventKind
from ripple.pipe import pipe
from ripple.tracking import ANY_FIELD, Dependencies, DependencyCollector


def read(bus, *path):
    bus.trigger("get", ChangeEvent(tuple(path), kind=EventKind.GET))


class TestDependencies:
    """Dependency sets and change matching."""

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_buses_keep_first_seen_order(self):
        """Buses are listed in the order they were first read"""
        first, second = Bus("first"), Bus("second")
        dependencies = Dependencies()
        dependencies.add(second, "a")
        dependencies.add(first, "b")
        dependencies.add(second, "c")

        assert dependencies.buses == (second, first)
        assert dependencies.fields(second) == frozenset({"a", "c"})
        assert len(dependencies) == 2

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_matches_by_path_head(self):
        """A change matches when its path head was read from the same bus"""
        bus = Bus("b")
        dependencies = Dependencies()
        dependencies.add(bus, "a")

        assert dependencies.matches(bus, ChangeEvent(("a", "deep"), 1))
        assert not dependencies.matches(bus, ChangeEvent(("b",), 1))
        assert not dependencies.matches(Bus("other"), ChangeEvent(("a",), 1))

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_any_field_matches_everything(self):
        """A whole-value read matches a change to any field"""
        bus = Bus("b")
        dependencies = Dependencies()
        dependencies.add(bus, ANY_FIELD)

        assert dependencies.matches(bus, ChangeEvent(("whatever",), 1))

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_length_matches_any_index_on_indexed_bus(self):
        """A length change on a list matches any recorded index"""
        indexed, plain = Bus("list", indexed=True), Bus("dict")
        dependencies = Dependencies()
        dependencies.add(indexed, 0)
        dependencies.add(plain, "x")

        assert dependencies.matches(indexed, ChangeEvent(("length",), 2, 3))
        assert not dependencies.matches(plain, ChangeEvent(("length",), 2, 3))

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_forwarded_event_defers_to_read_child(self):
        """A forwarded change is left to the child bus when that child was read"""
        parent, child = Bus("parent"), Bus("child")
        pipe(parent, child, "a")
        dependencies = Dependencies()
        dependencies.add(parent, "a")
        nested = ChangeEvent(("a", "other"), 1)

        assert dependencies.matches(parent, nested)

        dependencies.add(child, "value")

        assert not dependencies.matches(parent, nested)
        assert dependencies.matches(parent, ChangeEvent(("a",), {}))

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_update_merges(self):
        """update() unions the fields recorded per bus"""
        bus = Bus("b")
        left, right = Dependencies(), Dependencies()
        left.add(bus, "a")
        right.add(bus, "b")

        left.update(right)

        assert left.fields(bus) == frozenset({"a", "b"})


class TestSessions:
    """Opening, nesting and closing collection sessions."""

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_inactive_by_default(self):
        """No session is open until one is entered"""
        assert not DependencyCollector.is_active()
        assert DependencyCollector.depth() == 0

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_session_records_reads(self):
        """Reads inside a session are recorded into it"""
        bus = Bus("b")
        with DependencyCollector.session() as dependencies:
            assert DependencyCollector.is_active()
            read(bus, "a")

        assert not DependencyCollector.is_active()
        assert dependencies.fields(bus) == frozenset({"a"})

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_whole_value_read_records_any_field(self):
        """A read with an empty path records ANY_FIELD"""
        bus = Bus("b")
        with DependencyCollector.session() as dependencies:
            read(bus)

        assert dependencies.fields(bus) == frozenset({ANY_FIELD})

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_nested_sessions_record_into_innermost(self):
        """Only the innermost session receives reads"""
        outer_bus, inner_bus = Bus("outer"), Bus("inner")
        with DependencyCollector.session() as outer:
            read(outer_bus, "a")
            with DependencyCollector.session() as inner:
                read(inner_bus, "b")
            assert DependencyCollector.depth() == 1

        assert outer.buses == (outer_bus,)
        assert inner.buses == (inner_bus,)

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_merge_folds_into_enclosing_session(self):
        """merge() adds dependencies to the enclosing session"""
        bus = Bus("b")
        collected = Dependencies()
        collected.add(bus, "x")

        with DependencyCollector.session() as outer:
            DependencyCollector.merge(collected)

        assert outer.fields(bus) == frozenset({"x"})

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_merge_without_session_is_ignored(self):
        """merge() with no open session does nothing"""
        DependencyCollector.merge(Dependencies())
        assert DependencyCollector.current() is None

    @pytest.mark.unit
    @pytest.mark.tracking
    @pytest.mark.edge_case
    def test_session_closes_when_body_raises(self):
        """The session is popped even when its body raises"""
        with pytest.raises(RuntimeError, match="boom"):
            with DependencyCollector.session():
                raise RuntimeError("boom")

        assert not DependencyCollector.is_active()

    @pytest.mark.unit
    @pytest.mark.tracking
    @pytest.mark.edge_case
    def test_out_of_order_close_is_reported(self):
        """Closing sessions out of order raises CollectorError and cleans up"""
        session = DependencyCollector.session()
        session.__enter__()
        DependencyCollector._get_stack().append(Dependencies())

        with pytest.raises(CollectorError):
            session.__exit__(None, None, None)

        assert DependencyCollector.depth() == 1

    @pytest.mark.unit
    @pytest.mark.tracking
    def test_sessions_are_per_thread(self):
        """A session opened in one thread is invisible to others"""
        seen = []

        with DependencyCollector.session():
            worker = threading.Thread(target=lambda: seen.append(DependencyCollector.is_active()))
            worker.start()
            worker.join()

        assert seen == [False]
