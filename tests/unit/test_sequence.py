"""
Tests for ReactiveList interception and structural mutations.
"""

import pytest

from ripple import EventKind, ReactiveDict, ReactiveList


def length_event(event, old, new):
    return (
        event.path == ("length",)
        and event.old_value == old
        and event.value == new
        and event.kind is EventKind.SET
    )


class TestReads:
    """Read operations on observed lists."""

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_index_and_negative_index(self, registry):
        """Index, negative index and the read-only list protocol pass through"""
        items = registry.wrap([1, 2, 3])

        assert items[0] == 1
        assert items[-1] == 3
        assert len(items) == 3
        assert list(items) == [1, 2, 3]
        assert list(reversed(items)) == [3, 2, 1]
        assert 2 in items
        assert items.index(3) == 2
        assert items.count(1) == 1

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_out_of_range_read_raises(self, registry):
        """Reading past the end raises IndexError"""
        items = registry.wrap([1])
        with pytest.raises(IndexError):
            items[5]

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_slice_read_returns_plain_list_of_surrogates(self, registry):
        """Slicing returns a plain list holding surrogates for composites"""
        items = registry.wrap([{"a": 1}, 2, 3])

        head = items[:2]

        assert type(head) is list
        assert isinstance(head[0], ReactiveDict)
        assert head[1] == 2

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_nested_read_returns_surrogate(self, registry):
        """Reading a nested list returns its surrogate"""
        items = registry.wrap([[1, 2]])
        assert isinstance(items[0], ReactiveList)

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_concatenation_returns_plain_list(self, registry):
        """+ and * return plain lists"""
        items = registry.wrap([1, 2])

        assert items + [3] == [1, 2, 3]
        assert [0] + items == [0, 1, 2]
        assert items * 2 == [1, 2, 1, 2]
        assert items == [1, 2]


class TestIndexWrites:
    """Single-index assignment."""

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_index_assignment_reports_index(self, registry, recorder):
        """Assigning an index reports that index"""
        items = registry.wrap([1, 2, 3])
        registry.watch(items, recorder)

        items[1] = 20

        (event,) = recorder.events
        assert event.path == (1,)
        assert event.old_value == 2
        assert event.value == 20

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_negative_index_is_normalised(self, registry, recorder):
        """Negative indexes are reported as positive positions"""
        items = registry.wrap([1, 2, 3])
        registry.watch(items, recorder)

        items[-1] = 30

        assert recorder.paths == [(2,)]

    @pytest.mark.unit
    @pytest.mark.proxy
    @pytest.mark.edge_case
    def test_out_of_range_write_raises_without_event(self, registry, recorder):
        """Writing past the end raises IndexError and fires nothing"""
        items = registry.wrap([1])
        registry.watch(items, recorder)

        with pytest.raises(IndexError):
            items[3] = 1

        assert recorder.events == []

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_same_value_is_a_no_op(self, registry, recorder):
        """Assigning an equal value fires nothing"""
        items = registry.wrap([1, 2])
        registry.watch(items, recorder)

        items[0] = 1

        assert recorder.events == []


class TestStructuralMutations:
    """Mutations that change the list's shape."""

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_append_fires_single_length_event(self, registry, recorder):
        """append fires exactly one length event"""
        items = registry.wrap([1, 2, 3])
        registry.watch(items, recorder)

        items.append(4)

        (event,) = recorder.events
        assert length_event(event, 3, 4)

    @pytest.mark.parametrize(
        "mutate, old, new",
        [
            (lambda items: items.pop(), 3, 2),
            (lambda items: items.pop(0), 3, 2),
            (lambda items: items.insert(0, 0), 3, 4),
            (lambda items: items.extend([4, 5]), 3, 5),
            (lambda items: items.remove(2), 3, 2),
            (lambda items: items.clear(), 3, 0),
            (lambda items: items.__delitem__(0), 3, 2),
            (lambda items: items.__setitem__(slice(0, 2), [9]), 3, 2),
            (lambda items: items.__delitem__(slice(None)), 3, 0),
        ],
    )
    @pytest.mark.unit
    @pytest.mark.proxy
    def test_length_changing_mutations(self, registry, recorder, mutate, old, new):
        """Every length-changing mutation fires one length event"""
        items = registry.wrap([1, 2, 3])
        registry.watch(items, recorder)

        mutate(items)

        assert len(recorder.events) == 1
        assert length_event(recorder.events[0], old, new)

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_inplace_operators(self, registry, recorder):
        """+= and *= fire one length event and keep the surrogate"""
        items = registry.wrap([1])
        registry.watch(items, recorder)

        items += [2, 3]
        items *= 2

        assert items is not None
        assert isinstance(items, ReactiveList)
        assert items == [1, 2, 3, 1, 2, 3]
        assert [(e.old_value, e.value) for e in recorder.events] == [(1, 3), (3, 6)]

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda items: items.sort(),
            lambda items: items.reverse(),
            lambda items: items.__setitem__(slice(0, 2), [7, 8]),
        ],
    )
    @pytest.mark.unit
    @pytest.mark.proxy
    def test_length_preserving_mutations_are_silent(self, registry, recorder, mutate):
        """Mutations that keep the length fire nothing"""
        items = registry.wrap([3, 1, 2])
        registry.watch(items, recorder)

        mutate(items)

        assert recorder.events == []

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_sort_with_key_and_reverse(self, registry):
        """sort passes raw elements to the key function"""
        items = registry.wrap([{"n": 2}, {"n": 1}, {"n": 3}])

        items.sort(key=lambda item: item["n"], reverse=True)

        assert [item["n"] for item in items] == [3, 2, 1]

    @pytest.mark.unit
    @pytest.mark.proxy
    @pytest.mark.edge_case
    def test_failed_mutation_fires_nothing(self, registry, recorder):
        """A mutation that raises fires nothing"""
        items = registry.wrap([1])
        registry.watch(items, recorder)

        with pytest.raises(ValueError):
            items.remove(99)
        with pytest.raises(IndexError):
            registry.wrap([]).pop()

        assert recorder.events == []

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_pop_returns_surrogate_for_composites(self, registry):
        """pop returns a surrogate for a composite element"""
        items = registry.wrap([{"a": 1}])

        popped = items.pop()

        assert isinstance(popped, ReactiveDict)
        assert popped == {"a": 1}

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_append_surrogate_stores_raw(self, registry):
        """Appending a surrogate stores its raw value"""
        raw = []
        items = registry.wrap(raw)
        child = registry.wrap({"x": 1})

        items.append(child)

        assert raw[0] is registry.unwrap(child)
        assert items[0] is child


class TestPipesAfterStructuralMutations:
    """Element pipes after elements move."""

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_appended_child_is_piped(self, registry, recorder):
        """An appended composite reports under its index"""
        items = registry.wrap([])
        registry.watch(items, recorder)
        items.append({"title": "a"})
        recorder.events.clear()

        items[0]["title"] = "b"

        assert recorder.paths == [(0, "title")]

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_pipes_follow_shifted_elements(self, registry, recorder):
        """Elements moved by a removal report their new index"""
        first, second = {"name": "first"}, {"name": "second"}
        items = registry.wrap([first, second])
        registry.watch(items, recorder)
        second_surrogate = items[1]

        items.pop(0)
        recorder.events.clear()
        second_surrogate["name"] = "renamed"

        assert recorder.paths == [(0, "name")]

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_removed_element_no_longer_reports(self, registry, recorder):
        """A removed element no longer reaches the list's watchers"""
        items = registry.wrap([{"name": "gone"}])
        removed = items[0]
        registry.watch(items, recorder)

        items.clear()
        recorder.events.clear()
        removed["name"] = "still here"

        assert recorder.events == []

    @pytest.mark.unit
    @pytest.mark.proxy
    def test_unshift_moves_existing_pipes(self, registry, recorder):
        """Inserting at the front moves every existing pipe up by one"""
        items = registry.wrap([{"v": 1}])
        child = items[0]
        registry.watch(items, recorder)

        items.insert(0, {"v": 0})
        recorder.events.clear()
        child["v"] = 2

        assert recorder.paths == [(1, "v")]
