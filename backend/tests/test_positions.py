"""Tests for position allocation, ordering and compaction."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from taskboard import positions
from taskboard.errors import InvalidArgument
from taskboard.validation import MAX_POSITION

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _entity(entity_id, position, seconds=0, naive=False):
    created = T0 + timedelta(seconds=seconds)
    if naive:
        created = created.replace(tzinfo=None)
    return SimpleNamespace(id=entity_id, position=position, created_at=created, updated_at=created)


def test_allocate_first_sibling_is_zero():
    assert positions.allocate([]) == 0


def test_allocate_appends_after_max_not_count():
    """Gaps left by deletes or explicit positions do not get reused"""
    assert positions.allocate([0, 1, 2]) == 3
    assert positions.allocate([4, 9, 2]) == 10


def test_allocate_explicit_position_is_verbatim():
    assert positions.allocate([0, 1, 2], requested=1) == 1
    assert positions.allocate([], requested=42) == 42
    assert positions.allocate([5], requested=0) == 0


def test_allocate_after_negative_positions():
    assert positions.allocate([-3, -1]) == 0


def test_sort_key_breaks_ties_by_creation_then_id():
    a = _entity("b-late", 1, seconds=10)
    b = _entity("a-early", 1, seconds=0)
    c = _entity("z-first", 0, seconds=99)
    d = _entity("a-same", 1, seconds=10)
    assert [e.id for e in positions.ordered([a, b, c, d])] == ["z-first", "a-early", "a-same", "b-late"]


def test_sort_key_mixes_naive_and_aware_timestamps():
    aware = _entity("x", 0, seconds=5)
    naive = _entity("y", 0, seconds=1, naive=True)
    assert [e.id for e in positions.ordered([aware, naive])] == ["y", "x"]


def test_compact_preserves_order():
    assert positions.compact(["c", "a", "b"]) == {"c": 0, "a": 1, "b": 2}
    assert positions.compact([]) == {}


def test_apply_ranks_rewrites_only_changed_entities():
    entities = [_entity("a", 0), _entity("b", 5), _entity("c", 5, seconds=1), _entity("d", 40)]
    changed = positions.apply_ranks(entities)
    assert changed == 3
    assert [e.position for e in entities] == [0, 1, 2, 3]
    # untouched entity keeps its timestamp
    assert entities[0].updated_at == T0
    assert entities[1].updated_at > T0


def test_apply_ranks_on_contiguous_is_noop():
    entities = [_entity("a", 0), _entity("b", 1)]
    assert positions.apply_ranks(entities) == 0


def test_append_after_highest_representable_position_is_rejected():
    with pytest.raises(InvalidArgument):
        positions.next_after(MAX_POSITION)
    assert positions.next_after(MAX_POSITION - 1) == MAX_POSITION
