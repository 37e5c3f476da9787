"""Tests for context accumulation, collision and overflow policy."""

from __future__ import annotations

import pytest

from packages.chronicle.context import CollisionDetail, ContextStore, find_reserved_keys, is_reserved_key


def test_add_accepts_scalars_and_scalar_sequences() -> None:
    """Scalars are stored as-is and scalar lists become tuples."""
    store = ContextStore()
    result = store.add({"user": "u-1", "attempt": 2, "ratio": 0.5, "admin": False, "note": None, "tags": ["a", "b"]})

    assert result.ok
    assert store.snapshot() == {
        "user": "u-1",
        "attempt": 2,
        "ratio": 0.5,
        "admin": False,
        "note": None,
        "tags": ("a", "b"),
    }


def test_existing_key_keeps_original_value_and_reports_collision() -> None:
    """First write wins; later writes are reported with both values."""
    store = ContextStore({"user": "u-1"})
    result = store.add({"user": "u-2", "team": "core"})

    assert store.snapshot()["user"] == "u-1"
    assert store.snapshot()["team"] == "core"
    assert result.collisions == ["user"]
    assert result.collision_details == [
        CollisionDetail(key="user", existing_value="u-1", attempted_value="u-2")
    ]


def test_reserved_keys_never_enter_the_store() -> None:
    """Payload names, diagnostic paths and pollution keys are rejected."""
    store = ContextStore()
    result = store.add(
        {
            "event_key": "x",
            "_validation.missing_fields": "x",
            "_perf": "x",
            "__proto__": "x",
            "constructor": "x",
            "__class__": "x",
            "safe": "ok",
        }
    )

    assert result.reserved == [
        "event_key",
        "_validation.missing_fields",
        "_perf",
        "__proto__",
        "constructor",
        "__class__",
    ]
    assert dict(store.snapshot()) == {"safe": "ok"}


def test_non_scalar_values_are_skipped_silently() -> None:
    """Nested objects are ignored without being reported."""
    store = ContextStore()
    result = store.add({"nested": {"a": 1}, "mixed": [1, {"b": 2}], "kept": 1})

    assert result.ok
    assert result.collisions == result.reserved == result.dropped == []
    assert dict(store.snapshot()) == {"kept": 1}


def test_store_never_exceeds_max_keys() -> None:
    """Overflow keys are dropped and reported in call order."""
    store = ContextStore({"a": 1}, max_keys=3)
    result = store.add({"b": 2, "c": 3, "d": 4, "e": 5})

    assert len(store) == 3
    assert result.dropped == ["d", "e"]
    assert "d" not in store


def test_initial_context_beyond_limit_is_reported_on_seed() -> None:
    """Seeding respects the limit and exposes the rejection result."""
    store = ContextStore({"a": 1, "b": 2, "c": 3}, max_keys=2)

    assert len(store) == 2
    assert store.seed_result.dropped == ["c"]


def test_snapshot_is_read_only_and_detached() -> None:
    """Snapshots cannot be mutated and do not track later additions."""
    store = ContextStore({"a": 1})
    snapshot = store.snapshot()
    store.add({"b": 2})

    with pytest.raises(TypeError):
        snapshot["c"] = 3  # type: ignore[index]
    assert dict(snapshot) == {"a": 1}


def test_consume_collisions_returns_each_key_once() -> None:
    """Pending collisions are deduplicated and cleared on consumption."""
    store = ContextStore({"a": 1})
    store.add({"a": 2})
    store.add({"a": 3})

    assert store.consume_collisions() == ["a"]
    assert store.consume_collisions() == []


def test_reserved_key_helpers() -> None:
    """Reserved helpers cover dotted sub-fields and dunder names."""
    assert is_reserved_key("_perf.rss")
    assert is_reserved_key("__init__")
    assert not is_reserved_key("_perf.custom")
    assert not is_reserved_key("__")
    assert find_reserved_keys(["fork_id", "user", "metadata"]) == ["fork_id", "metadata"]
