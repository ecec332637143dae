from __future__ import annotations

import random
import string

import pytest

from kvwatch.domain.diff import compute_update


def test_first_result_reports_everything_as_added() -> None:
    result = compute_update(None, {"a": "X", "b": "Y"}, incremental=False, cursor=7)

    assert dict(result.complete) == {"a": "X", "b": "Y"}
    assert dict(result.added) == {"a": "X", "b": "Y"}
    assert not result.changed
    assert not result.removed
    assert result.incremental is False
    assert result.cursor == 7


def test_added_changed_removed_are_classified() -> None:
    previous = {"keep": "1", "change": "old", "drop": "gone"}
    current = {"keep": "1", "change": "new", "fresh": "hi"}

    result = compute_update(previous, current, incremental=True)

    assert dict(result.added) == {"fresh": "hi"}
    assert dict(result.changed) == {"change": "new"}
    assert dict(result.removed) == {"drop": "gone"}
    assert dict(result.complete) == current
    assert result.has_changes is True


def test_identical_mappings_produce_empty_incremental_result() -> None:
    mapping = {"a": "X"}

    result = compute_update(mapping, dict(mapping), incremental=True)

    assert result.incremental is True
    assert result.has_changes is False
    assert dict(result.complete) == mapping


def test_value_equality_is_exact() -> None:
    result = compute_update({"a": "X"}, {"a": "X "}, incremental=True)

    assert dict(result.changed) == {"a": "X "}


def test_result_maps_are_read_only() -> None:
    result = compute_update({}, {"a": "X"}, incremental=True)

    with pytest.raises(TypeError):
        result.added["b"] = "Y"  # type: ignore[index]


def _random_mapping(rng: random.Random) -> dict[str, str]:
    keys = rng.sample(string.ascii_lowercase, rng.randint(0, 12))
    return {key: rng.choice(["x", "y", "z"]) for key in keys}


@pytest.mark.parametrize("seed", range(25))
def test_delta_maps_are_disjoint_and_consistent(seed: int) -> None:
    rng = random.Random(seed)
    previous = _random_mapping(rng)
    current = _random_mapping(rng)

    result = compute_update(previous, current, incremental=True)

    added, changed, removed = set(result.added), set(result.changed), set(result.removed)
    assert not added & changed
    assert not added & removed
    assert not changed & removed
    assert set(result.complete) == (set(previous) | added) - removed
    assert changed <= set(previous) & set(current)
    for key in added | changed:
        assert result.complete[key] == current[key]
    for key in removed:
        assert key not in result.complete
        assert result.removed[key] == previous[key]
