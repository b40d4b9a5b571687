"""Unit tests for threshold resolution and range evaluation."""

from __future__ import annotations

import pytest

from models.records import Threshold
from services.errors import ThresholdError
from services.thresholds import FALLBACK_THRESHOLD, ThresholdResolver, in_range


@pytest.fixture()
def resolver() -> ThresholdResolver:
    return ThresholdResolver()


@pytest.mark.parametrize(
    ("equipment_type", "expected"),
    [
        ("freezer", Threshold(min=-10, max=10)),
        ("fridge", Threshold(min=33, max=41)),
        ("refrigerator", Threshold(min=33, max=41)),
        ("coldHold", Threshold(min=33, max=41)),
        ("hotHold", Threshold(min=135, max=165)),
        ("ambient", Threshold(min=65, max=80)),
    ],
)
def test_default_policy_ranges(resolver: ThresholdResolver, equipment_type: str, expected: Threshold) -> None:
    assert resolver.resolve(equipment_type) == expected


def test_lookup_is_case_insensitive(resolver: ThresholdResolver) -> None:
    assert resolver.resolve("FREEZER") == resolver.resolve("freezer") == Threshold(min=-10, max=10)
    assert resolver.resolve("HOTHOLD") == Threshold(min=135, max=165)


@pytest.mark.parametrize("equipment_type", [None, "", "unknown-type"])
def test_unknown_or_missing_type_uses_fallback(resolver: ThresholdResolver, equipment_type) -> None:
    assert resolver.resolve(equipment_type) == FALLBACK_THRESHOLD == Threshold(min=33, max=165)


def test_both_overrides_win_regardless_of_type(resolver: ThresholdResolver) -> None:
    assert resolver.resolve("freezer", 32, 40) == Threshold(min=32, max=40)
    assert resolver.resolve("anything", 32, 40) == Threshold(min=32, max=40)


def test_single_override_replaces_only_that_bound(resolver: ThresholdResolver) -> None:
    assert resolver.resolve("refrigerator", override_max=45) == Threshold(min=33, max=45)
    assert resolver.resolve("refrigerator", override_min=30) == Threshold(min=30, max=41)


def test_inverted_override_is_rejected(resolver: ThresholdResolver) -> None:
    with pytest.raises(ThresholdError):
        resolver.resolve("fridge", 50, 40)

    with pytest.raises(ValueError):
        resolver.resolve("freezer", override_min=20)


def test_injected_policy_is_normalised_and_read_only() -> None:
    resolver = ThresholdResolver(policy={"WalkIn": Threshold(min=34, max=38)})

    assert resolver.resolve("walkin") == Threshold(min=34, max=38)
    assert resolver.resolve("freezer") == FALLBACK_THRESHOLD
    with pytest.raises(TypeError):
        resolver.policy["walkin"] = Threshold(min=0, max=1)  # type: ignore[index]


def test_injected_policy_with_inverted_range_is_rejected() -> None:
    with pytest.raises(ThresholdError):
        ThresholdResolver(policy={"broken": Threshold(min=10, max=0)})


def test_in_range_bounds_are_inclusive() -> None:
    threshold = Threshold(min=33, max=41)

    assert in_range(37, threshold) is True
    assert in_range(33, threshold) is True
    assert in_range(41, threshold) is True
    assert in_range(32.9, threshold) is False
    assert in_range(41.1, threshold) is False


def test_in_range_treats_missing_bounds_as_open() -> None:
    assert in_range(-1000, Threshold(max=10)) is True
    assert in_range(1000, Threshold(min=10)) is True
    assert in_range(5, Threshold(min=10)) is False
    assert in_range(0, Threshold()) is True
