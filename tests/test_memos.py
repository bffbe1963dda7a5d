# ruff: noqa: E402, I001
import sys
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [p for p in [str(_ROOT / "packages"), str(_ROOT)] if p not in sys.path]

from variance_analysis.memos import select_top_driver_memos
from variance_analysis.models import DriverAggregate


def _driver(cost_center: str, variance: int, memos=(), category: str = "IT") -> DriverAggregate:
    return DriverAggregate(
        category=category,
        cost_center=cost_center,
        supplier="S",
        department=None,
        variance_amount=variance,
        row_count=max(1, len(memos)),
        memos=tuple(memos),
    )


def test_walk_stops_once_85_percent_is_covered():
    # Cumulative before each driver: 0, 50, 80, 95 -> the fourth is not visited.
    drivers = [
        _driver("CC-1", 50, ["m1"]),
        _driver("CC-2", -30, ["m2"]),
        _driver("CC-3", 15, ["m3"]),
        _driver("CC-4", 5, ["m4"]),
    ]
    assert select_top_driver_memos(drivers, "IT") == ["m1", "m2", "m3"]


def test_driver_after_exact_threshold_is_excluded():
    # Cumulative reaches exactly 85 after the second driver; the check happens
    # before the third driver is added, so it is left out.
    drivers = [
        _driver("CC-1", 60, ["a"]),
        _driver("CC-2", 25, ["b"]),
        _driver("CC-3", 15, ["c"]),
    ]
    assert select_top_driver_memos(drivers, "IT") == ["a", "b"]


def test_drivers_are_ranked_by_absolute_variance_before_walking():
    drivers = [
        _driver("CC-small", 5, ["small"]),
        _driver("CC-big", -95, ["big"]),
    ]
    assert select_top_driver_memos(drivers, "IT") == ["big"]


def test_at_most_five_memos_per_driver():
    drivers = [_driver("CC-1", 100, [f"m{i}" for i in range(8)])]
    assert select_top_driver_memos(drivers, "IT") == ["m0", "m1", "m2", "m3", "m4"]


def test_at_most_thirty_memos_overall():
    # Ten equal drivers: nine are visited (cumulative 80 < 85 before the ninth).
    drivers = [_driver(f"CC-{d}", 10, [f"d{d}-m{i}" for i in range(5)]) for d in range(10)]
    memos = select_top_driver_memos(drivers, "IT")

    assert len(memos) == 30
    assert memos[:5] == [f"d0-m{i}" for i in range(5)]
    assert memos[-1] == "d5-m4"


def test_zero_variance_category_still_uses_top_driver():
    drivers = [
        _driver("CC-1", 0, ["first"]),
        _driver("CC-2", 0, ["second"]),
    ]
    assert select_top_driver_memos(drivers, "IT") == ["first"]


def test_other_categories_and_missing_category():
    drivers = [
        _driver("CC-1", 100, ["it memo"]),
        _driver("CC-2", 900, ["rent memo"], category="Rent"),
    ]
    assert select_top_driver_memos(drivers, "IT") == ["it memo"]
    assert select_top_driver_memos(drivers, "Marketing") == []


def test_drivers_without_memos_still_count_toward_coverage():
    drivers = [
        _driver("CC-1", 90, []),
        _driver("CC-2", 10, ["late"]),
    ]
    assert select_top_driver_memos(drivers, "IT") == []
