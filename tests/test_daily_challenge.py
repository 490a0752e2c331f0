import calendar

import pytest

from daily_challenge import daily_targets, get_todays_challenge, seeded_random


def test_seeded_random_follows_recurrence():
    rng = seeded_random(1)
    expected_state = (1 * 1103515245 + 12345) & 0x7FFFFFFF
    assert rng() == expected_state / 0x7FFFFFFF


def test_seeded_random_is_reproducible_and_bounded():
    first = seeded_random(202510)
    second = seeded_random(202510)
    values = [first() for _ in range(100)]

    assert values == [second() for _ in range(100)]
    assert all(0 <= v <= 1 for v in values)


@pytest.mark.parametrize("year,month", [(2025, 1), (2024, 2), (2025, 4), (2026, 10)])
def test_targets_cover_every_day_and_sum_to_goal(year, month):
    targets = daily_targets(2000, year, month)

    assert len(targets) == calendar.monthrange(year, month)[1]
    assert sum(targets) == pytest.approx(2000, abs=0.01)
    assert all(t >= 0 for t in targets)
    assert all(round(t, 2) == t for t in targets)


def test_targets_are_stable_within_a_month_and_vary_between_months():
    assert daily_targets(2000, 2025, 3) == daily_targets(2000, 2025, 3)
    assert daily_targets(2000, 2025, 3) != daily_targets(2000, 2025, 5)


def test_todays_challenge_picks_the_day():
    targets = daily_targets(1500, 2025, 7)
    assert get_todays_challenge(1500, 2025, 7, day=5) == targets[4]
    assert get_todays_challenge(1500, 2025, 7, day=31) == targets[30]


def test_todays_challenge_out_of_range_day_falls_back_to_even_split():
    assert get_todays_challenge(290, 2024, 2, day=31) == pytest.approx(10.0)


def test_zero_goal_gives_zero_targets():
    assert daily_targets(0, 2025, 6) == [0.0] * 30
