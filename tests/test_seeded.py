"""Tests for seeded.py"""

from seller_analytics.seeded import mix_seed, seeded_between, seeded_value, string_seed


def test_same_seed_same_value():
    assert seeded_value(20250101) == seeded_value(20250101)


def test_values_in_unit_interval():
    values = [seeded_value(s) for s in range(-500, 500)]
    assert all(0.0 <= v < 1.0 for v in values)


def test_neighbouring_seeds_differ():
    assert seeded_value(20250101) != seeded_value(20250102)
    assert seeded_value(20250101) != seeded_value(20250101 + 7)


def test_values_spread_over_interval():
    values = [seeded_value(s) for s in range(1000)]
    assert min(values) < 0.1
    assert max(values) > 0.9
    assert 0.4 < sum(values) / len(values) < 0.6


def test_seeded_between_bounds():
    for s in range(200):
        v = seeded_between(s, 28.0, 38.0)
        assert 28.0 <= v < 38.0


def test_string_seed_is_stable():
    assert string_seed("CA") == 31 * ord("C") + ord("A")
    assert string_seed("") == 0


def test_string_seed_differs_per_code():
    assert string_seed("CA") != string_seed("TX")


def test_mix_seed_is_not_a_sum():
    assert mix_seed(1, 2) == mix_seed(1, 2)
    assert mix_seed(1, 2) != mix_seed(2, 1)
    # A stream of one day must not reuse another stream of a later day.
    assert mix_seed(20250101, 2) != mix_seed(20250108, 1)
    assert mix_seed(20250101, 2) != mix_seed(20250102, 1)
