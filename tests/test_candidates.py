import pytest

from results_proxy.candidates import (
    build_keys,
    explicit_range_keys,
    format_suffix,
    split_registration,
    term_range_keys,
)


@pytest.mark.parametrize(
    "number, expected",
    [(1, "001"), (10, "010"), (60, "060"), (899, "899"), (900, "900"), (901, "901"), (960, "960")],
)
def test_format_suffix_pads_below_900_only(number, expected):
    assert format_suffix(number) == expected


def test_term_ranges_cover_both_terms_in_order():
    keys = term_range_keys("22104134", [(10, 60), (901, 960)], max_size=120)

    assert len(keys) == 51 + 60
    assert keys[0] == "22104134010"
    assert keys[50] == "22104134060"
    assert keys[51] == "22104134901"
    assert keys[-1] == "22104134960"
    suffixes = [int(key[8:]) for key in keys]
    assert suffixes == sorted(suffixes)
    assert all(len(key) == 11 for key in keys)


def test_term_ranges_above_ceiling_are_rejected():
    with pytest.raises(ValueError):
        term_range_keys("22104134", [(10, 60), (901, 960)], max_size=100)


def test_split_and_regenerate_five():
    prefix, start = split_registration("22104134007")
    keys = explicit_range_keys(prefix, start, 5, max_size=120)

    assert prefix == "22104134"
    assert start == 7
    assert keys == [
        "22104134007",
        "22104134008",
        "22104134009",
        "22104134010",
        "22104134011",
    ]


def test_explicit_range_crossing_900_switches_to_unpadded():
    assert explicit_range_keys("22104134", 898, 4, max_size=120) == [
        "22104134898",
        "22104134899",
        "22104134900",
        "22104134901",
    ]


def test_explicit_range_stops_at_999():
    keys = explicit_range_keys("22104134", 997, 5, max_size=120)
    assert keys == ["22104134997", "22104134998", "22104134999"]


@pytest.mark.parametrize("count", [0, -1, 121])
def test_explicit_range_rejects_count_outside_bounds(count):
    with pytest.raises(ValueError):
        explicit_range_keys("22104134", 1, count, max_size=120)


def test_explicit_range_rejects_bad_start():
    with pytest.raises(ValueError):
        explicit_range_keys("22104134", 1000, 1, max_size=120)


@pytest.mark.parametrize("reg_no", ["2210413400", "221041340012", "2210413400a"])
def test_split_registration_rejects_malformed(reg_no):
    with pytest.raises(ValueError):
        split_registration(reg_no)


def test_build_keys_keeps_input_order():
    assert build_keys("12345678", [950, 5]) == ["12345678950", "12345678005"]
