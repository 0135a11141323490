import re

import pytest

from mindpoints.core.coupon_codes import (
    ALPHABET,
    RANDOM_SEGMENT_LENGTH,
    generate_coupon_code,
    to_base36,
)


def test_code_format():
    code = generate_coupon_code("MP", timestamp_ms=1700000000000)

    prefix, random_segment, time_segment = code.split("-")
    assert prefix == "MP"
    assert len(random_segment) == RANDOM_SEGMENT_LENGTH
    assert all(ch in ALPHABET for ch in random_segment)
    assert time_segment == to_base36(1700000000000)
    assert re.fullmatch(r"[A-Z0-9-]+", code)


def test_codes_are_unique():
    codes = {generate_coupon_code(timestamp_ms=0) for _ in range(500)}

    assert len(codes) == 500


def test_alphabet_excludes_ambiguous_characters():
    assert len(ALPHABET) == 32
    for ch in "01IO":
        assert ch not in ALPHABET


@pytest.mark.parametrize(
    "value, expected", [(0, "0"), (35, "Z"), (36, "10"), (1295, "ZZ")]
)
def test_to_base36(value, expected):
    assert to_base36(value) == expected


def test_to_base36_rejects_negative():
    with pytest.raises(ValueError):
        to_base36(-1)
