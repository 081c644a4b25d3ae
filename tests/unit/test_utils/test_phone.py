"""Unit tests for phone normalization and fake-number detection."""

import pytest

from leadcrawl.utils.phone import is_fake_phone, normalize_phone


class TestNormalizePhone:
    """Tests for normalize_phone."""

    def test_strips_formatting(self):
        assert normalize_phone("(415) 555-1234") == "4155551234"

    def test_drops_us_country_code(self):
        assert normalize_phone("+1 415.555.1234") == "4155551234"

    def test_keeps_other_eleven_digit_numbers(self):
        assert normalize_phone("24155551234") == "24155551234"

    def test_accepts_non_string(self):
        assert normalize_phone(4155551234) == "4155551234"


class TestIsFakePhone:
    """Tests for is_fake_phone."""

    @pytest.mark.parametrize("phone", [
        "0000000000",
        "1234567890",
        "1111111111",
        "9999999999",
        "5555555555",
    ])
    def test_rejects_known_fakes(self, phone):
        assert is_fake_phone(phone)

    def test_rejects_nine_repeated_digits(self):
        assert is_fake_phone("7777777778")
        assert is_fake_phone("3777777777")

    def test_rejects_repeating_patterns(self):
        assert is_fake_phone("7037037037")
        assert is_fake_phone("2525252525")

    def test_rejects_invalid_area_code(self):
        assert is_fake_phone("0415551234")
        assert is_fake_phone("1415551234")

    def test_rejects_wrong_length(self):
        assert is_fake_phone("415555123")
        assert is_fake_phone("41555512345")

    def test_accepts_plausible_number(self):
        assert not is_fake_phone("4155551234")
        assert not is_fake_phone("3035550199")
