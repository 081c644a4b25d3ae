"""Unit tests for the person-name heuristics."""

from leadcrawl.utils.names import is_valid_person_name, normalize_name


class TestIsValidPersonName:
    """Tests for is_valid_person_name."""

    def test_accepts_common_name(self):
        assert is_valid_person_name("John Smith")

    def test_accepts_middle_initial(self):
        assert is_valid_person_name("Sarah J. Connor")

    def test_rejects_unknown_first_name(self):
        assert not is_valid_person_name("Click Here")

    def test_rejects_blacklisted_token(self):
        assert not is_valid_person_name("John Plumbing")
        assert not is_valid_person_name("Mary Contact")

    def test_rejects_single_token(self):
        assert not is_valid_person_name("John")

    def test_rejects_too_many_tokens(self):
        assert not is_valid_person_name("John Paul George Ringo Starr")

    def test_rejects_non_letter_tokens(self):
        assert not is_valid_person_name("John Sm1th")

    def test_rejects_short_last_token(self):
        assert not is_valid_person_name("John S")

    def test_first_name_is_case_insensitive(self):
        assert is_valid_person_name("JOHN SMITH")


class TestNormalizeName:
    """Tests for normalize_name."""

    def test_title_cases(self):
        assert normalize_name("joe kremer") == "Joe Kremer"

    def test_mc_prefix(self):
        assert normalize_name("joe mcdonald") == "Joe McDonald"

    def test_mac_prefix(self):
        assert normalize_name("ian macdougall") == "Ian MacDougall"

    def test_apostrophe(self):
        assert normalize_name("sean o'brien") == "Sean O'Brien"

    def test_short_tokens_are_initials(self):
        assert normalize_name("john j. smith") == "John J. Smith"
