"""Tests for gradeshare.names: student name normalization."""

import pytest

from gradeshare.names import normalize_student_name


class TestNormalizeStudentName:
    def test_two_tokens(self):
        assert normalize_student_name("john smith") == "John Smith"

    def test_upper_case_input(self):
        assert normalize_student_name("MARIA GARCIA") == "Maria Garcia"

    def test_single_token(self):
        assert normalize_student_name("aNA") == "Ana"

    def test_three_tokens(self):
        assert normalize_student_name("ana maría PÉREZ") == "Ana María Pérez"

    def test_whitespace_collapsed_and_trimmed(self):
        assert normalize_student_name("  luis \t  gómez  ") == "Luis Gómez"

    def test_nbsp_treated_as_space(self):
        assert normalize_student_name("ana\u00a0lópez") == "Ana López"

    def test_hyphenated_token_keeps_rest_lowercase(self):
        # only the first letter of a whitespace token is capitalized
        assert normalize_student_name("JEAN-LUC picard") == "Jean-luc Picard"

    def test_empty_and_blank(self):
        assert normalize_student_name("") == ""
        assert normalize_student_name("   ") == ""

    def test_non_string(self):
        assert normalize_student_name(None) == ""
        assert normalize_student_name(42) == ""


class TestIdempotence:
    @pytest.mark.parametrize(
        "raw",
        [
            "john smith",
            "  MARIA   GARCIA ",
            "ßtraße müller",
            "o'brien DE la cruz",
            "ǆemal",
            "x",
        ],
    )
    def test_normalize_twice_is_same(self, raw):
        once = normalize_student_name(raw)
        assert normalize_student_name(once) == once
