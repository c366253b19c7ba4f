"""Unit Tests for placeholder conversion

Tests rewriting of ``?`` placeholders into DB-API paramstyles.
"""

import pytest

from db_access.adapters import convert_placeholders


class TestConvertPlaceholders:
    """Test convert_placeholders()."""

    def test_qmark_unchanged(self):
        sql = "SELECT * FROM t WHERE a = ? AND b LIKE '50%'"
        assert convert_placeholders(sql, "qmark") == sql

    @pytest.mark.parametrize("paramstyle", ["format", "pyformat"])
    def test_format_styles(self, paramstyle):
        """Placeholders become %s and percent signs are doubled, even inside literals."""
        sql = "SELECT * FROM t WHERE a = ? AND b = ? AND c LIKE CONCAT(?, '%')"
        assert convert_placeholders(sql, paramstyle) == (
            "SELECT * FROM t WHERE a = %s AND b = %s AND c LIKE CONCAT(%s, '%%')"
        )

    def test_percent_outside_literals_is_escaped(self):
        """A bare modulo operator is doubled for format-style drivers."""
        assert convert_placeholders("SELECT a % 2 FROM t WHERE b = ?", "format") == (
            "SELECT a %% 2 FROM t WHERE b = %s"
        )

    def test_numeric(self):
        assert convert_placeholders("INSERT INTO t VALUES (?, ?, ?)", "numeric") == (
            "INSERT INTO t VALUES (:1, :2, :3)"
        )

    def test_question_marks_in_literals_are_kept(self):
        """Question marks inside quotes and backticks are not placeholders."""
        sql = "SELECT '?' AS q, \"a?b\", `odd?col` FROM t WHERE id = ?"
        assert convert_placeholders(sql, "format") == (
            "SELECT '?' AS q, \"a?b\", `odd?col` FROM t WHERE id = %s"
        )

    def test_escaped_quote_in_literal(self):
        sql = "SELECT 'it\\'s ?' FROM t WHERE id = ?"
        assert convert_placeholders(sql, "numeric") == "SELECT 'it\\'s ?' FROM t WHERE id = :1"
