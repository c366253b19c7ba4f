"""Table prefix rewriting for FROM and JOIN clauses."""

import re

# FROM/JOIN followed by one or more comma-separated table references,
# each optionally backquoted and optionally aliased with AS.
_TABLE_REF = r"(?:`?\w+`?)(?:\s+AS\s+`?\w+`?)?"
_CLAUSE_PATTERN = re.compile(
    rf"\b(FROM|JOIN)\s+({_TABLE_REF}(?:\s*,\s*{_TABLE_REF})*)",
    re.IGNORECASE | re.ASCII,
)
_TABLE_PATTERN = re.compile(
    r"`?(\w+)`?(?:\s+AS\s+`?(\w+)`?)?", re.IGNORECASE | re.ASCII
)


class PrefixRewriter:
    """Rewrites bare table names to prefixed, explicitly aliased references.

    ``SELECT * FROM member`` becomes ``SELECT * FROM `xe_member` AS `member```
    so the rest of the query can keep using the unprefixed name.
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def rewrite(self, sql: str) -> str:
        """
        Add the table prefix to every table referenced in FROM/JOIN clauses.

        Args:
            sql: SQL text

        Returns:
            Rewritten SQL text, or the input unchanged if no prefix is set
        """
        if not self.prefix:
            return sql
        return _CLAUSE_PATTERN.sub(self._rewrite_clause, sql)

    def _rewrite_clause(self, match: re.Match) -> str:
        tables = [
            _TABLE_PATTERN.sub(self._rewrite_table, part.strip())
            for part in match.group(2).split(",")
        ]
        return f"{match.group(1)} {', '.join(tables)}"

    def _rewrite_table(self, match: re.Match) -> str:
        name = match.group(1)
        alias = match.group(2) or name
        return f"`{self.prefix}{name}` AS `{alias}`"

    def __call__(self, sql: str) -> str:
        return self.rewrite(sql)
