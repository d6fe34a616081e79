"""
Column naming policy for header-derived names
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List

# Names Snowflake refuses as unquoted identifiers, plus "index"
RESERVED_WORDS: FrozenSet[str] = frozenset({
    "account", "all", "alter", "and", "any", "as", "between", "by", "case",
    "cast", "check", "column", "connect", "connection", "constraint",
    "create", "cross", "current", "current_date", "current_time",
    "current_timestamp", "current_user", "database", "delete", "distinct",
    "drop", "else", "exists", "false", "following", "for", "from", "full",
    "grant", "group", "gscluster", "having", "ilike", "in", "increment",
    "index", "inner", "insert", "intersect", "into", "is", "issue", "join",
    "lateral", "left", "like", "localtime", "localtimestamp", "minus",
    "natural", "not", "null", "of", "on", "or", "order", "organization",
    "qualify", "regexp", "revoke", "right", "rlike", "row", "rows", "sample",
    "schema", "select", "set", "some", "start", "table", "tablesample",
    "then", "to", "trigger", "true", "try_cast", "union", "unique", "update",
    "using", "values", "view", "when", "whenever", "where", "with",
})

_SEPARATED_TOKEN = re.compile(r"[._]+([^._])")


def to_camel_case(name: str) -> str:
    """
    Join separator-delimited tokens into one camel-case identifier

    Spaces count as underscores and the input is lower-cased first, so
    ``"Series ID"`` becomes ``"seriesId"`` and ``"area.code_x"`` becomes
    ``"areaCodeX"``.
    """
    lowered = name.strip().replace(" ", "_").lower()
    joined = _SEPARATED_TOKEN.sub(lambda match: match.group(1).upper(), lowered)
    return joined.rstrip("._")


@dataclass(frozen=True)
class NamingPolicy:
    """
    How header names become column names

    Attributes:
        camel_case: Apply to_camel_case first
        lowercase_names: Store the lower-cased name. Off by default; the
            reserved-word comparison is always made on a lower-cased copy
        reserved: Names that get ``suffix`` appended
        suffix: Disambiguating suffix for reserved names
    """
    camel_case: bool = False
    lowercase_names: bool = False
    reserved: FrozenSet[str] = RESERVED_WORDS
    suffix: str = "1"

    def apply(self, name: str) -> str:
        if self.camel_case:
            name = to_camel_case(name)
        check = name.lower()
        if self.lowercase_names:
            name = check
        if check in self.reserved:
            name += self.suffix
        return name

    def apply_all(self, names: Iterable[str]) -> List[str]:
        return [self.apply(name) for name in names]
