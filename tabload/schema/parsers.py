"""
Cell parsers shared by type inference and value coercion

Each parser takes a raw cell and returns the typed value, or None when the
cell does not parse. Inference and coercion use the same parsers so that a
column inferred as Int64 coerces without surprises.
"""

import math
import re
from datetime import date, datetime
from typing import Optional, Sequence

import numpy as np

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
# A layout made only of directives, such as %Y%m%d, has no separators to anchor it
_COMPACT_LAYOUT = re.compile(r"(?:%[A-Za-z])+")
_INT64_MIN = int(np.iinfo(np.int64).min)
_INT64_MAX = int(np.iinfo(np.int64).max)

# Layouts tried, in order, when no date pattern is configured
DEFAULT_DATE_FORMATS: Sequence[str] = (
    "%Y-%m-%d",
    "%Y%m%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
)


def parse_int64(text: str) -> Optional[int]:
    """Parse a base-10 integer that fits a signed 64-bit column"""
    candidate = text.strip()
    if not _INT_PATTERN.fullmatch(candidate):
        return None
    value = int(candidate)
    if value < _INT64_MIN or value > _INT64_MAX:
        return None
    return value


def parse_float64(text: str) -> Optional[float]:
    """Parse a floating-point literal; overflow to infinity is a failure"""
    candidate = text.strip()
    if not candidate or "_" in candidate:
        return None
    try:
        value = float(candidate)
    except ValueError:
        return None
    if math.isinf(value) and "inf" not in candidate.lower():
        return None
    return value


class DateParser:
    """
    Parses dates against one caller pattern or the default layouts

    A caller pattern is applied with plain ``strptime``, as are the default
    layouts with separators, so ``1/5/2023`` and ``2023-1-5`` parse. Compact
    all-digit layouts are strict: the cell must read back identically, which
    keeps six-digit numbers such as ``123456`` from passing as ``%Y%m%d``
    dates. The last layout that matched is tried first on the next cell,
    since a column almost always uses a single layout.
    """

    def __init__(self, date_format: Optional[str] = None):
        self.date_format = date_format
        self._formats = [date_format] if date_format else list(DEFAULT_DATE_FORMATS)
        self._strict = date_format is None

    def __call__(self, text: str) -> Optional[date]:
        candidate = text.strip()
        if not candidate:
            return None
        for position, fmt in enumerate(self._formats):
            parsed = self._try(candidate, fmt)
            if parsed is not None:
                if position:
                    self._formats.insert(0, self._formats.pop(position))
                return parsed
        return None

    def _try(self, candidate: str, fmt: str) -> Optional[date]:
        try:
            parsed = datetime.strptime(candidate, fmt)
        except ValueError:
            return None
        if self._strict and _COMPACT_LAYOUT.fullmatch(fmt) and parsed.strftime(fmt) != candidate:
            return None
        return parsed.date()
