"""Schema naming, inference and coercion"""

from .naming import NamingPolicy, RESERVED_WORDS, to_camel_case
from .parsers import DEFAULT_DATE_FORMATS, DateParser, parse_float64, parse_int64
from .builder import TableSchemaBuilder, build_table_schema
from .inference import TypeInferenceEngine, impute_types
from .coercion import RowCoercer, TypedRow, coerce

__all__ = [
    'NamingPolicy', 'RESERVED_WORDS', 'to_camel_case',
    'DEFAULT_DATE_FORMATS', 'DateParser', 'parse_float64', 'parse_int64',
    'TableSchemaBuilder', 'build_table_schema',
    'TypeInferenceEngine', 'impute_types',
    'RowCoercer', 'TypedRow', 'coerce',
]
