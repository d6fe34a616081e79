"""Source retrieval and conversion"""

from .http_fetcher import HttpFetcher
from .xls_converter import LegacySpreadsheetConverter
from .source_resolver import SourceResolver

__all__ = ['HttpFetcher', 'LegacySpreadsheetConverter', 'SourceResolver']
