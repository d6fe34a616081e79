"""
tabload - load delimited text and spreadsheet sources into new Snowflake tables
"""

__version__ = "1.0.0"
