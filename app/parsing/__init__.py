"""
app/parsing package marker.
"""

from app.parsing.delimited_text import parse_delimited_text, serialize_table

__all__ = [
    "parse_delimited_text",
    "serialize_table",
]
