"""
Upload file parsers.
"""

from parsers.csv_parser import parse_upload_csv

__all__ = [
    "parse_upload_csv",
]
