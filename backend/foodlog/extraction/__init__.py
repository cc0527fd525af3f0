"""
Structured extraction: machine-readable payload first, regex cascade as fallback.
"""
from .extractor import clean_name, extract, extract_with_strategy
from .structured import PAYLOAD_MARKER, parse_payload, split_payload, strip_payload

__all__ = [
    "clean_name",
    "extract",
    "extract_with_strategy",
    "PAYLOAD_MARKER",
    "parse_payload",
    "split_payload",
    "strip_payload",
]
