"""Normalization utilities.

Parsing of heterogeneous numeric/date values and the write-path sanitizer
and builder that turn raw payloads into event records.
"""
