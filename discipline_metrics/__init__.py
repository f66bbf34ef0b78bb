"""Core (UI-agnostic) discipline metrics logic.

This package contains:
- row records and derived view records
- view settings normalization
- data loading (CSV -> rows)
- view compute functions (JSON-serializable payloads)
"""
