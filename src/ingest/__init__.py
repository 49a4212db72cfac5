"""Schema-driven ingestion.

This package coerces loosely-typed sources into typed columns and
assembles them into schema-conformant record batches.
"""
