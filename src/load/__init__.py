"""
Load Layer - Data Persistence

This layer handles all data persistence operations.
- DuckDB store for users and the sync checkpoint
- Select/upsert/update primitives, no sync or enrichment logic
"""
