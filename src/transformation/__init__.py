"""
Transformation Layer - Pure, Deterministic Functions

This layer contains the mapping and validation rules.
- Pure functions (input → output)
- No I/O operations
- Unit testable
"""
