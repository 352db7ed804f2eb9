"""
Extract Layer - Pure I/O to External APIs

This layer handles all external data fetching with no business logic.
- No imports from transform or load layers
- Clients return validated raw payloads
- Handles API rate limiting and error classification
"""
