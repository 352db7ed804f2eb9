"""
Orchestration Layer - Workflow Coordination

This layer coordinates the sync and enrichment services.
- Sync: feed pages → store upserts → checkpoint
- Enrichment: store selection → geolocation lookups → null-filling updates
- Scheduling of both services on fixed intervals
"""
