"""
Booth catalog ingestion.

Responsibilities:
- Read the raw exhibitor export (JSON lines).
- Normalize it into the canonical Booth schema.
- Persist the processed catalog locally for embedding and search.
"""
