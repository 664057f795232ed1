"""
Persistence layer.

Responsibilities:
- Read a user's evaluation snapshot and write tombstones and ratings.
- Persist the ranked recommendation list so a session can be restored.
- Run the booth similarity search stored next to the evaluation tables.
"""
