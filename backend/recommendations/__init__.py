"""
Booth recommendation engine.

Responsibilities:
- Project a visitor's interest profile onto the product sectors.
- Query each active sector for similar booths and merge them into one pool.
- Keep the ranked list as a display window with an overflow queue, and
  track deletions and ratings against the evaluation store.
"""
