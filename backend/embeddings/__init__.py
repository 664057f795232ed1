"""
Embeddings layer for semantic search.

Responsibilities:
- Load a multilingual sentence-transformer model.
- Precompute embeddings for every booth in the catalog (offline).
- Encode sector seeds at request time.
- Serve a local cosine-similarity index with the same contract as the
  hosted booth search.
"""
