"""Low-level table access. Repositories take an open connection and never commit."""
