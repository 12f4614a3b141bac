"""
Provisioner Test Suite.

This package contains:
- unit/: Unit tests (SDK models, client, resolvers, config)
- integration/: Engine and CLI runs against the in-memory fake vault
"""
