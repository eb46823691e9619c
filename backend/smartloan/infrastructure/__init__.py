"""Infrastructure Layer — persistence, configuration loading, and cross-cutting concerns.

Invariants:
    - Infrastructure may import core types; core never imports infrastructure
    - SQLAlchemy errors mapped to core errors: DatabaseError, or MemoConflictError for a
      duplicate memo revision

Design Decisions:
    - Repositories satisfy core Protocols structurally (no inheritance)
"""
