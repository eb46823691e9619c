"""Services Layer — the impure shell around the pure underwriting core.

Invariants:
    - Services read the clock and generate ids; core functions receive them as arguments
    - Persistence goes through core.repository_protocols.MemoRepository

Design Decisions:
    - One service class per use-case family (ADR: impureim sandwich)
"""
