"""Pydantic Schemas — request/response validation for API endpoints and policy documents.

Invariants:
    - Schemas validate at system boundary (user input, API responses, policy files)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from core records: schemas are API contracts, records are domain values
"""
