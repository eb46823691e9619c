"""ORM Models — SQLAlchemy declarative models for persisted SmartLoan records.

Invariants:
    - All models inherit from Base (db/base.py)
    - Memo rows are append-only: a revision is inserted, never updated

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from smartloan.models.disbursement_memo import DisbursementMemoRow  # noqa: F401
