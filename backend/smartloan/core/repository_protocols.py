"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Memo persistence accessed through MemoRepository only
    - The store is append-only: there is no update or delete in the contract

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; the pure memo functions stay sync and the
      service orchestrates the async calls around them
"""

from typing import Any, Protocol

from smartloan.core.domain_types import ApplicationId


class MemoRepository(Protocol):
    """Contract for disbursement memo persistence — implemented by shell."""
    async def append(self, record: dict[str, Any]) -> None: ...
    async def latest(self, application_id: ApplicationId) -> dict[str, Any] | None: ...
    async def history(self, application_id: ApplicationId) -> list[dict[str, Any]]: ...
