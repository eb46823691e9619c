"""API Dependencies — FastAPI providers for the policy store and underwriting service.

Invariants:
    - One PolicyStore per process, initialized on startup (init_policy_store)
    - Services are request-scoped; only get_memo_service opens a DB session

Design Decisions:
    - Module-level singleton like infrastructure.database.db_manager: lifespan owns it
    - get_policy_store falls back to loading from settings when startup did not run
      (ASGI test transports skip lifespan)
"""

from pathlib import Path

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smartloan.config import get_settings
from smartloan.core.policy import PolicyStore
from smartloan.infrastructure.database import get_db
from smartloan.infrastructure.memo_repository import SqlMemoRepository
from smartloan.infrastructure.policy_loader import load_policy_store
from smartloan.services.underwriting import UnderwritingService

policy_store: PolicyStore | None = None


def init_policy_store(path: str | Path | None) -> PolicyStore:
    global policy_store
    policy_store = load_policy_store(path)
    return policy_store


def get_policy_store() -> PolicyStore:
    if policy_store is None:
        return init_policy_store(get_settings().policy_file)
    return policy_store


def get_underwriting_service(
    store: PolicyStore = Depends(get_policy_store),
) -> UnderwritingService:
    """Service without persistence: validate, offer and adjust touch no database."""
    return UnderwritingService(store, id_prefix=get_settings().application_id_prefix)


async def get_memo_service(
    db: AsyncSession = Depends(get_db),
    store: PolicyStore = Depends(get_policy_store),
) -> UnderwritingService:
    return UnderwritingService(
        store, SqlMemoRepository(db), id_prefix=get_settings().application_id_prefix,
    )
