"""Memo Repository — append-only SQL storage of memo revisions.

Invariants:
    - latest() returns the highest revision, history() oldest first
    - A duplicate (application_id, revision) raises MemoConflictError (409)
"""

import pytest

from smartloan.core.errors import MemoConflictError


def _record(application_id="SL202508150930001234", revision=1, status="approved-pending-disbursement"):
    return {
        "applicationId": application_id,
        "revision": revision,
        "status": status,
        "loanDetails": {"approvedAmount": 376696.0},
    }


async def test_append_then_latest(memo_repository):
    await memo_repository.append(_record())
    stored = await memo_repository.latest("SL202508150930001234")
    assert stored == _record()


async def test_latest_is_highest_revision(memo_repository):
    await memo_repository.append(_record())
    await memo_repository.append(_record(revision=2, status="disbursed"))
    stored = await memo_repository.latest("SL202508150930001234")
    assert stored["revision"] == 2
    assert stored["status"] == "disbursed"


async def test_history_oldest_first(memo_repository):
    await memo_repository.append(_record(revision=2, status="cancelled"))
    await memo_repository.append(_record())
    history = await memo_repository.history("SL202508150930001234")
    assert [r["revision"] for r in history] == [1, 2]


async def test_history_scoped_to_application(memo_repository):
    await memo_repository.append(_record())
    await memo_repository.append(_record(application_id="SL202508150930005678"))
    history = await memo_repository.history("SL202508150930005678")
    assert len(history) == 1


async def test_unknown_application(memo_repository):
    assert await memo_repository.latest("SL-missing") is None
    assert await memo_repository.history("SL-missing") == []


async def test_duplicate_revision_rejected(memo_repository):
    await memo_repository.append(_record())
    with pytest.raises(MemoConflictError) as exc_info:
        await memo_repository.append(_record(status="disbursed"))
    assert exc_info.value.http_status == 409
    assert exc_info.value.code == "MEMO_CONFLICT"
    assert len(await memo_repository.history("SL202508150930001234")) == 1
