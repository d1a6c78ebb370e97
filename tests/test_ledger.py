from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import PersistenceError
from app.models.transaction import TRANSACTION_FAILED, TRANSACTION_PENDING, TRANSACTION_SUCCESS


@pytest.fixture
async def user(user_service):
    return await user_service.get_or_create_user("256700000002")


async def test_create_writes_pending_row(ledger, user):
    await ledger.create(user.id, "bundle", 5000, "256772123456", "LYCA_1_a", {
        "bundle_token": "tok-2",
        "bundle_name": "Weekly 5GB",
    })

    transaction = await ledger.get("LYCA_1_a")
    assert transaction.status == TRANSACTION_PENDING
    assert transaction.bundle_name == "Weekly 5GB"
    assert transaction.completed_at is None


async def test_duplicate_transaction_id_raises(ledger, user):
    await ledger.create(user.id, "airtime", 1000, "256772123456", "LYCA_1_dup")

    with pytest.raises(PersistenceError):
        await ledger.create(user.id, "airtime", 1000, "256772123456", "LYCA_1_dup")


async def test_update_status_is_terminal_once(ledger, user):
    await ledger.create(user.id, "airtime", 1000, "256772123456", "LYCA_1_b")

    assert await ledger.update_status("LYCA_1_b", TRANSACTION_SUCCESS, provider_result={"referenceId": "REF-9"})
    assert not await ledger.update_status("LYCA_1_b", TRANSACTION_FAILED, error_message="late failure")

    transaction = await ledger.get("LYCA_1_b")
    assert transaction.status == TRANSACTION_SUCCESS
    assert transaction.provider_transaction_id == "REF-9"
    assert transaction.error_message is None
    assert transaction.completed_at is not None


async def test_update_status_never_raises(ledger, user, monkeypatch):
    await ledger.create(user.id, "airtime", 1000, "256772123456", "LYCA_1_c")

    def broken_session():
        raise OperationalError("UPDATE", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger.database, "session", broken_session)

    assert await ledger.update_status("LYCA_1_c", TRANSACTION_FAILED, error_message="x") is False


async def test_update_unknown_transaction_returns_false(ledger):
    assert not await ledger.update_status("LYCA_missing", TRANSACTION_SUCCESS)


async def test_history_is_most_recent_first_and_scoped(ledger, user, user_service):
    other = await user_service.get_or_create_user("256700000099")
    for i in range(12):
        await ledger.create(user.id, "airtime", 1000 + i, "256772123456", f"LYCA_h_{i}")
    await ledger.create(other.id, "airtime", 1000, "256772123456", "LYCA_other")

    history = await ledger.history(user.id)

    assert len(history) == 10
    assert history[0].transaction_id == "LYCA_h_11"
    assert all(t.user_id == user.id for t in history)


async def test_stats_sum_successful_spend_only(ledger, user):
    await ledger.create(user.id, "bundle", 5000, "256772123456", "LYCA_s_1")
    await ledger.create(user.id, "airtime", 2000, "256772123456", "LYCA_s_2")
    await ledger.create(user.id, "airtime", 9000, "256772123456", "LYCA_s_3")
    await ledger.update_status("LYCA_s_1", TRANSACTION_SUCCESS)
    await ledger.update_status("LYCA_s_2", TRANSACTION_SUCCESS)
    await ledger.update_status("LYCA_s_3", TRANSACTION_FAILED, error_message="rejected")

    stats = await ledger.stats(user.id)

    assert stats["total_transactions"] == 3
    assert stats["successful_transactions"] == 2
    assert stats["failed_transactions"] == 1
    assert stats["total_spent"] == 7000


async def test_count_recent_ignores_failed_and_other_numbers(ledger, user):
    await ledger.create(user.id, "airtime", 1000, "256772123456", "LYCA_r_1")
    await ledger.create(user.id, "airtime", 1000, "256772123456", "LYCA_r_2")
    await ledger.create(user.id, "airtime", 1000, "256701111111", "LYCA_r_3")
    await ledger.update_status("LYCA_r_2", TRANSACTION_FAILED, error_message="rejected")

    since = datetime.utcnow() - timedelta(hours=1)
    assert await ledger.count_recent("256772123456", since) == 1
    assert await ledger.count_recent("256772123456", datetime.utcnow() + timedelta(minutes=1)) == 0
