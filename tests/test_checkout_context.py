from datetime import datetime, timedelta, timezone

from gateway_currency.services.checkout_context import (
    PendingTotals,
    clear_checkout_context,
    purge_expired,
    put_pending_totals,
    take_pending_totals,
    utc_now_iso,
)


def _expired(order_id):
    past = datetime.now(timezone.utc) - timedelta(seconds=5)
    return PendingTotals(order_id, 500.00, 184.89, expires_at=utc_now_iso(past))


def test_take_is_one_shot(db):
    put_pending_totals(db, PendingTotals.create(1, 500.00, 184.89, ttl_seconds=60))
    pending = take_pending_totals(db, 1)
    assert (pending.display_total, pending.converted_total) == (500.00, 184.89)
    assert take_pending_totals(db, 1) is None


def test_falls_back_to_stored_record(db):
    put_pending_totals(
        db, PendingTotals.create(7, 80.00, 29.58, ttl_seconds=60, session_key="abc")
    )
    # A later request no longer has the in-process cache
    clear_checkout_context()
    pending = take_pending_totals(db, 7)
    assert pending.order_id == 7
    assert pending.display_total == 80.00
    assert pending.converted_total == 29.58
    assert pending.session_key == "abc"


def test_records_are_keyed_by_order(db):
    put_pending_totals(db, PendingTotals.create(1, 10.00, 3.70, ttl_seconds=60))
    put_pending_totals(db, PendingTotals.create(2, 20.00, 7.40, ttl_seconds=60))
    assert take_pending_totals(db, 2).display_total == 20.00
    assert take_pending_totals(db, 1).display_total == 10.00


def test_expired_record_is_not_returned(db):
    db.upsert_checkout_context(
        order_id=3,
        display_total=500.00,
        converted_total=184.89,
        expires_at=_expired(3).expires_at,
    )
    assert take_pending_totals(db, 3) is None


def test_expired_cache_entry_is_ignored(db):
    put_pending_totals(db, _expired(4))
    assert take_pending_totals(db, 4) is None


def test_purge_expired(db):
    db.upsert_checkout_context(5, 1.00, 0.37, _expired(5).expires_at)
    db.upsert_checkout_context(6, 2.00, 0.74, PendingTotals.create(6, 2.00, 0.74, 60).expires_at)
    assert purge_expired(db) == 1
    assert take_pending_totals(db, 6) is not None


def test_put_purges_stale_records(db):
    db.upsert_checkout_context(8, 1.00, 0.37, _expired(8).expires_at)
    put_pending_totals(db, PendingTotals.create(9, 2.00, 0.74, ttl_seconds=60))
    clear_checkout_context()
    assert db.pop_checkout_context(8, utc_now_iso()) is None
    assert take_pending_totals(db, 9) is not None


def test_pending_totals_expiry():
    assert _expired(1).expired()
    assert not PendingTotals.create(1, 1.0, 0.37, ttl_seconds=60).expired()
