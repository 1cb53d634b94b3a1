from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from contentgen.models.payment import Payment
from contentgen.models.subscription import Subscription
from contentgen.routes import subscription as subscription_routes
from contentgen.services import billing, ledger, quota


def _subs(db, user_id):
    db.expire_all()
    return db.query(Subscription).filter(Subscription.user_id == user_id).all()


def test_activate_creates_window_and_payment(db, make_user):
    user_id, _ = make_user()
    now = datetime(2030, 5, 1, 12, 0)
    sub = ledger.activate(db, user_id, now=now)

    assert sub.status == "active"
    assert sub.start_date == now
    assert sub.end_date == now + timedelta(days=30)
    payments = db.query(Payment).filter(Payment.subscription_id == sub.id).all()
    assert len(payments) == 1
    assert float(payments[0].amount) == 10.0
    assert payments[0].state == "completed"


def test_activate_twice_keeps_one_effective_window(db, make_user):
    user_id, _ = make_user()
    first = ledger.activate(db, user_id, now=datetime.now())
    second = ledger.activate(db, user_id, now=datetime.now() + timedelta(days=3))

    assert first.id == second.id
    subs = _subs(db, user_id)
    assert len([s for s in subs if s.status == "active"]) == 1
    assert db.query(Payment).filter(Payment.subscription_id == second.id).count() == 2
    assert quota.evaluate(db, user_id).tier == "premium"


def test_activate_unknown_user(db):
    with pytest.raises(LookupError):
        ledger.activate(db, 987654)


def test_cancel_marks_active_records(db, make_user):
    user_id, _ = make_user()
    ledger.activate(db, user_id)
    assert ledger.cancel(db, user_id) == 1
    assert [s.status for s in _subs(db, user_id)] == ["cancelled"]
    assert quota.evaluate(db, user_id).tier == "free"
    assert ledger.cancel(db, user_id) == 0


def test_status_activate_cancel_endpoints(client, make_user):
    user_id, headers = make_user()

    r = client.get(f"/subscription/user/{user_id}", headers=headers)
    assert r.json() == {"success": True, "subscription": None,
                        "isPremium": False, "subscriptionType": "free"}

    r = client.post("/subscription/activate", headers=headers,
                    json={"userId": user_id, "paymentMethod": "Visa"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert "endDate" in r.json()

    r = client.get(f"/subscription/user/{user_id}", headers=headers)
    body = r.json()
    assert body["isPremium"] is True
    assert body["subscription"]["status"] == "active"

    r = client.get(f"/generations/can-generate/{user_id}", headers=headers)
    assert r.json()["subscriptionType"] == "premium"
    assert r.json()["remaining"] == "unlimited"

    r = client.post("/subscription/cancel", headers=headers, json={"userId": user_id})
    assert r.json() == {"success": True, "message": "Subscription cancelled successfully",
                        "cancelled": 1}
    r = client.get(f"/subscription/user/{user_id}", headers=headers)
    assert r.json()["isPremium"] is False


def test_activate_for_someone_else_is_forbidden(client, make_user):
    _, headers = make_user()
    other_id, _ = make_user()
    r = client.post("/subscription/activate", headers=headers, json={"userId": other_id})
    assert r.status_code == 403


def test_create_checkout(client, make_user, monkeypatch):
    user_id, headers = make_user()
    calls = {}

    def fake_create(**kwargs):
        calls.update(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.example/cs_test_1")

    monkeypatch.setattr(billing.settings, "STRIPE_SECRET_KEY", "sk_test")
    monkeypatch.setattr(billing.stripe.checkout.Session, "create", fake_create)

    r = client.post("/subscription/create-checkout", headers=headers, json={"userId": user_id})
    assert r.status_code == 200
    assert r.json()["sessionId"] == "cs_test_1"
    assert r.json()["checkoutUrl"] == "https://checkout.example/cs_test_1"
    assert calls["mode"] == "payment"
    assert calls["metadata"] == {"userId": str(user_id)}
    assert calls["line_items"][0]["price_data"]["unit_amount"] == 1000


def test_create_checkout_without_stripe_key(client, make_user, monkeypatch):
    user_id, headers = make_user()
    monkeypatch.setattr(billing.settings, "STRIPE_SECRET_KEY", None)
    r = client.post("/subscription/create-checkout", headers=headers, json={"userId": user_id})
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Payment provider is not configured"}


def test_webhook_activates_subscription(client, db, make_user, monkeypatch):
    user_id, _ = make_user()
    event = {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_1", "metadata": {"userId": str(user_id)}}},
    }
    seen = {}

    def fake_construct(payload, sig_header):
        seen["payload"] = payload
        seen["sig"] = sig_header
        return event

    monkeypatch.setattr(billing, "construct_event", fake_construct)

    r = client.post("/subscription/webhook", content=b'{"raw": true}',
                    headers={"Stripe-Signature": "t=1,v1=abc"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "received": True}
    assert seen == {"payload": b'{"raw": true}', "sig": "t=1,v1=abc"}

    subs = _subs(db, user_id)
    assert len(subs) == 1
    payment = db.query(Payment).filter(Payment.subscription_id == subs[0].id).one()
    assert payment.method == "Stripe"


def test_webhook_rejects_bad_signature(client, monkeypatch):
    monkeypatch.setattr(billing.settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    r = client.post("/subscription/webhook", content=b"{}",
                    headers={"Stripe-Signature": "t=1,v1=forged"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert r.json()["message"].startswith("Webhook Error")


def test_webhook_ignores_other_events(client, monkeypatch):
    monkeypatch.setattr(billing, "construct_event",
                        lambda payload, sig: {"id": "evt_2", "type": "invoice.paid",
                                              "data": {"object": {}}})
    r = client.post("/subscription/webhook", content=b"{}")
    assert r.status_code == 200


def test_webhook_runs_ledger_work_in_threadpool(client, db, make_user, monkeypatch):
    user_id, _ = make_user()
    event = {
        "id": "evt_3",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_3", "metadata": {"userId": str(user_id)}}},
    }
    monkeypatch.setattr(billing, "construct_event", lambda payload, sig: event)

    offloaded = []
    real_run_in_threadpool = subscription_routes.run_in_threadpool

    async def recording_run_in_threadpool(func, *args, **kwargs):
        offloaded.append(func)
        return await real_run_in_threadpool(func, *args, **kwargs)

    monkeypatch.setattr(subscription_routes, "run_in_threadpool", recording_run_in_threadpool)

    r = client.post("/subscription/webhook", content=b"{}")
    assert r.status_code == 200
    assert offloaded == [subscription_routes.handle_event]
    assert len(_subs(db, user_id)) == 1


def test_handle_event_without_user_id(db):
    subscription_routes.handle_event(db, {
        "id": "evt_4",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_4", "metadata": {}}},
    })
    subscription_routes.handle_event(db, {
        "id": "evt_5",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_5", "metadata": {"userId": "987654"}}},
    })
    assert _subs(db, 987654) == []
