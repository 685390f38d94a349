"""Stripe webhook route — signed delivery drives settlement exactly once."""

import hashlib
import hmac
import json
import time


def _signed(event: dict, secret: str = "whsec_api_tests") -> tuple[bytes, dict]:
    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return payload, {
        "Stripe-Signature": f"t={timestamp},v1={signature}",
        "Content-Type": "application/json",
    }


def _completed(metadata: dict, event_id: str = "evt_1") -> dict:
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_1", "metadata": metadata}},
    }


async def _checked_out_booking(client, ids) -> str:
    booking = (await client.post("/api/bookings", json={
        "item_id": ids["rent_item"], "borrower_id": ids["renter"],
        "start_date": "2024-03-01", "end_date": "2024-03-03",
    })).json()
    await client.post("/api/pay/checkout", json={"type": "rent", "id": booking["id"]})
    return booking["id"]


async def test_completion_approves_booking_once(client, ids, seeded_ledger):
    ledger, _ = seeded_ledger
    booking_id = await _checked_out_booking(client, ids)
    payload, headers = _signed(_completed({"type": "rent", "bookingId": booking_id}))

    first = await client.post("/webhooks/stripe", content=payload, headers=headers)
    second = await client.post("/webhooks/stripe", content=payload, headers=headers)

    assert first.status_code == 200
    assert first.json() == {"received": True}
    assert second.status_code == 200
    snapshot = await ledger.read()
    assert snapshot.find_booking(booking_id).status.value == "approved"
    assert [a.action for a in snapshot.audit].count("rent_paid_approved") == 1


async def test_approved_booking_still_blocks_dates(client, ids):
    booking_id = await _checked_out_booking(client, ids)
    payload, headers = _signed(_completed({"type": "rent", "bookingId": booking_id}))
    await client.post("/webhooks/stripe", content=payload, headers=headers)

    res = await client.post("/api/bookings", json={
        "item_id": ids["rent_item"], "borrower_id": ids["newbie"],
        "start_date": "2024-03-03", "end_date": "2024-03-04",
    })
    assert res.status_code == 409


async def test_bad_signature_is_400(client, ids):
    booking_id = await _checked_out_booking(client, ids)
    payload, headers = _signed(
        _completed({"type": "rent", "bookingId": booking_id}), secret="whsec_wrong",
    )
    res = await client.post("/webhooks/stripe", content=payload, headers=headers)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "WEBHOOK_SIGNATURE_INVALID"


async def test_missing_signature_is_400(client):
    res = await client.post("/webhooks/stripe", content=b"{}")
    assert res.status_code == 400


async def test_unknown_transaction_is_acknowledged(client):
    payload, headers = _signed(_completed({"type": "sell", "orderId": "ghost"}))
    res = await client.post("/webhooks/stripe", content=payload, headers=headers)
    assert res.status_code == 200
    assert res.json() == {"received": True}


async def test_other_event_types_are_acknowledged(client):
    payload, headers = _signed({"id": "evt_9", "type": "account.updated", "data": {"object": {}}})
    res = await client.post("/webhooks/stripe", content=payload, headers=headers)
    assert res.status_code == 200
