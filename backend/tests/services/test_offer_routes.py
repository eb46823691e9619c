"""Offer Routes — re-pricing a previously generated offer.

Invariants:
    - The offer returned by /applications/offer can be posted back unchanged
    - A denied adjustment is 200 with status "denied" and a null offer
    - The income basis travels at full precision, so the displayed max stays adjustable
"""

import pytest

from tests.builders import application_payload


@pytest.fixture
async def offer(client):
    res = await client.post("/api/v1/applications/offer", json=application_payload())
    return res.json()["offer"]


async def test_adjust_within_range(client, offer):
    res = await client.post(
        "/api/v1/offers/adjust", json={"offer": offer, "new_amount": "200000"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "adjusted"
    assert body["offer"]["recommended_amount"] == 200000.0
    assert body["offer"]["total_repayment"] == 230000.0
    assert body["offer"]["max_amount"] == offer["max_amount"]
    assert body["offer"]["valid_until"] == offer["valid_until"]


async def test_adjust_above_max_denied(client, offer):
    res = await client.post(
        "/api/v1/offers/adjust",
        json={"offer": offer, "new_amount": offer["max_amount"] + 1},
    )
    assert res.status_code == 200
    assert res.json() == {"status": "denied", "offer": None}


async def test_adjust_negative_amount_denied(client, offer):
    res = await client.post(
        "/api/v1/offers/adjust", json={"offer": offer, "new_amount": -5},
    )
    assert res.json()["status"] == "denied"


async def test_adjust_malformed_offer_rejected(client, offer):
    del offer["term_months"]
    res = await client.post(
        "/api/v1/offers/adjust", json={"offer": offer, "new_amount": 1000},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_adjust_to_displayed_max_with_fractional_income(client):
    payload = application_payload()
    payload["incomes"].append({**payload["incomes"][0], "pay_period": "2025-05"})
    for income, gross in zip(payload["incomes"], ("85000", "85000", "85001")):
        income["gross_salary"] = income["net_salary"] = gross
    offer = (await client.post("/api/v1/applications/offer", json=payload)).json()["offer"]
    assert offer["gross_monthly_income"].startswith("85000.3333")

    res = await client.post(
        "/api/v1/offers/adjust",
        json={"offer": offer, "new_amount": offer["max_amount"]},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "adjusted"
    assert body["offer"]["recommended_amount"] == offer["max_amount"]
