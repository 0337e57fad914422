from __future__ import annotations

import asyncio
import json

from fastapi import HTTPException


def _seed(store):
    store.sadd("partner:visits:LZ001", "qr:a@x.com:LZ001:v1", "qr:b@x.com:LZ001:v2")
    store.hset(
        "qr:a@x.com:LZ001:v1",
        email="a@x.com",
        createdAt="2024-01-01T10:00:00Z",
        visited="true",
        pointsAwarded="25",
        payload=json.dumps({"ticket": "Family", "numPeople": "4", "totalPrice": 2500}),
    )
    store.hset(
        "qr:b@x.com:LZ001:v2",
        email="b@x.com",
        createdAt="2024-01-02T10:00:00Z",
        payload=json.dumps({"attractionName": "Laser Zone", "estimatedPoints": 10}),
    )


def test_health_check(client):
    r = client.get("/api/v1/utils/health-check/")
    assert r.status_code == 200
    assert r.json() is True


def test_store_check(client, store):
    r = client.get("/api/v1/utils/store-check/")
    assert r.status_code == 200

    store.down = True
    r = client.get("/api/v1/utils/store-check/")
    assert r.status_code == 503
    assert r.json()["code"] == 503001


def test_partner_ledger_endpoint(client, store):
    _seed(store)

    r = client.get("/api/v1/partner/lz001")
    assert r.status_code == 200
    body = r.json()
    assert body["code"] == 0
    data = body["data"]
    assert data["partnerId"] == "lz001"
    assert data["partnerLabel"] == "Laser Zone"
    assert [s["visitId"] for s in data["submissions"]] == ["v2", "v1"]
    assert data["submissions"][1]["numPeople"] == "4"
    assert data["submissions"][1]["totalPrice"] == 2500
    assert data["metrics"]["count"] == 2
    assert data["metrics"]["points"] == 35
    assert data["metrics"]["notVisited"] == 1
    assert "warnings" not in data


def test_partner_ledger_unknown_partner(client):
    r = client.get("/api/v1/partner/unknown")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["submissions"] == []
    assert data["partnerLabel"] is None
    assert set(data["metrics"].values()) == {0}


def test_partner_ledger_diagnostics(client, store):
    _seed(store)
    store.failing = {"qr:b@x.com:LZ001:v2"}

    r = client.get("/api/v1/partner/LZ001?diagnostics=true")
    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data["submissions"]) == 1
    assert data["warnings"] == [
        {"key": "qr:b@x.com:LZ001:v2", "operation": "hgetall", "error": "Timeout reading qr:b@x.com:LZ001:v2"}
    ]


def test_partner_ledger_store_down(client, store):
    store.down = True
    r = client.get("/api/v1/partner/LZ001")
    assert r.status_code == 503
    body = r.json()
    assert body["code"] == 503001
    assert body["data"] is None


def test_bonus_user_points_endpoint(client, store):
    _seed(store)
    store.sadd("user:visits:a@x.com", "qr:a@x.com:LZ001:v1")

    r = client.get("/api/v1/bonus/user-points", params={"email": "A@x.com"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["user"] == {
        "email": "a@x.com",
        "totalPoints": 25,
        "redeemedPoints": 0,
        "availablePoints": 25,
    }
    assert data["visits"][0]["status"] == "visited"
    assert data["visits"][0]["ticketType"] == "Family"
    assert data["pointsHistory"][0]["type"] == "earned"
    assert data["statistics"]["visitsByPartner"][0]["partnerId"] == "lz001"


def test_bonus_requires_email(client):
    r = client.get("/api/v1/bonus/user-points")
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == 422000
    assert body["data"]["errors"]


def test_http_exception_handler_dict_branch():
    from zabava import main as app_main

    exc = HTTPException(status_code=418, detail={"code": 418001, "message": "teapot"})
    resp = asyncio.run(app_main.http_error_handler(None, exc))  # type: ignore[arg-type]
    assert resp.status_code == 418
    assert json.loads(resp.body)["code"] == 418001
