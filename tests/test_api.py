from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient

STATUS_OK = 200
STATUS_NOT_FOUND = 404
STATUS_UNPROCESSABLE = 422


def _payload(asset_id: Any = 42, price: str = "100", **kwargs: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "assetId": asset_id,
        "seller": "0xSeller",
        "price": price,
        "assetName": f"Hero {asset_id}",
        "assetLevel": 3,
        "assetStats": {"strength": 5, "agility": 4, "intelligence": 7, "rarity": "Rare"},
    }
    data.update(kwargs)
    return data


def test_healthz(client: TestClient) -> None:
    r = client.get("/healthz")
    assert r.status_code == STATUS_OK
    data = r.json()
    assert data["status"] == "ok"
    assert "version" in data
    assert data["redis"] is None
    assert r.headers.get("X-Request-ID")


def test_request_id_is_echoed(client: TestClient) -> None:
    r = client.get("/healthz", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_sold_event_records_sale(client: TestClient) -> None:
    r = client.post("/events/listing_sold", json=_payload(buyer="0xBuyer"))
    assert r.status_code == STATUS_OK
    data = r.json()
    assert data["count"] == 1
    record = data["records"][0]
    assert record["kind"] == "Sale"
    assert record["asset_id"] == "42"
    assert record["price"] == "100"
    assert record["buyer"] == "0xBuyer"


def test_invalid_price_is_rejected(client: TestClient) -> None:
    r = client.post("/events/listing_created", json=_payload(price="-1"))
    assert r.status_code == STATUS_UNPROCESSABLE
    assert client.get("/transactions").json()["count"] == 0


def test_unknown_event_is_rejected(client: TestClient) -> None:
    r = client.post("/events/listing_burned", json=_payload())
    assert r.status_code == STATUS_UNPROCESSABLE


def test_transaction_filters(client: TestClient) -> None:
    client.post("/events/listing_created", json=_payload(1))
    client.post("/events/listing_sold", json=_payload(1, buyer="0xBUYER"))
    client.post("/events/listing_cancelled", json=_payload(2, seller="0xOther"))

    assert client.get("/transactions").json()["count"] == 3
    assert client.get("/transactions", params={"kind": "Sale"}).json()["count"] == 1
    assert client.get("/transactions", params={"asset_id": "1"}).json()["count"] == 2
    by_buyer = client.get("/transactions", params={"address": "0xbuyer"}).json()
    assert [tx["kind"] for tx in by_buyer["items"]] == ["Sale"]
    narrowed = client.get("/transactions", params={"address": "0xseller", "kind": "Listing"}).json()
    assert narrowed["count"] == 1


def test_price_history(client: TestClient) -> None:
    client.post("/events/listing_created", json=_payload(7, "50"))
    client.post("/events/listing_sold", json=_payload(7, "80", buyer="0xB"))

    r = client.get("/assets/7/history")
    assert r.status_code == STATUS_OK
    data = r.json()
    assert [p["price"] for p in data["price_points"]] == ["50"]
    assert data["total_sales"] == 1
    assert data["highest_price"] == "80"

    assert client.get("/assets/unknown/history").status_code == STATUS_NOT_FOUND


def test_stats_and_rankings(client: TestClient) -> None:
    client.post("/events/listing_sold", json=_payload(1, "100", buyer="0xB"))
    client.post("/events/listing_sold", json=_payload(2, "300", buyer="0xB"))
    client.post("/events/listing_sold", json=_payload(2, "500", buyer="0xB"))

    stats = client.get("/stats/global").json()
    assert stats["total_volume"] == "900"
    assert stats["average_sale_price"] == "300"
    assert stats["total_sales"] == 3

    top = client.get("/stats/top-selling", params={"count": 1}).json()
    assert [it["asset_id"] for it in top["items"]] == ["2"]
    valuable = client.get("/stats/most-valuable").json()
    assert [it["asset_id"] for it in valuable["items"]] == ["2", "1"]
    assert valuable["items"][0]["highest_price"] == "500"

    assert client.get("/stats/top-selling", params={"count": 0}).status_code == STATUS_UNPROCESSABLE


def test_rarity_endpoints(client: TestClient) -> None:
    client.post("/events/listing_sold", json=_payload(1, "100", buyer="0xB"))
    client.post("/events/listing_sold", json=_payload(2, "300", buyer="0xB"))
    client.post(
        "/events/listing_sold",
        json=_payload(3, "999", buyer="0xB", assetStats={"strength": 1}),
    )

    assert client.get("/rarity/sales").json() == {"Rare": 2}
    assert client.get("/rarity/average-price").json() == {"Rare": "200"}
    tiers = client.get("/rarity/tiers").json()
    assert [t["tier"] for t in tiers] == ["Common", "Uncommon", "Rare", "Epic", "Legendary", "Mythic"]


def test_export_excel(client: TestClient) -> None:
    client.post("/events/listing_sold", json=_payload(1, "100", buyer="0xB"))
    r = client.get("/export/excel/analytics")
    assert r.status_code == STATUS_OK
    assert r.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert r.content[:2] == b"PK"
