# tests/api/test_offer_routes.py
import pytest
from fastapi.testclient import TestClient

from marketplace.api.web_app import app
from marketplace.core.dependencies import get_search_indexer
from marketplace.db.base import get_db_session
from marketplace.db.models import Business, Offer, OfferView
from marketplace.db.models.enums import OfferStatus, UserPermission
from marketplace.services.error_reporter import get_error_reporter
from marketplace.storage import get_blob_store


def auth(user):
    return {"Authorization": f"Bearer token-{user.email}"}


@pytest.fixture(scope="function")
def client(db_session, search_indexer, blob_store, error_reporter):
    """Test client wired to the test database and in-memory collaborators."""

    def override_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_search_indexer] = lambda: search_indexer
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_error_reporter] = lambda: error_reporter

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def stranger(make_user, db_session):
    other_business = Business(name="Other Co")
    db_session.add(other_business)
    db_session.commit()
    return make_user(email="stranger@example.com", business_id=other_business.id)


@pytest.fixture(scope="function")
def admin(make_user):
    return make_user(email="admin@example.com", permissions=[UserPermission.ADMIN_OFFERS])


# Authentication


def test_missing_token_is_rejected(client):
    response = client.get("/api/v1/offers")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_unknown_token_is_rejected(client):
    response = client.get("/api/v1/offers", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid API key"


# Create / update


def test_create_offer(client, seller, product, offer_data, search_indexer):
    response = client.post(
        f"/api/v1/products/{product.id}/offers", json=offer_data, headers=auth(seller)
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Mono 410 Panel - Q3 stock"
    assert data["status"] == "draft"
    assert data["user_id"] == seller.id
    assert data["lowest_price"] == 99.5
    assert len(data["prices"]) == 3
    assert [incoterm["name"] for incoterm in data["incoterms"]] == ["EXW"]
    assert sorted(country["country_code"] for country in data["countries"]) == ["BY", "RU"]


def test_create_offer_without_sell_permission(client, make_user, product, offer_data):
    buyer = make_user(email="buyer@example.com", permissions=[])

    response = client.post(
        f"/api/v1/products/{product.id}/offers", json=offer_data, headers=auth(buyer)
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "You are not allowed to sell products."


def test_create_offer_for_missing_product(client, seller, offer_data):
    response = client.post("/api/v1/products/999/offers", json=offer_data, headers=auth(seller))

    assert response.status_code == 404


def test_create_wp_offer_without_module_power(client, seller, make_product, offer_data, db_session):
    product = make_product(module_power=None)
    offer_data["price_display_unit"] = "wp"
    offer_data["prices"] = [{"price_wp": 0.2}]

    response = client.post(
        f"/api/v1/products/{product.id}/offers", json=offer_data, headers=auth(seller)
    )

    assert response.status_code == 400
    assert "price_display_unit" in response.json()["errors"]
    assert db_session.query(Offer).count() == 0


def test_create_offer_with_two_base_tiers(client, seller, product, offer_data):
    offer_data["prices"] = [{"price": 10.0}, {"price": 9.0}]

    response = client.post(
        f"/api/v1/products/{product.id}/offers", json=offer_data, headers=auth(seller)
    )

    assert response.status_code == 422


def test_update_offer(client, seller, make_offer, offer_data):
    offer = make_offer()
    offer_data["availability_quantity"] = 0
    offer_data["status"] = "active"

    response = client.put(f"/api/v1/offers/{offer.id}", json=offer_data, headers=auth(seller))

    assert response.status_code == 200
    assert response.json()["status"] == "inactive"


def test_update_offer_of_other_business(client, stranger, make_offer, offer_data):
    offer = make_offer()

    response = client.put(f"/api/v1/offers/{offer.id}", json=offer_data, headers=auth(stranger))

    assert response.status_code == 403


def test_update_active_offer_requires_selling_rights(client, make_user, make_offer, offer_data):
    member = make_user(email="member@example.com", permissions=[])
    active = make_offer(name="Live", status=OfferStatus.ACTIVE)
    draft = make_offer(name="Draft", status=OfferStatus.DRAFT)

    response = client.put(f"/api/v1/offers/{active.id}", json=offer_data, headers=auth(member))

    assert response.status_code == 403
    assert response.json()["detail"] == "You are not allowed to sell products."

    # Drafts of the same business stay editable
    response = client.put(f"/api/v1/offers/{draft.id}", json=offer_data, headers=auth(member))

    assert response.status_code == 200


def test_update_missing_offer(client, seller, offer_data):
    response = client.put("/api/v1/offers/12345", json=offer_data, headers=auth(seller))

    assert response.status_code == 404


def test_update_status(client, seller, make_offer):
    offer = make_offer()

    response = client.patch(
        f"/api/v1/offers/{offer.id}/status", json={"status": "active"}, headers=auth(seller)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "active"
    assert data["publish_at"] is not None
    assert data["expire_at"] is not None


def test_duplicate_offer(client, seller, make_offer):
    offer = make_offer(name="Panels", status=OfferStatus.ACTIVE)

    response = client.post(f"/api/v1/offers/{offer.id}/duplicate", headers=auth(seller))

    assert response.status_code == 201
    data = response.json()
    assert data["id"] != offer.id
    assert data["name"] == "Panels (Copy)"
    assert data["status"] == "draft"


def test_delete_offer(client, seller, make_offer):
    offer = make_offer()

    response = client.delete(f"/api/v1/offers/{offer.id}", headers=auth(seller))
    assert response.status_code == 204

    response = client.get(f"/api/v1/offers/{offer.id}", headers=auth(seller))
    assert response.status_code == 404


# Reads


def test_show_offer_records_view(client, seller, make_offer, db_session):
    offer = make_offer()

    response = client.get(f"/api/v1/offers/{offer.id}", headers=auth(seller))

    assert response.status_code == 200
    assert response.json()["user_id"] == seller.id
    assert db_session.query(OfferView).filter(OfferView.offer_id == offer.id).count() == 1

    response = client.get(f"/api/v1/users/{seller.id}/offer-views", headers=auth(seller))
    assert response.status_code == 200
    data = response.json()
    assert data["meta"]["total"] == 1
    assert data["data"][0]["offer"]["id"] == offer.id
    assert data["data"][0]["prices_count"] == 1


def test_show_offer_hides_seller_from_other_business(client, stranger, make_offer):
    offer = make_offer(status=OfferStatus.ACTIVE)

    response = client.get(f"/api/v1/offers/{offer.id}", headers=auth(stranger))

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == offer.id
    assert "user_id" not in data
    assert "prices" not in data


def test_offer_views_of_other_user_need_permission(client, seller, stranger, make_user):
    response = client.get(f"/api/v1/users/{seller.id}/offer-views", headers=auth(stranger))
    assert response.status_code == 403

    auditor = make_user(email="auditor@example.com", permissions=[UserPermission.CHECK_USER_HISTORY])
    response = client.get(f"/api/v1/users/{seller.id}/offer-views", headers=auth(auditor))
    assert response.status_code == 200


def test_list_offers(client, seller, stranger, make_offer):
    make_offer(name="Mine", status=OfferStatus.ACTIVE)
    make_offer(name="Draft", status=OfferStatus.DRAFT)
    make_offer(name="Theirs", status=OfferStatus.ACTIVE, user=stranger)

    response = client.get("/api/v1/offers", params={"per_page": 10}, headers=auth(seller))

    assert response.status_code == 200
    data = response.json()
    assert [offer["name"] for offer in data["data"]] == ["Mine"]
    assert data["meta"] == {"current_page": 1, "per_page": 10, "total": 1, "last_page": 1}


def test_list_offers_rejects_unknown_sort(client, seller):
    response = client.get("/api/v1/offers", params={"sort_by": "password"}, headers=auth(seller))

    assert response.status_code == 422


def test_search_offers(client, seller, make_offer, make_product):
    inverter = make_product(name="Hybrid Inverter", module_power=None)
    make_offer(name="Spring sale", status=OfferStatus.ACTIVE, product_id=inverter.id)
    make_offer(name="Panels", status=OfferStatus.ACTIVE)

    response = client.get("/api/v1/offers/search", params={"q": "inverter"}, headers=auth(seller))

    assert response.status_code == 200
    assert [offer["name"] for offer in response.json()["data"]] == ["Spring sale"]


def test_counters_need_admin(client, seller, admin, make_offer):
    make_offer(status=OfferStatus.ACTIVE)

    response = client.get("/api/v1/offers/counters", headers=auth(seller))
    assert response.status_code == 403

    response = client.get("/api/v1/offers/counters", headers=auth(admin))
    assert response.status_code == 200
    assert response.json() == {"draft": 0, "active": 1, "inactive": 0}


def test_count_offers(client, seller, make_offer):
    make_offer(status=OfferStatus.ACTIVE)
    make_offer(status=OfferStatus.DRAFT)

    response = client.get("/api/v1/offers/count", headers=auth(seller))

    assert response.status_code == 200
    assert response.json() == {"active": 1, "draft": 1}


# Bulk


def test_bulk_status(client, seller, make_offer):
    make_offer(name="First")
    make_offer(name="Second")

    response = client.patch(
        "/api/v1/offers/bulk/status",
        json={"filter": {"name": "first"}, "status": "active"},
        headers=auth(seller),
    )

    assert response.status_code == 200
    assert response.json() == {"affected": 1}


def test_bulk_update(client, seller, make_offer, offer_data):
    first = make_offer(name="First")
    second = make_offer(name="Second")
    offer_data["name"] = "Renamed"

    response = client.put(
        "/api/v1/offers/bulk",
        json={"offer_ids": [first.id, second.id], "offer": offer_data},
        headers=auth(seller),
    )

    assert response.status_code == 200
    assert [offer["name"] for offer in response.json()] == ["Renamed", "Renamed"]


def test_bulk_delete(client, seller, make_offer, db_session):
    make_offer(name="First")
    make_offer(name="Second")

    response = client.post(
        "/api/v1/offers/bulk/delete",
        json={"filter": {}, "status": "active"},
        headers=auth(seller),
    )

    assert response.status_code == 200
    assert response.json() == {"affected": 2}
    assert db_session.query(Offer).count() == 0


# Export


def test_export_file(client, seller, make_offer, blob_store):
    make_offer()

    response = client.post("/api/v1/offers/export", json={"mode": "file"}, headers=auth(seller))

    assert response.status_code == 200
    path = response.json()["path"]
    assert path in blob_store.files


def test_export_download(client, seller, make_offer):
    make_offer()

    response = client.post("/api/v1/offers/export", json={"mode": "download"}, headers=auth(seller))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert 'filename="export_offers.xlsx"' in response.headers["content-disposition"]


def test_export_stream(client, seller, make_offer):
    make_offer(name="Panels")

    response = client.post("/api/v1/offers/export", json={"mode": "stream"}, headers=auth(seller))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "id,name,price,incoterm,countries"
    assert len(lines) == 2


def test_export_failure(client, seller, make_offer, blob_store, error_reporter):
    make_offer()
    blob_store.fail = True

    response = client.post("/api/v1/offers/export", json={}, headers=auth(seller))

    assert response.status_code == 500
    assert response.json()["detail"] == "Export failed: storage unavailable"
    assert len(error_reporter.captured) == 1


def test_export_other_user_needs_permission(client, seller, make_user, make_offer):
    colleague = make_user(email="colleague@example.com")
    make_offer(user=colleague)

    response = client.post(
        "/api/v1/offers/export", json={"user_id": colleague.id}, headers=auth(seller)
    )
    assert response.status_code == 403

    exporter = make_user(email="exporter@example.com", permissions=[UserPermission.EXPORT_IMPORT_OFFERS])
    response = client.post(
        "/api/v1/offers/export", json={"user_id": colleague.id}, headers=auth(exporter)
    )
    assert response.status_code == 200

    response = client.post("/api/v1/offers/export", json={"user_id": 999}, headers=auth(exporter))
    assert response.status_code == 404
