"""Integration tests for the back-office endpoints under /admin/store."""

from datetime import timedelta
from decimal import Decimal

import pytest
from libs.common.datetime_utils import utc_now
from services.storefront_service.models import ContactSubmission, OrderStatus
from tests.factories import (
    AdminUserFactory,
    OrderFactory,
    ProductFactory,
    admin_headers,
    customer_headers,
    persist,
)

# ---------------------------------------------------------------------------
# Sign-in and access control
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_login_issues_token(client, db_session):
    await persist(db_session, AdminUserFactory.create(email="owner@example.com"))

    response = await client.post(
        "/admin/store/auth/login",
        json={"email": "owner@example.com", "password": "correct-horse"},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 480 * 60

    tags = await client.get(
        "/admin/store/tags", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert tags.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_login_with_wrong_password(client, db_session):
    await persist(db_session, AdminUserFactory.create(email="owner@example.com"))

    response = await client.post(
        "/admin/store/auth/login",
        json={"email": "owner@example.com", "password": "nope"},
    )

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid email or password.", "code": "UNAUTHENTICATED"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_routes_reject_anonymous_and_customers(client):
    anonymous = await client.get("/admin/store/orders")
    customer = await client.get("/admin/store/orders", headers=customer_headers("cust-1"))

    assert anonymous.status_code in (401, 403)
    assert customer.status_code == 403


# ---------------------------------------------------------------------------
# Catalog management
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_update_and_list_products(client):
    headers = admin_headers()

    created = await client.post(
        "/admin/store/products",
        json={"name": "Wine Velvet Sherwani", "sku": "SHW-09", "price": "7999.00", "stock_quantity": 3},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    product = created.json()
    assert product["slug"] == "wine-velvet-sherwani"

    updated = await client.patch(
        f"/admin/store/products/{product['id']}",
        json={"status": "inactive"},
        headers=headers,
    )
    assert updated.json()["status"] == "inactive"

    public = await client.get("/store/products")
    assert public.json()["total"] == 0

    inactive = await client.get("/admin/store/products?status=inactive", headers=headers)
    assert [p["sku"] for p in inactive.json()["items"]] == ["SHW-09"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bad_compare_price_is_422(client):
    response = await client.post(
        "/admin/store/products",
        json={"name": "Kurta", "sku": "K-1", "price": "900.00", "compare_price": "800.00"},
        headers=admin_headers(),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_image_upload_and_product_delete_clean_storage(client, db_session, fake_storage):
    headers = admin_headers()
    product = await persist(db_session, ProductFactory.create())

    uploaded = await client.post(
        f"/admin/store/products/{product.id}/images/upload",
        files={"file": ("Royal Blue.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")},
        data={"alt_text": "Front view"},
        headers=headers,
    )

    assert uploaded.status_code == 201, uploaded.text
    image = uploaded.json()
    assert image["is_primary"] is True
    assert image["alt_text"] == "Front view"
    assert image["image_url"].startswith("https://cdn.example.com/product-images/")
    [path] = fake_storage.objects

    deleted = await client.delete(f"/admin/store/products/{product.id}", headers=headers)
    assert deleted.status_code == 204
    assert fake_storage.deleted == [path]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_image_upload_is_rejected_before_storage(client, db_session, fake_storage):
    product = await persist(db_session, ProductFactory.create())

    response = await client.post(
        f"/admin/store/products/{product.id}/images/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers(),
    )

    assert response.status_code == 400
    assert fake_storage.objects == {}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_tag_management_and_assignment(client, db_session):
    headers = admin_headers()
    product = await persist(db_session, ProductFactory.create())

    tag = await client.post(
        "/admin/store/tags",
        json={"name": "Wedding", "background_color": "#AA0000"},
        headers=headers,
    )
    assert tag.status_code == 201, tag.text

    bad = await client.post(
        "/admin/store/tags", json={"name": "Bad", "background_color": "red"}, headers=headers
    )
    assert bad.status_code == 422

    assigned = await client.put(
        f"/admin/store/products/{product.id}/tags",
        json={"tag_ids": [tag.json()["id"]]},
        headers=headers,
    )
    assert [t["name"] for t in assigned.json()["tags"]] == ["Wedding"]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_listing_status_update_and_cancel(client, db_session):
    headers = admin_headers()
    product = await persist(db_session, ProductFactory.create(price=Decimal("500.00")))
    first = await persist(db_session, OrderFactory.create(products=[product], quantity=2))
    await persist(db_session, OrderFactory.create(products=[product]))

    listing = await client.get("/admin/store/orders?page_size=1", headers=headers)
    assert listing.status_code == 200, listing.text
    assert listing.json()["total"] == 2
    assert listing.json()["total_pages"] == 2

    shipped = await client.patch(
        f"/admin/store/orders/{first.id}/status", json={"status": "shipped"}, headers=headers
    )
    assert shipped.json()["status"] == "shipped"

    cancelled = await client.post(
        f"/admin/store/orders/{first.id}/cancel",
        json={"reason": "Courier lost the parcel"},
        headers=headers,
    )
    assert cancelled.status_code == 200, cancelled.text
    body = cancelled.json()
    assert body["status"] == "cancelled"
    assert Decimal(body["cancellation_fee"]) == Decimal("100.00")
    assert Decimal(body["refund_amount"]) == Decimal("900.00")

    history = await client.get(f"/admin/store/orders/{first.id}/history", headers=headers)
    assert [h["new_status"] for h in history.json()] == ["shipped", "cancelled"]

    again = await client.post(
        f"/admin/store/orders/{first.id}/cancel", json={"reason": "Twice"}, headers=headers
    )
    assert again.status_code == 400
    assert again.json()["code"] == "ORDER_ALREADY_CANCELLED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_analytics_dashboards(client, db_session):
    headers = admin_headers()
    product = await persist(db_session, ProductFactory.create(name="Royal Sherwani", price=Decimal("1000.00")))
    await persist(
        db_session,
        OrderFactory.create(products=[product], status=OrderStatus.DELIVERED),
        OrderFactory.create(
            products=[product],
            status=OrderStatus.PROCESSING,
            created_at=utc_now() - timedelta(days=2),
        ),
    )

    summary = await client.get("/admin/store/analytics/summary", headers=headers)
    assert summary.status_code == 200, summary.text
    data = summary.json()
    assert data["total_orders"] == 2
    assert Decimal(data["total_revenue"]) == Decimal("1000.00")
    assert data["status_counts"]["delivered"] == 1

    top = await client.get("/admin/store/analytics/top-products", headers=headers)
    [best] = top.json()
    assert best["product_name"] == "Royal Sherwani"
    assert best["total_quantity_sold"] == 1

    daily = await client.get("/admin/store/analytics/daily", headers=headers)
    assert sum(day["total_orders"] for day in daily.json()) == 2

    recent = await client.get("/admin/store/analytics/recent-orders?limit=1", headers=headers)
    assert len(recent.json()) == 1


# ---------------------------------------------------------------------------
# Contact inbox
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_contact_inbox(client, db_session):
    headers = admin_headers()
    submission = await persist(
        db_session,
        ContactSubmission(
            name="Asha",
            phone="9876543210",
            subject="Contact Form Submission from Asha",
            message="Hello",
            is_read=False,
        ),
    )

    unread = await client.get("/admin/store/contacts?is_read=false", headers=headers)
    assert [s["id"] for s in unread.json()] == [str(submission.id)]

    marked = await client.patch(
        f"/admin/store/contacts/{submission.id}", json={"is_read": True}, headers=headers
    )
    assert marked.json()["is_read"] is True

    deleted = await client.delete(f"/admin/store/contacts/{submission.id}", headers=headers)
    assert deleted.status_code == 204
    assert (await client.get("/admin/store/contacts", headers=headers)).json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_deleting_an_image_removes_the_stored_file(client, db_session, fake_storage):
    headers = admin_headers()
    product = await persist(db_session, ProductFactory.create())
    uploaded = await client.post(
        f"/admin/store/products/{product.id}/images/upload",
        files={"file": ("side.png", b"\x89PNG fake", "image/png")},
        headers=headers,
    )
    [path] = fake_storage.objects

    response = await client.delete(
        f"/admin/store/products/{product.id}/images/{uploaded.json()['id']}", headers=headers
    )

    assert response.status_code == 204
    assert fake_storage.deleted == [path]
    product_view = await client.get(f"/admin/store/products/{product.id}", headers=headers)
    assert product_view.json()["images"] == []
