"""Integration tests for the customer-facing storefront endpoints."""

import uuid
from decimal import Decimal

import pytest
from services.storefront_service.models import ProductImage, ProductStatus
from tests.factories import (
    CartItemFactory,
    ProductFactory,
    TagFactory,
    customer_headers,
    persist,
)

CHECKOUT_BODY = {
    "email": "asha@example.com",
    "phone": "9876543210",
    "shipping_address": {
        "first_name": "Asha",
        "last_name": "Rao",
        "address_line_1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
    },
    "payment": {"card_number": "4242 4242 4242 4242", "cardholder_name": "Asha Rao"},
}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "storefront"}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_listing_resolves_display_images(client, db_session):
    product = await persist(db_session, ProductFactory.create(name="Ivory Sherwani"))
    await persist(
        db_session,
        ProductImage(
            product_id=product.id,
            image_url="https://cdn.example.com/ivory-front.jpg",
            is_primary=True,
            sort_order=0,
        ),
        ProductFactory.create(name="Hidden Kurta", status=ProductStatus.INACTIVE),
    )

    response = await client.get("/store/products")

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total"] == 1
    [item] = data["items"]
    assert item["name"] == "Ivory Sherwani"
    assert item["display_image"]["url"] == "https://cdn.example.com/ivory-front.jpg"
    assert item["display_image"]["source"] == "uploaded"
    assert item["display_image"]["alt_text"] == "Ivory Sherwani"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_without_images_still_has_a_display_image(client, db_session):
    await persist(db_session, ProductFactory.create(name="Zz Unmapped Item", slug="zz-unmapped"))

    response = await client.get("/store/products/zz-unmapped")

    assert response.status_code == 200
    data = response.json()
    assert data["display_image"]["url"]
    assert len(data["gallery"]) >= 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_product_is_404_with_code(client):
    response = await client.get(f"/store/products/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_only_active_tags_are_listed(client, db_session):
    await persist(
        db_session,
        TagFactory.create(name="Festive"),
        TagFactory.create(name="Retired", is_active=False),
    )

    response = await client.get("/store/tags")

    assert [t["name"] for t in response.json()] == ["Festive"]


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_anonymous_cart_is_empty_and_adding_requires_login(client, db_session):
    product = await persist(db_session, ProductFactory.create())

    cart = await client.get("/store/cart")
    assert cart.status_code == 200
    assert cart.json()["items"] == []

    response = await client.post("/store/cart/items", json={"product_id": str(product.id)})
    assert response.status_code == 401
    assert response.json() == {
        "detail": "Please login to add items to your cart.",
        "code": "UNAUTHENTICATED",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_add_update_remove(client, db_session):
    headers = customer_headers("cust-cart")
    product = await persist(db_session, ProductFactory.create(price=Decimal("250.00")))

    added = await client.post(
        "/store/cart/items",
        json={"product_id": str(product.id), "quantity": 2},
        headers=headers,
    )
    assert added.status_code == 201, added.text
    body = added.json()
    assert body["item_count"] == 2
    assert Decimal(body["total"]) == Decimal("500.00")
    line_id = body["items"][0]["id"]
    assert body["items"][0]["product"]["image_url"]

    updated = await client.patch(
        f"/store/cart/items/{line_id}", json={"quantity": 5}, headers=headers
    )
    assert Decimal(updated.json()["total"]) == Decimal("1250.00")

    removed = await client.patch(
        f"/store/cart/items/{line_id}", json={"quantity": 0}, headers=headers
    )
    assert removed.status_code == 200
    assert removed.json()["items"] == []

    again = await client.delete(f"/store/cart/items/{line_id}", headers=headers)
    assert again.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bad_token_is_rejected(client):
    response = await client.get(
        "/store/cart", headers={"Authorization": "Bearer not-a-real-token"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_wishlist_round_trip(client, db_session):
    headers = customer_headers("cust-wish")
    product = await persist(db_session, ProductFactory.create())

    first = await client.post(
        "/store/wishlist", json={"product_id": str(product.id)}, headers=headers
    )
    second = await client.post(
        "/store/wishlist", json={"product_id": str(product.id)}, headers=headers
    )
    assert first.status_code == 201
    assert len(second.json()) == 1

    deleted = await client.delete(f"/store/wishlist/{product.id}", headers=headers)
    assert deleted.status_code == 204
    assert (await client.get("/store/wishlist", headers=headers)).json() == []


# ---------------------------------------------------------------------------
# Checkout and orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_places_order(client, db_session):
    headers = customer_headers("cust-checkout", email="asha@example.com")
    product = await persist(db_session, ProductFactory.create(price=Decimal("500.00"), stock_quantity=5))
    await persist(db_session, CartItemFactory.create("cust-checkout", product, quantity=2))

    response = await client.post("/store/checkout", json=CHECKOUT_BODY, headers=headers)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["state"] == "completed"
    order = data["order"]
    assert Decimal(order["subtotal"]) == Decimal("1000.00")
    assert Decimal(order["tax_amount"]) == Decimal("180.00")
    assert Decimal(order["shipping_amount"]) == Decimal("50.00")
    assert Decimal(order["total_amount"]) == Decimal("1230.00")
    assert order["card_last_four"] == "4242"
    assert order["order_number"].startswith("RT-")

    cart = await client.get("/store/cart", headers=headers)
    assert cart.json()["items"] == []

    mine = await client.get("/store/orders", headers=headers)
    assert [o["order_number"] for o in mine.json()] == [order["order_number"]]

    detail = await client.get(f"/store/orders/{order['order_number']}", headers=headers)
    assert detail.status_code == 200
    assert [h["new_status"] for h in detail.json()["status_history"]] == ["processing"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_empty_cart_fails_cleanly(client):
    response = await client.post(
        "/store/checkout", json=CHECKOUT_BODY, headers=customer_headers("cust-empty")
    )

    assert response.status_code == 400
    assert response.json() == {
        "state": "failed",
        "message": "Your cart is empty.",
        "detail": "Your cart is empty.",
        "code": "EMPTY_CART",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_anonymous_checkout_is_unauthenticated(client):
    response = await client.post("/store/checkout", json=CHECKOUT_BODY)

    assert response.status_code == 401
    assert response.json()["state"] == "failed"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_requests_cancellation(client, db_session):
    headers = customer_headers("cust-cancel")
    product = await persist(db_session, ProductFactory.create())
    await persist(db_session, CartItemFactory.create("cust-cancel", product))
    placed = await client.post("/store/checkout", json=CHECKOUT_BODY, headers=headers)
    order_id = placed.json()["order"]["id"]

    response = await client.post(
        f"/store/orders/{order_id}/cancellation-request",
        json={"reason": "Ordered the wrong size"},
        headers=headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["status"] == "cancellation_requested"

    other = await client.post(
        f"/store/orders/{order_id}/cancellation-request",
        json={"reason": "Not mine"},
        headers=customer_headers("cust-stranger"),
    )
    assert other.status_code == 404


# ---------------------------------------------------------------------------
# Phone sign-in, profile, contact
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_phone_sign_in_flow(client, fake_identity):
    sent = await client.post(
        "/store/auth/otp/send", json={"phone_number": "98765 43210", "country_code": "+91"}
    )
    assert sent.status_code == 200, sent.text
    code = sent.json()["otp"]
    assert sent.json()["expires_in_seconds"] == 300

    wrong = await client.post(
        "/store/auth/otp/verify",
        json={"phone_number": "9876543210", "otp": "000000" if code != "000000" else "111111"},
    )
    assert wrong.status_code == 400
    assert wrong.json()["detail"] == "Invalid or expired OTP."

    verified = await client.post(
        "/store/auth/otp/verify",
        json={"phone_number": "9876543210", "otp": code, "first_name": "Asha"},
    )
    assert verified.status_code == 200, verified.text
    body = verified.json()
    assert body["phone_verified"] is True
    assert body["action_link"].startswith("https://auth.example.com/")
    assert fake_identity.created == ["+919876543210"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_read_and_update(client):
    headers = customer_headers("cust-profile")

    profile = await client.get("/store/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["id"] == "cust-profile"

    updated = await client.patch(
        "/store/profile", json={"first_name": "Ravi"}, headers=headers
    )
    assert updated.json()["first_name"] == "Ravi"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_requires_auth(client):
    response = await client.get("/store/profile")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_contact_form(client):
    response = await client.post(
        "/store/contact",
        json={
            "name": "Asha Rao",
            "email": "asha@example.com",
            "phone": "+91 98765 43210",
            "message": "Do you ship to Pune?",
        },
    )

    assert response.status_code == 201, response.text
    assert response.json()["subject"] == "Contact Form Submission from Asha Rao"

    invalid = await client.post(
        "/store/contact",
        json={"name": "Asha", "phone": "123", "message": "Hi"},
    )
    assert invalid.status_code == 422
