"""
Manufacturer catalog tests.
"""

import pytest
from sqlalchemy import select

from haulhub.app.models.manufacturer import Manufacturer
from haulhub.tests.helpers import auth_headers


async def _create(client, headers, **fields):
    payload = {"name": "Portland Cement 50kg", "category": "Cement", "price": 420, **fields}
    response = await client.post("/api/manufacturer-products", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_product_owned_by_caller(client, manufacturer):
    product = await _create(client, manufacturer.headers, paymentOptions=["UPI", "COD"], cashOnDelivery=True)

    assert product["manufacturerId"] == manufacturer.profile.id
    assert product["price"] == 420.0
    assert product["paymentOptions"] == ["UPI", "COD"]
    assert product["isActive"] is True


@pytest.mark.asyncio
async def test_price_aliases_are_accepted(client, manufacturer):
    response = await client.post(
        "/api/manufacturer-products", json={"name": "Fly Ash Bricks", "priceAmount": 1200}, headers=manufacturer.headers
    )

    assert response.status_code == 201
    assert response.json()["data"]["price"] == 1200.0
    assert response.json()["data"]["category"] == "General"


@pytest.mark.asyncio
async def test_blank_name_and_zero_price_are_rejected(client, manufacturer):
    blank = await client.post(
        "/api/manufacturer-products", json={"name": "   ", "price": 10}, headers=manufacturer.headers
    )
    free = await client.post(
        "/api/manufacturer-products", json={"name": "Bricks", "price": 0}, headers=manufacturer.headers
    )

    assert blank.status_code == 422
    assert free.status_code == 422


@pytest.mark.asyncio
async def test_create_without_profile_is_404_and_creates_nothing(client, make_user, session_factory):
    user = await make_user("unprovisioned", ["MANUFACTURER"])

    response = await client.post(
        "/api/manufacturer-products", json={"name": "Tiles", "price": 99}, headers=auth_headers(user)
    )

    assert response.status_code == 404
    async with session_factory() as session:
        assert (await session.execute(
            select(Manufacturer).where(Manufacturer.user_id == user.id)
        )).first() is None


@pytest.mark.asyncio
async def test_non_manufacturer_cannot_create(client, fleet):
    response = await client.post("/api/manufacturer-products", json={"name": "Tiles", "price": 99}, headers=fleet.headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_by_user(client, manufacturer, fleet):
    await _create(client, manufacturer.headers)
    await _create(client, manufacturer.headers, name="TMT Bars", category="Steel", price=65000)

    response = await client.get(f"/api/manufacturer-products/user/{manufacturer.user.id}", headers=fleet.headers)

    assert response.status_code == 200
    assert {p["name"] for p in response.json()["data"]} == {"Portland Cement 50kg", "TMT Bars"}

    missing = await client.get(f"/api/manufacturer-products/user/{fleet.user.id}", headers=fleet.headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_search_by_name_category_and_price(client, manufacturer):
    await _create(client, manufacturer.headers)
    await _create(client, manufacturer.headers, name="White Cement 5kg", price=180)
    await _create(client, manufacturer.headers, name="TMT Bars", category="Steel", price=65000)
    url = f"/api/manufacturer-products/search/{manufacturer.profile.id}"

    by_name = await client.get(url, params={"name": "CEMENT"}, headers=manufacturer.headers)
    assert [p["name"] for p in by_name.json()["data"]] == ["White Cement 5kg", "Portland Cement 50kg"]

    by_category = await client.get(url, params={"category": "steel"}, headers=manufacturer.headers)
    assert [p["name"] for p in by_category.json()["data"]] == ["TMT Bars"]

    by_price = await client.get(url, params={"min_price": 200, "max_price": 1000}, headers=manufacturer.headers)
    assert [p["name"] for p in by_price.json()["data"]] == ["Portland Cement 50kg"]


@pytest.mark.asyncio
async def test_search_with_inverted_price_range(client, manufacturer):
    response = await client.get(
        f"/api/manufacturer-products/search/{manufacturer.profile.id}",
        params={"min_price": 500, "max_price": 100},
        headers=manufacturer.headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_can_update_or_delete(client, manufacturer, make_user, session_factory):
    product = await _create(client, manufacturer.headers)

    rival = await make_user("rival_maker", ["MANUFACTURER"])
    async with session_factory() as session:
        session.add(Manufacturer(user_id=rival.id, company_name="Rival"))
        await session.commit()
    rival_headers = auth_headers(rival)

    update = await client.put(
        f"/api/manufacturer-products/{product['id']}", json={"price": 1}, headers=rival_headers
    )
    delete = await client.delete(f"/api/manufacturer-products/{product['id']}", headers=rival_headers)
    assert update.status_code == 404
    assert delete.status_code == 404

    own_update = await client.put(
        f"/api/manufacturer-products/{product['id']}",
        json={"priceAmount": 450, "offer": "5% off"},
        headers=manufacturer.headers
    )
    assert own_update.status_code == 200
    assert own_update.json()["data"]["price"] == 450.0
    assert own_update.json()["data"]["offer"] == "5% off"

    own_delete = await client.delete(f"/api/manufacturer-products/{product['id']}", headers=manufacturer.headers)
    assert own_delete.status_code == 200

    gone = await client.get(f"/api/manufacturer-products/{product['id']}", headers=manufacturer.headers)
    assert gone.status_code == 404
