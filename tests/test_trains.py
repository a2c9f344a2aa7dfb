"""
Tests for train catalog endpoints.
"""

import pytest
from httpx import AsyncClient


EXPRESS = {"name": "Express1", "source": "A", "destination": "B", "total_seats": 2}


@pytest.mark.asyncio
async def test_create_then_query_by_route(client: AsyncClient, admin_headers):
    """createTrain("Express1","A","B",2) then the A -> B query shows 2 free seats."""
    response = await client.post("/api/v1/trains/", json=EXPRESS, headers=admin_headers)
    assert response.status_code == 201
    created = response.json()
    assert created["total_seats"] == 2
    assert created["available_seats"] == 2

    response = await client.get("/api/v1/trains/", params={"source": "A", "destination": "B"})
    assert response.status_code == 200
    trains = response.json()
    assert len(trains) == 1
    assert trains[0]["id"] == created["id"]
    assert trains[0]["name"] == "Express1"
    assert trains[0]["available_seats"] == 2


@pytest.mark.asyncio
async def test_create_train_without_admin_key(client: AsyncClient):
    response = await client.post("/api/v1/trains/", json=EXPRESS)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_create_train_wrong_admin_key(client: AsyncClient, admin_headers):
    headers = {name: "not-the-key" for name in admin_headers}
    response = await client.post("/api/v1/trains/", json=EXPRESS, headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_train_user_token_is_not_admin(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/trains/", json=EXPRESS, headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_train_zero_seats(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/trains/",
        json={**EXPRESS, "total_seats": 0},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_create_train_missing_field(client: AsyncClient, admin_headers):
    body = {k: v for k, v in EXPRESS.items() if k != "destination"}
    response = await client.post("/api/v1/trains/", json=body, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_train_blank_name(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/trains/",
        json={**EXPRESS, "name": "   "},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_query_requires_both_params(client: AsyncClient):
    response = await client.get("/api/v1/trains/", params={"source": "A"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_query_no_match_is_empty(client: AsyncClient, test_train):
    response = await client.get("/api/v1/trains/", params={"source": "B", "destination": "A"})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_query_is_case_sensitive(client: AsyncClient, test_train):
    response = await client.get("/api/v1/trains/", params={"source": "a", "destination": "b"})
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_train(client: AsyncClient, test_train):
    response = await client.get(f"/api/v1/trains/{test_train.id}")
    assert response.status_code == 200
    assert response.json()["available_seats"] == 2


@pytest.mark.asyncio
async def test_get_train_not_found(client: AsyncClient):
    response = await client.get("/api/v1/trains/99999")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"
