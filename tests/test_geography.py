"""Tests for geography API."""

from uuid import uuid4

from httpx import AsyncClient

from app.models.user import User
from tests.conftest import Org, auth_header, token_for


class TestZones:
    """Tests for zones."""

    async def test_any_user_can_list(self, client: AsyncClient, org: Org, intern: User):
        response = await client.get(
            "/api/v1/geography/zones",
            headers=auth_header(token_for(intern)),
        )

        assert response.status_code == 200
        assert {z["name"] for z in response.json()} == {"Zone 1", "Zone 2"}

    async def test_admin_creates_zone(self, client: AsyncClient, admin_token: str):
        response = await client.post(
            "/api/v1/geography/zones",
            headers=auth_header(admin_token),
            json={"name": "Zone 3"},
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Zone 3"

    async def test_duplicate_zone(self, client: AsyncClient, org: Org, admin_token: str):
        response = await client.post(
            "/api/v1/geography/zones",
            headers=auth_header(admin_token),
            json={"name": "Zone 1"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Zone already exists"

    async def test_director_cannot_create(self, client: AsyncClient, director: User):
        response = await client.post(
            "/api/v1/geography/zones",
            headers=auth_header(token_for(director)),
            json={"name": "Zone 3"},
        )

        assert response.status_code == 403


class TestProvincesAndDistricts:
    """Tests for provinces and districts."""

    async def test_filter_provinces_by_zone(
        self, client: AsyncClient, org: Org, admin_token: str
    ):
        response = await client.get(
            "/api/v1/geography/provinces",
            headers=auth_header(admin_token),
            params={"zone_id": str(org.zone2.id)},
        )

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Province 2"]

    async def test_create_district(self, client: AsyncClient, org: Org, admin_token: str):
        response = await client.post(
            "/api/v1/geography/districts",
            headers=auth_header(admin_token),
            json={"province_id": str(org.province1.id), "name": "District 1B"},
        )

        assert response.status_code == 201
        assert response.json()["province_id"] == str(org.province1.id)

    async def test_district_needs_existing_province(
        self, client: AsyncClient, admin_token: str
    ):
        response = await client.post(
            "/api/v1/geography/districts",
            headers=auth_header(admin_token),
            json={"province_id": str(uuid4()), "name": "Nowhere"},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Province not found"
