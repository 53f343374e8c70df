"""Integration tests for the HTTP surface.

Covers the error envelope, auth, and the main marketplace flow:
create project -> submit proposal -> accept -> complete -> review.
"""

import pytest

from chairai.models.project import ProjectStatusEnum


class TestErrorEnvelope:

    @pytest.mark.asyncio
    async def test_missing_token_is_unauthorized(self, client):
        resp = await client.get("/projects")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_invalid_token_is_unauthorized(self, client):
        resp = await client.get("/projects", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_validation_error_uses_first_message(self, client, seed, auth_headers):
        user = await seed.client()
        resp = await client.post(
            "/projects",
            json={"generated_image_id": "abc", "category_id": "abc", "material_id": "abc"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["message"] == "Nieprawidłowy UUID dla wygenerowanego obrazu"

    @pytest.mark.asyncio
    async def test_domain_error_is_rendered(self, client, seed, auth_headers):
        user = await seed.client()
        resp = await client.get("/projects", headers=auth_headers(user))
        assert resp.status_code == 403
        assert resp.json() == {
            "error": {
                "code": "FORBIDDEN",
                "message": "Tylko rzemieślnicy mogą przeglądać listę projektów",
            }
        }

    @pytest.mark.asyncio
    async def test_unknown_route_is_not_found(self, client):
        resp = await client.get("/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"


class TestAuth:

    @pytest.mark.asyncio
    async def test_register_login_and_me(self, client):
        resp = await client.post(
            "/auth/register",
            json={"email": "jan@example.com", "password": "Secret123", "role": "artisan"},
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "artisan"

        resp = await client.post("/auth/token", data={"username": "jan@example.com", "password": "Secret123"})
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        resp = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["email"] == "jan@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, client):
        payload = {"email": "anna@example.com", "password": "Secret123", "role": "client"}
        assert (await client.post("/auth/register", json=payload)).status_code == 201

        resp = await client.post("/auth/register", json=payload)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "EMAIL_ALREADY_EXISTS"

    @pytest.mark.asyncio
    async def test_weak_password_is_rejected(self, client):
        resp = await client.post(
            "/auth/register",
            json={"email": "weak@example.com", "password": "password", "role": "client"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client):
        await client.post(
            "/auth/register",
            json={"email": "ewa@example.com", "password": "Secret123", "role": "client"},
        )
        resp = await client.post("/auth/token", data={"username": "ewa@example.com", "password": "Wrong1234"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"


class TestMarketplaceFlow:

    @pytest.mark.asyncio
    async def test_project_lifecycle_with_review(self, client, seed, auth_headers):
        owner = await seed.client()
        artisan = await seed.artisan()
        await seed.profile(artisan, company_name="Meble Nowak", is_public=True)
        image = await seed.image(owner)
        category = await seed.category()
        material = await seed.material()
        owner_headers = auth_headers(owner)
        artisan_headers = auth_headers(artisan)

        # 1. 委託人建立案件
        resp = await client.post(
            "/projects",
            json={
                "generated_image_id": image.id,
                "category_id": category.id,
                "material_id": material.id,
                "budget_range": "2000-3000 PLN",
            },
            headers=owner_headers,
        )
        assert resp.status_code == 201
        project = resp.json()
        assert project["status"] == "open"
        assert project["proposals_count"] == 0
        project_id = project["id"]

        # 2. 工匠提案 (multipart)
        resp = await client.post(
            f"/projects/{project_id}/proposals",
            data={"price": "2500", "message": "Wykonam w 3 tygodnie"},
            files={"attachment": ("oferta.pdf", b"%PDF-1.4", "application/pdf")},
            headers=artisan_headers,
        )
        assert resp.status_code == 201
        proposal = resp.json()
        assert proposal["artisan"]["company_name"] == "Meble Nowak"
        assert "/proposal-attachments/" in proposal["attachment_url"]

        # 3. 委託人接受提案
        resp = await client.post(
            f"/projects/{project_id}/accept-proposal",
            json={"proposal_id": proposal["id"]},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        accepted = resp.json()
        assert accepted["status"] == "in_progress"
        assert accepted["accepted_proposal_id"] == proposal["id"]
        assert accepted["accepted_price"] == 2500.0

        # 4. 完成案件
        resp = await client.patch(
            f"/projects/{project_id}/status", json={"status": "completed"}, headers=owner_headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"

        # 5. 評價
        resp = await client.post(
            f"/projects/{project_id}/reviews", json={"rating": 5, "comment": "Great"}, headers=owner_headers
        )
        assert resp.status_code == 201
        assert resp.json()["reviewee_id"] == artisan.id

        resp = await client.post(
            f"/projects/{project_id}/reviews", json={"rating": 5}, headers=owner_headers
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "REVIEW_ALREADY_EXISTS"

        # 6. 工匠的評價統計
        resp = await client.get(f"/artisans/{artisan.id}/reviews", headers=owner_headers)
        assert resp.status_code == 200
        summary = resp.json()["summary"]
        assert summary["total_reviews"] == 1
        assert summary["average_rating"] == 5.0
        assert summary["ratings_distribution"]["5"] == 1

        # 7. 工匠的「我的提案」
        resp = await client.get("/proposals/me", headers=artisan_headers)
        assert resp.status_code == 200
        assert resp.json()["data"][0]["is_accepted"] is True

    @pytest.mark.asyncio
    async def test_status_cannot_go_backwards(self, client, seed, auth_headers):
        project, owner, _, _ = await seed.accepted_project(status=ProjectStatusEnum.completed)
        resp = await client.patch(
            f"/projects/{project.id}/status", json={"status": "in_progress"}, headers=auth_headers(owner)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    @pytest.mark.asyncio
    async def test_rating_out_of_range(self, client, seed, auth_headers):
        project, owner, _, _ = await seed.accepted_project(status=ProjectStatusEnum.completed)
        resp = await client.post(
            f"/projects/{project.id}/reviews", json={"rating": 6}, headers=auth_headers(owner)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_my_projects_route_is_not_shadowed(self, client, seed, auth_headers):
        owner = await seed.client()
        await seed.project(owner)
        resp = await client.get("/projects/me", headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["pagination"]["total"] == 1


class TestArtisanRoutes:

    @pytest.mark.asyncio
    async def test_profile_and_portfolio(self, client, seed, auth_headers):
        artisan = await seed.artisan()
        headers = auth_headers(artisan)
        specialization = await seed.specialization("Renowacja")

        resp = await client.get("/artisans/me", headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "PROFILE_NOT_FOUND"

        resp = await client.put(
            "/artisans/me", json={"company_name": "Renowacje Wiśniewski", "nip": "526-000-12-46"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["nip"] == "5260001246"

        resp = await client.post(
            "/artisans/me/specializations", json={"specialization_ids": [specialization.id]}, headers=headers
        )
        assert resp.status_code == 201

        resp = await client.post(
            "/artisans/me/portfolio",
            files={"image": ("stol.jpg", b"\xff\xd8\xff", "image/jpeg")},
            headers=headers,
        )
        assert resp.status_code == 201
        image_id = resp.json()["id"]

        resp = await client.get("/artisans/me", headers=headers)
        body = resp.json()
        assert [s["name"] for s in body["specializations"]] == ["Renowacja"]
        assert len(body["portfolio_images"]) == 1

        resp = await client.delete(f"/artisans/me/portfolio/{image_id}", headers=headers)
        assert resp.status_code == 204

        resp = await client.delete(f"/artisans/me/specializations/{specialization.id}", headers=headers)
        assert resp.status_code == 204

    @pytest.mark.asyncio
    async def test_unpublished_profile_is_hidden(self, client, seed, auth_headers):
        artisan = await seed.artisan()
        await seed.profile(artisan, is_public=False)
        resp = await client.get(f"/artisans/{artisan.id}", headers=auth_headers(await seed.client()))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PROFILE_NOT_PUBLISHED"


class TestLookups:

    @pytest.mark.asyncio
    async def test_dictionaries(self, client, seed, auth_headers):
        await seed.category("Krzesła")
        await seed.material("Dąb")
        await seed.specialization("Tapicerstwo")
        headers = auth_headers(await seed.client())

        assert [c["name"] for c in (await client.get("/categories", headers=headers)).json()] == ["Krzesła"]
        assert [m["name"] for m in (await client.get("/materials", headers=headers)).json()] == ["Dąb"]
        assert [s["name"] for s in (await client.get("/specializations", headers=headers)).json()] == ["Tapicerstwo"]

    @pytest.mark.asyncio
    async def test_generated_images(self, client, seed, auth_headers):
        owner = await seed.client()
        unused = await seed.image(owner)
        await seed.image(owner, is_used=True)
        other = await seed.image(await seed.client())
        headers = auth_headers(owner)

        resp = await client.get("/images/generated", headers=headers)
        assert resp.json()["pagination"]["total"] == 2

        resp = await client.get("/images/generated", params={"unused_only": "true"}, headers=headers)
        assert [i["id"] for i in resp.json()["data"]] == [unused.id]

        resp = await client.get(f"/images/generated/{other.id}", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "IMAGE_FORBIDDEN"
