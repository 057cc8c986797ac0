"""
Integration tests for the HTTP API.
Exercises signup, sign-in, listing management, favorites, admin moderation
and account deletion through the application.
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from zameenhub.models.profile import Profile, UserRole, ApprovalStatus
from zameenhub.models.property import Property
from zameenhub.repositories.favorite import ContactRepository, FavoriteRepository
from zameenhub.repositories.property import PropertyRepository
from tests.conftest import DEFAULT_PASSWORD, UserFactory, auth_headers

API = "/api/v1"


class TestSignupEndpoints:
    """POST /auth/signup."""

    @pytest.mark.asyncio
    async def test_user_signup_signs_in_and_merges(self, async_client: AsyncClient, approved_property: Property):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "New.Seeker@Example.com",
            "password": "strongpass123",
            "full_name": "New Seeker",
            "local_favorites": [str(approved_property.id), "junk"],
        })

        assert response.status_code == 201
        data = response.json()
        assert data["requires_approval"] is False
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["approval_watch_token"] is None
        assert data["profile"]["email"] == "new.seeker@example.com"
        assert data["profile"]["role"] == "user"
        assert data["profile"]["approval_status"] is None
        assert data["favorites_merge"]["merged_count"] == 1
        assert data["favorites_merge"]["local_favorites_cleared"] is True

    @pytest.mark.asyncio
    async def test_dealer_signup_gets_no_session(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "agency@example.com",
            "password": "strongpass123",
            "full_name": "Agency Owner",
            "role": "dealer",
            "agency_name": "Model Town Realty",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["requires_approval"] is True
        assert data["access_token"] is None
        assert data["refresh_token"] is None
        assert data["approval_watch_token"]
        assert data["profile"]["role"] == "dealer"
        assert data["profile"]["approval_status"] == "pending"
        assert data["profile"]["agency_name"] == "Model Town Realty"

        login = await async_client.post(f"{API}/auth/login", json={
            "email": "agency@example.com",
            "password": "strongpass123",
        })
        assert login.status_code == 403
        assert login.json()["error"]["code"] == "DEALER_PENDING_APPROVAL"

    @pytest.mark.asyncio
    async def test_admin_signup_rejected(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "boss@example.com",
            "password": "strongpass123",
            "full_name": "Self Made Admin",
            "role": "admin",
        })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, async_client: AsyncClient, test_user: Profile):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": test_user.email,
            "password": "strongpass123",
            "full_name": "Copy Cat",
        })

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"


class TestLoginEndpoints:
    """POST /auth/login and token use."""

    @pytest.mark.asyncio
    async def test_login_merges_local_favorites(
        self,
        async_client: AsyncClient,
        db_session,
        test_user: Profile,
        approved_property: Property
    ):
        response = await async_client.post(f"{API}/auth/login", json={
            "email": test_user.email,
            "password": DEFAULT_PASSWORD,
            "local_favorites": [str(approved_property.id)],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["profile"]["id"] == str(test_user.id)
        assert data["favorites_merge"] == {
            "merged_count": 1,
            "local_favorites_cleared": True,
            "remaining_local_favorites": [],
        }
        saved = await FavoriteRepository(db_session).get_property_ids_for_user(test_user.id)
        assert saved == [approved_property.id]

    @pytest.mark.asyncio
    async def test_login_survives_failed_favorites_insert(
        self,
        async_client: AsyncClient,
        db_session,
        monkeypatch,
        test_user: Profile,
        approved_property: Property
    ):
        property_id = approved_property.id
        email = test_user.email
        await FavoriteRepository(db_session).add_many(test_user.id, [property_id])
        # the lookup misses the saved row, so the insert hits the unique constraint
        monkeypatch.setattr(FavoriteRepository, "get_property_ids_for_user", AsyncMock(return_value=[]))

        response = await async_client.post(f"{API}/auth/login", json={
            "email": email,
            "password": DEFAULT_PASSWORD,
            "local_favorites": [str(property_id)],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["profile"]["email"] == email
        assert data["favorites_merge"] == {
            "merged_count": 0,
            "local_favorites_cleared": False,
            "remaining_local_favorites": [str(property_id)],
        }

        me = await async_client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == email

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, async_client: AsyncClient, test_user: Profile):
        response = await async_client.post(f"{API}/auth/login", json={
            "email": test_user.email,
            "password": "not-the-password",
        })

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_rejected_dealer_login(self, async_client: AsyncClient, rejected_dealer: Profile):
        response = await async_client.post(f"{API}/auth/login", json={
            "email": rejected_dealer.email,
            "password": DEFAULT_PASSWORD,
        })

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "DEALER_REJECTED"
        assert "request_id" in error
        assert "timestamp" in error

    @pytest.mark.asyncio
    async def test_me_refused_for_pending_dealer_token(self, async_client: AsyncClient, pending_dealer: Profile):
        response = await async_client.get(f"{API}/auth/me", headers=auth_headers(pending_dealer))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "DEALER_PENDING_APPROVAL"

    @pytest.mark.asyncio
    async def test_me_and_refresh(self, async_client: AsyncClient, test_dealer: Profile):
        login = await async_client.post(f"{API}/auth/login", json={
            "email": test_dealer.email,
            "password": DEFAULT_PASSWORD,
        })
        tokens = login.json()

        me = await async_client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {tokens['access_token']}"}
        )
        refreshed = await async_client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert me.status_code == 200
        assert me.json()["approval_status"] == "approved"
        assert refreshed.status_code == 200
        assert refreshed.json()["access_token"]

    @pytest.mark.asyncio
    async def test_missing_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me")
        assert response.status_code == 401


class TestPropertyEndpoints:
    """Listing management by dealers."""

    @pytest.mark.asyncio
    async def test_dealer_creates_pending_listing(self, async_client: AsyncClient, test_dealer: Profile):
        response = await async_client.post(
            f"{API}/properties",
            headers=auth_headers(test_dealer),
            json={
                "title": "10 Marla House in Bahria Town",
                "property_type": "house",
                "price": 32000000,
                "city": "Lahore",
                "bedrooms": 4,
                "furnishing": "semi-furnished",
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["approval_status"] == "pending"
        assert data["featured"] is False
        assert data["owner_id"] == str(test_dealer.id)

        public = await async_client.get(f"{API}/properties")
        assert public.json()["total"] == 0

        mine = await async_client.get(f"{API}/properties/mine", headers=auth_headers(test_dealer))
        assert [p["id"] for p in mine.json()] == [data["id"]]

    @pytest.mark.asyncio
    async def test_client_cannot_set_approval_on_create(self, async_client: AsyncClient, test_dealer: Profile):
        response = await async_client.post(
            f"{API}/properties",
            headers=auth_headers(test_dealer),
            json={
                "title": "Sneaky Listing",
                "property_type": "plot",
                "city": "Lahore",
                "approval_status": "approved",
            }
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_user_cannot_create_listing(self, async_client: AsyncClient, test_user: Profile):
        response = await async_client.post(
            f"{API}/properties",
            headers=auth_headers(test_user),
            json={"title": "My Flat", "property_type": "apartment", "city": "Lahore"}
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"

    @pytest.mark.asyncio
    async def test_owner_sees_pending_listing(
        self,
        async_client: AsyncClient,
        test_dealer: Profile,
        test_user: Profile,
        pending_property: Property
    ):
        as_owner = await async_client.get(
            f"{API}/properties/{pending_property.id}", headers=auth_headers(test_dealer)
        )
        as_user = await async_client.get(
            f"{API}/properties/{pending_property.id}", headers=auth_headers(test_user)
        )

        assert as_owner.status_code == 200
        assert as_user.status_code == 404

    @pytest.mark.asyncio
    async def test_update_by_other_dealer_forbidden(
        self,
        async_client: AsyncClient,
        db_session,
        approved_property: Property
    ):
        rival = await UserFactory.create_user(
            db_session, role=UserRole.DEALER, approval_status=ApprovalStatus.APPROVED
        )

        response = await async_client.put(
            f"{API}/properties/{approved_property.id}",
            headers=auth_headers(rival),
            json={"price": 1}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_updates_and_deletes(
        self,
        async_client: AsyncClient,
        test_dealer: Profile,
        approved_property: Property
    ):
        updated = await async_client.put(
            f"{API}/properties/{approved_property.id}",
            headers=auth_headers(test_dealer),
            json={"price": 18000000, "bedrooms": 4}
        )
        assert updated.status_code == 200
        assert updated.json()["price"] == 18000000.0
        assert updated.json()["bedrooms"] == 4
        assert updated.json()["approval_status"] == "approved"

        deleted = await async_client.delete(
            f"{API}/properties/{approved_property.id}", headers=auth_headers(test_dealer)
        )
        assert deleted.status_code == 204

        missing = await async_client.get(f"{API}/properties/{approved_property.id}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_removes_favorites(
        self,
        async_client: AsyncClient,
        db_session,
        test_dealer: Profile,
        test_user: Profile,
        approved_property: Property
    ):
        await FavoriteRepository(db_session).create({"user_id": test_user.id, "property_id": approved_property.id})

        response = await async_client.delete(
            f"{API}/properties/{approved_property.id}", headers=auth_headers(test_dealer)
        )

        assert response.status_code == 204
        assert await FavoriteRepository(db_session).get_property_ids_for_user(test_user.id) == []

    @pytest.mark.asyncio
    async def test_reveal_contact(
        self,
        async_client: AsyncClient,
        db_session,
        test_user: Profile,
        approved_property: Property
    ):
        response = await async_client.post(
            f"{API}/properties/{approved_property.id}/contact", headers=auth_headers(test_user)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["phone"] == "+92 321 7654321"
        assert data["owner"]["agency_name"] == "Lahore Estates"
        assert data["property_id"] == str(approved_property.id)

        contacts = await ContactRepository(db_session).list_for_property(approved_property.id)
        assert [contact.user_id for contact in contacts] == [test_user.id]

    @pytest.mark.asyncio
    async def test_reveal_contact_requires_sign_in(self, async_client: AsyncClient, approved_property: Property):
        response = await async_client.post(f"{API}/properties/{approved_property.id}/contact")
        assert response.status_code == 401


class TestFavoriteEndpoints:
    """Saved properties over HTTP."""

    @pytest.mark.asyncio
    async def test_save_list_and_remove(
        self,
        async_client: AsyncClient,
        test_user: Profile,
        approved_property: Property
    ):
        headers = auth_headers(test_user)
        url = f"{API}/favorites/{approved_property.id}"

        saved = await async_client.put(url, headers=headers)
        saved_again = await async_client.put(url, headers=headers)
        assert saved.status_code == 200
        assert saved_again.status_code == 200

        status = await async_client.get(url, headers=headers)
        assert status.json() == {"property_id": str(approved_property.id), "is_favorite": True}

        listed = await async_client.get(f"{API}/favorites", headers=headers)
        assert [p["id"] for p in listed.json()] == [str(approved_property.id)]

        ids = await async_client.get(f"{API}/favorites/ids", headers=headers)
        assert ids.json() == {"property_ids": [str(approved_property.id)]}

        removed = await async_client.delete(url, headers=headers)
        assert removed.json()["is_favorite"] is False

        listed = await async_client.get(f"{API}/favorites", headers=headers)
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_lookup_without_sign_in(
        self,
        async_client: AsyncClient,
        approved_property: Property,
        pending_property: Property
    ):
        response = await async_client.post(f"{API}/favorites/lookup", json={
            "local_favorites": [str(approved_property.id), str(pending_property.id), str(uuid.uuid4())],
        })

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [str(approved_property.id)]

    @pytest.mark.asyncio
    async def test_explicit_merge(
        self,
        async_client: AsyncClient,
        test_user: Profile,
        approved_property: Property
    ):
        response = await async_client.post(
            f"{API}/favorites/merge",
            headers=auth_headers(test_user),
            json={"local_favorites": [str(approved_property.id)]}
        )

        assert response.status_code == 200
        assert response.json()["merged_count"] == 1


class TestAdminEndpoints:
    """Moderation over HTTP."""

    @pytest.mark.asyncio
    async def test_approve_property_publishes_to_owner(
        self,
        app,
        async_client: AsyncClient,
        test_admin: Profile,
        test_dealer: Profile,
        pending_property: Property
    ):
        subscription = app.state.notifier.subscribe(test_dealer.id)

        queue = await async_client.get(f"{API}/admin/properties", headers=auth_headers(test_admin))
        assert [p["id"] for p in queue.json()] == [str(pending_property.id)]

        response = await async_client.put(
            f"{API}/admin/properties/{pending_property.id}/approval",
            headers=auth_headers(test_admin),
            json={"approval_status": "approved"}
        )

        assert response.status_code == 200
        assert response.json()["approval_status"] == "approved"
        assert subscription.pending == 1
        event = await subscription.get()
        assert event.subject_id == pending_property.id

        public = await async_client.get(f"{API}/properties")
        assert [p["id"] for p in public.json()["properties"]] == [str(pending_property.id)]

    @pytest.mark.asyncio
    async def test_approve_dealer_then_login(
        self,
        async_client: AsyncClient,
        test_admin: Profile,
        pending_dealer: Profile
    ):
        response = await async_client.put(
            f"{API}/admin/dealers/{pending_dealer.id}/approval",
            headers=auth_headers(test_admin),
            json={"approval_status": "approved"}
        )
        assert response.status_code == 200
        assert response.json()["approval_status"] == "approved"

        login = await async_client.post(f"{API}/auth/login", json={
            "email": pending_dealer.email,
            "password": DEFAULT_PASSWORD,
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_dealer_approval_on_user_is_422(
        self,
        async_client: AsyncClient,
        test_admin: Profile,
        test_user: Profile
    ):
        response = await async_client.put(
            f"{API}/admin/dealers/{test_user.id}/approval",
            headers=auth_headers(test_admin),
            json={"approval_status": "approved"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_change_role(self, async_client: AsyncClient, test_admin: Profile, test_user: Profile):
        response = await async_client.put(
            f"{API}/admin/profiles/{test_user.id}/role",
            headers=auth_headers(test_admin),
            json={"role": "dealer"}
        )

        assert response.status_code == 200
        assert response.json()["role"] == "dealer"
        assert response.json()["approval_status"] == "approved"

    @pytest.mark.asyncio
    async def test_stats(
        self,
        async_client: AsyncClient,
        test_admin: Profile,
        pending_dealer: Profile,
        approved_property: Property,
        pending_property: Property
    ):
        response = await async_client.get(f"{API}/admin/stats", headers=auth_headers(test_admin))

        assert response.status_code == 200
        data = response.json()
        assert data["pending_properties"] == 1
        assert data["approved_properties"] == 1
        assert data["pending_dealers"] == 1
        assert data["total_admins"] == 1

    @pytest.mark.asyncio
    async def test_non_admin_refused(self, async_client: AsyncClient, test_dealer: Profile):
        response = await async_client.get(f"{API}/admin/stats", headers=auth_headers(test_dealer))

        assert response.status_code == 403


class TestAccountEndpoints:
    """Profile self-service and account deletion."""

    @pytest.mark.asyncio
    async def test_update_profile(self, async_client: AsyncClient, test_user: Profile):
        response = await async_client.patch(
            f"{API}/profiles/me",
            headers=auth_headers(test_user),
            json={"full_name": "Renamed Seeker", "bio": "Looking in Lahore"}
        )

        assert response.status_code == 200
        assert response.json()["full_name"] == "Renamed Seeker"
        assert response.json()["bio"] == "Looking in Lahore"

    @pytest.mark.asyncio
    async def test_role_not_self_editable(self, async_client: AsyncClient, test_user: Profile):
        response = await async_client.patch(
            f"{API}/profiles/me",
            headers=auth_headers(test_user),
            json={"role": "admin"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_account_cascades(
        self,
        async_client: AsyncClient,
        db_session,
        test_dealer: Profile,
        test_user: Profile,
        approved_property: Property
    ):
        await FavoriteRepository(db_session).create({"user_id": test_user.id, "property_id": approved_property.id})

        response = await async_client.delete(f"{API}/profiles/me", headers=auth_headers(test_dealer))

        assert response.status_code == 204
        assert await PropertyRepository(db_session).get_by_id(approved_property.id) is None
        assert await FavoriteRepository(db_session).get_property_ids_for_user(test_user.id) == []

        me = await async_client.get(f"{API}/auth/me", headers=auth_headers(test_dealer))
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_deletes_account(self, async_client: AsyncClient, test_admin: Profile, test_user: Profile):
        response = await async_client.delete(
            f"{API}/admin/profiles/{test_user.id}", headers=auth_headers(test_admin)
        )

        assert response.status_code == 204

        again = await async_client.delete(
            f"{API}/admin/profiles/{test_user.id}", headers=auth_headers(test_admin)
        )
        assert again.status_code == 404
