"""
Tests for property image upload, validation and cleanup.
"""

from pathlib import Path

import pytest
from httpx import AsyncClient

from zameenhub.models.profile import Profile
from zameenhub.models.property import Property
from zameenhub.repositories.image import ImageRepository
from tests.conftest import auth_headers, make_image_bytes


def image_upload(name: str, content: bytes, content_type: str = "image/jpeg") -> tuple:
    return ("files", (name, content, content_type))


class TestImageUpload:
    """POST /api/v1/properties/{id}/images."""

    @pytest.mark.asyncio
    async def test_upload_in_display_order(
        self,
        async_client: AsyncClient,
        settings,
        test_dealer: Profile,
        approved_property: Property
    ):
        response = await async_client.post(
            f"/api/v1/properties/{approved_property.id}/images",
            headers=auth_headers(test_dealer),
            files=[
                image_upload("front.jpg", make_image_bytes("JPEG")),
                image_upload("garden.png", make_image_bytes("PNG"), "image/png"),
            ]
        )

        assert response.status_code == 201
        data = response.json()
        assert data["uploaded_count"] == 2
        assert data["errors"] == []
        assert [image["display_order"] for image in data["images"]] == [0, 1]
        for image in data["images"]:
            assert image["image_url"].startswith(f"/media/properties/{approved_property.id}/")
            relative = image["image_url"][len("/media/"):]
            assert (Path(settings.upload_dir) / relative).exists()

        detail = await async_client.get(f"/api/v1/properties/{approved_property.id}")
        assert [image["display_order"] for image in detail.json()["images"]] == [0, 1]

    @pytest.mark.asyncio
    async def test_second_batch_continues_order(
        self,
        async_client: AsyncClient,
        db_session,
        test_dealer: Profile,
        approved_property: Property
    ):
        url = f"/api/v1/properties/{approved_property.id}/images"
        headers = auth_headers(test_dealer)

        await async_client.post(url, headers=headers, files=[image_upload("a.jpg", make_image_bytes())])
        response = await async_client.post(url, headers=headers, files=[image_upload("b.jpg", make_image_bytes())])

        assert response.json()["images"][0]["display_order"] == 1
        assert await ImageRepository(db_session).count_by_property_id(approved_property.id) == 2

    @pytest.mark.asyncio
    async def test_invalid_files_reported_and_skipped(
        self,
        async_client: AsyncClient,
        test_dealer: Profile,
        approved_property: Property
    ):
        response = await async_client.post(
            f"/api/v1/properties/{approved_property.id}/images",
            headers=auth_headers(test_dealer),
            files=[
                image_upload("good.jpg", make_image_bytes()),
                image_upload("notes.jpg", b"definitely not an image"),
                image_upload("mislabelled.jpg", make_image_bytes("PNG")),
            ]
        )

        assert response.status_code == 201
        data = response.json()
        assert data["uploaded_count"] == 1
        assert sorted(error["filename"] for error in data["errors"]) == ["mislabelled.jpg", "notes.jpg"]

    @pytest.mark.asyncio
    async def test_all_invalid_fails(
        self,
        async_client: AsyncClient,
        test_dealer: Profile,
        approved_property: Property
    ):
        response = await async_client.post(
            f"/api/v1/properties/{approved_property.id}/images",
            headers=auth_headers(test_dealer),
            files=[image_upload("doc.pdf", b"%PDF-1.4", "application/pdf")]
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_only_owner_may_upload(
        self,
        async_client: AsyncClient,
        test_user: Profile,
        approved_property: Property
    ):
        response = await async_client.post(
            f"/api/v1/properties/{approved_property.id}/images",
            headers=auth_headers(test_user),
            files=[image_upload("a.jpg", make_image_bytes())]
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deleting_property_removes_files(
        self,
        async_client: AsyncClient,
        settings,
        test_dealer: Profile,
        approved_property: Property
    ):
        headers = auth_headers(test_dealer)
        upload = await async_client.post(
            f"/api/v1/properties/{approved_property.id}/images",
            headers=headers,
            files=[image_upload("a.jpg", make_image_bytes())]
        )
        stored = Path(settings.upload_dir) / upload.json()["images"][0]["image_url"][len("/media/"):]
        assert stored.exists()

        response = await async_client.delete(f"/api/v1/properties/{approved_property.id}", headers=headers)

        assert response.status_code == 204
        assert not stored.exists()
