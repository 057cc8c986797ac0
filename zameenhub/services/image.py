"""
Image service for property photo uploads, storage, and cleanup.
Files live under ``<upload_dir>/properties/<property_id>/`` and are served
from ``media_url_prefix``.
"""

import io
import uuid
import logging
from pathlib import Path
from typing import List, Optional, Tuple
from PIL import Image, UnidentifiedImageError
import aiofiles
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from zameenhub.config import Settings, get_settings
from zameenhub.models.image import PropertyImage
from zameenhub.repositories.image import ImageRepository
from zameenhub.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
EXPECTED_FORMATS = {
    "image/jpeg": {"jpeg", "jpg", "mpo"},
    "image/png": {"png"},
    "image/webp": {"webp"},
}


class ImageService:
    """Service for managing property image uploads and storage."""

    def __init__(self, db_session: AsyncSession, settings: Optional[Settings] = None):
        self.db = db_session
        self.settings = settings or get_settings()
        self.repository = ImageRepository(db_session)
        self.upload_dir = Path(self.settings.upload_dir)
        self.max_file_size = self.settings.max_file_size
        self.allowed_types = self.settings.allowed_file_types

        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def validate_image_file(self, file: UploadFile) -> bytes:
        """
        Validate an uploaded image and return its content.

        Raises:
            ValidationError: If size, type, extension or content is wrong
        """
        if not file.filename:
            raise ValidationError("Filename is required")

        if file.content_type not in self.allowed_types:
            raise ValidationError(
                f"File type '{file.content_type}' not allowed. Allowed types: {', '.join(self.allowed_types)}"
            )

        file_ext = Path(file.filename).suffix.lower()
        if file_ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"File extension '{file_ext}' not allowed. Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )

        await file.seek(0)
        content = await file.read()
        await file.seek(0)

        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(f"File size exceeds maximum allowed size of {max_mb:.1f}MB")
        if not content:
            raise ValidationError("File is empty")

        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                pil_format = (img.format or "").lower()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if pil_format not in EXPECTED_FORMATS.get(file.content_type, set()):
            raise ValidationError(f"File content doesn't match declared type {file.content_type}")

        return content

    def _generate_file_path(self, property_id: uuid.UUID, filename: str) -> Path:
        property_dir = self.upload_dir / "properties" / str(property_id)
        property_dir.mkdir(parents=True, exist_ok=True)
        return property_dir / f"{uuid.uuid4()}{Path(filename).suffix.lower()}"

    def build_public_url(self, relative_path: str) -> str:
        return f"{self.settings.media_url_prefix}/{relative_path}"

    async def save_image_file(self, content: bytes, file_path: Path) -> None:
        """
        Write image bytes to disk, removing any partial file on failure.
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            if file_path.exists():
                file_path.unlink()
            raise ValidationError(f"Failed to save image file: {str(e)}")

    async def upload_image(
        self,
        property_id: uuid.UUID,
        file: UploadFile,
        display_order: int
    ) -> PropertyImage:
        """
        Validate, store and record one image.

        Raises:
            ValidationError: If validation or storage fails
        """
        content = await self.validate_image_file(file)

        file_path = self._generate_file_path(property_id, file.filename)
        await self.save_image_file(content, file_path)
        relative_path = file_path.relative_to(self.upload_dir).as_posix()

        try:
            return await self.repository.create({
                "property_id": property_id,
                "image_url": self.build_public_url(relative_path),
                "storage_path": relative_path,
                "display_order": display_order,
            })
        except Exception as e:
            if file_path.exists():
                file_path.unlink()
            logger.error(f"Failed to record image for property {property_id}: {e}")
            raise ValidationError(f"Failed to create image record: {str(e)}")

    async def upload_multiple_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile]
    ) -> Tuple[List[PropertyImage], List[dict]]:
        """
        Upload a batch in order, after any existing images.

        Returns:
            Tuple of (created images, per-file errors)

        Raises:
            ValidationError: If the batch is empty or too large, or every file failed
        """
        if not files:
            raise ValidationError("At least one image is required")
        if len(files) > self.settings.max_images_per_upload:
            raise ValidationError(
                f"Maximum {self.settings.max_images_per_upload} images allowed per upload"
            )

        max_order = await self.repository.get_max_display_order(property_id)
        next_order = 0 if max_order is None else max_order + 1

        uploaded_images: List[PropertyImage] = []
        errors: List[dict] = []

        for file in files:
            try:
                image = await self.upload_image(property_id, file, next_order)
            except ValidationError as e:
                logger.warning(f"Skipping upload {file.filename} for property {property_id}: {e.detail}")
                errors.append({"filename": file.filename or "", "error": e.detail})
                continue
            uploaded_images.append(image)
            next_order += 1

        if not uploaded_images:
            raise ValidationError(
                "All uploads failed: " + "; ".join(f"{err['filename']}: {err['error']}" for err in errors),
                field_errors=[{"field": err["filename"], "message": err["error"]} for err in errors]
            )

        logger.info(f"Uploaded {len(uploaded_images)} images for property {property_id}")
        return uploaded_images, errors

    def remove_files(self, images: List[PropertyImage]) -> int:
        """
        Delete stored files for the given image rows. Missing files are ignored.

        Returns:
            Number of files removed
        """
        removed = 0
        property_dirs = set()
        for image in images:
            if not image.storage_path:
                continue
            file_path = self.upload_dir / image.storage_path
            property_dirs.add(file_path.parent)
            try:
                file_path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to delete image file {file_path}: {e}")

        for property_dir in property_dirs:
            if property_dir.exists() and not any(property_dir.iterdir()):
                property_dir.rmdir()

        return removed

    async def delete_property_images(self, property_id: uuid.UUID) -> int:
        """
        Remove the files of a property's images. Rows go with the property via cascade.
        """
        images = await self.repository.get_by_property_id(property_id)
        return self.remove_files(images)

    async def delete_owner_images(self, owner_id: uuid.UUID) -> int:
        """Remove the files of every image on an owner's properties."""
        images = await self.repository.get_by_owner_id(owner_id)
        return self.remove_files(images)
