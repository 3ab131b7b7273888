import logging
import os
from collections.abc import Iterator
from uuid import uuid4

from workstay.config import GCPSettings, ImageModerationSettings
from workstay.db.core import to_object_id
from workstay.db.images import ImageRepository, MovePhase, StorageMoveJournal
from workstay.errors import ExternalServiceError, NotFoundError, StorageError, ValidationError
from workstay.models.image import Image, ImageListResponse, ImageStatus, ModerationStats, VisionAIRawData
from workstay.services.moderation import (
    BucketPair,
    Classification,
    ModerationThresholds,
    decide,
    plan_relocation,
    triggered_categories,
)
from workstay.storage import ObjectStore
from workstay.vision import SafeSearchClassifier

logger = logging.getLogger(__name__)

_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
_CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def object_extension(filename: str | None, content_type: str | None) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if ext in _EXTENSIONS:
        return ext
    return _CONTENT_TYPE_EXTENSIONS.get((content_type or "").lower(), "jpg")


class ImageService:
    """Upload, moderation and storage placement of user images."""

    def __init__(
        self,
        repo: ImageRepository,
        store: ObjectStore,
        journal: StorageMoveJournal,
        classifier: SafeSearchClassifier | None,
        gcp_settings: GCPSettings,
        moderation_settings: ImageModerationSettings,
    ):
        self.repo = repo
        self.store = store
        self.journal = journal
        self.classifier = classifier
        self.buckets = BucketPair(public=gcp_settings.public_bucket, private=gcp_settings.private_bucket)
        self.thresholds = ModerationThresholds.from_settings(moderation_settings)
        self.imagekit_endpoint = moderation_settings.imagekit_endpoint

    def public_url(self, key: str) -> str:
        if not self.imagekit_endpoint:
            return ""
        return f"{self.imagekit_endpoint}/{key}"

    async def upload_image(
        self,
        user_id: str,
        data: bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> Image:
        if not data:
            raise ValidationError(detail="image file is required")
        if content_type and not content_type.lower().startswith("image/"):
            raise ValidationError(detail="uploaded file is not an image", content_type=content_type)
        to_object_id(user_id, "user id")

        key = f"{user_id}/{uuid4()}.{object_extension(filename, content_type)}"
        await self.store.put(self.buckets.private, key, data, content_type=content_type)

        classification = await self._classify(key)
        status = decide(classification, self.thresholds)
        if status == ImageStatus.REJECTED:
            logger.info("Image rejected key=%s categories=%s", key, triggered_categories(classification, self.thresholds))

        public_url = ""
        if status == ImageStatus.APPROVED:
            try:
                await self.move_object(key, self.buckets.private, self.buckets.public)
                public_url = self.public_url(key)
            except StorageError:
                logger.error("Failed to move approved image to public bucket, falling back to review key=%s", key)
                status = ImageStatus.PENDING

        image = Image(
            user_id=user_id,
            gcs_path=key,
            public_url=public_url,
            status=status,
            vision_data=classification.to_raw() if classification else VisionAIRawData(),
        )
        image = await self.repo.create(image)
        logger.info("Image uploaded id=%s user=%s status=%s", image.id, user_id, image.status)
        return image

    async def _classify(self, key: str) -> Classification | None:
        if self.classifier is None:
            return None
        try:
            return await self.classifier.classify(f"gs://{self.buckets.private}/{key}")
        except ExternalServiceError as e:
            logger.warning("Classification unavailable, image left for manual review key=%s err=%s", key, e.context)
            return None

    async def move_object(self, key: str, source: str, destination: str, image_id: str | None = None) -> None:
        """Copy the object to ``destination`` then delete it from ``source``.

        Each step is journaled. A failed copy leaves the object where it was.
        A failed source delete removes the destination copy again, so the
        object stays only in ``source``; if that rollback fails too the
        journal is left at COPIED for ``reconcile_images``.
        """
        move_id = await self.journal.start(key, source, destination, image_id)
        logger.info("storage.move start move=%s key=%s src=%s dst=%s", move_id, key, source, destination)
        try:
            await self.store.copy(source, key, destination, key)
        except StorageError as e:
            await self.journal.mark(move_id, MovePhase.FAILED, error=str(e.context))
            raise
        await self.journal.mark(move_id, MovePhase.COPIED)
        try:
            await self.store.delete(source, key)
        except StorageError as e:
            logger.error("storage.move source delete failed move=%s key=%s err=%s", move_id, key, e.context)
            await self._roll_back(move_id, key, destination)
            raise
        await self.journal.mark(move_id, MovePhase.COMPLETED)
        logger.info("storage.move done move=%s key=%s", move_id, key)

    async def _roll_back(self, move_id: str, key: str, destination: str) -> None:
        try:
            await self.store.delete(destination, key)
        except StorageError as e:
            logger.error("storage.move rollback failed move=%s key=%s err=%s", move_id, key, e.context)
            return
        await self.journal.mark(move_id, MovePhase.FAILED, error="source delete failed, copy rolled back")
        logger.info("storage.move rolled back move=%s key=%s", move_id, key)

    async def get_image(self, image_id: str) -> Image:
        image = await self.repo.get_by_id(image_id)
        if image is None:
            raise NotFoundError(detail="image not found", resource_id=image_id)
        return image

    async def update_image_status(self, image_id: str, new_status: ImageStatus) -> Image:
        """Change moderation status, relocating the object across buckets if needed.

        Same-status requests return the image untouched. Storage failures
        abort before the record is updated.
        """
        image = await self.get_image(image_id)
        if image.status == new_status:
            return image

        relocation = plan_relocation(image.status, new_status, self.buckets)
        if relocation is not None:
            source, destination = relocation
            await self.move_object(image.gcs_path, source, destination, image_id=image_id)

        public_url = self.public_url(image.gcs_path) if new_status == ImageStatus.APPROVED else ""
        updated_at = await self.repo.update_status(image_id, new_status, public_url)
        logger.info("Image status changed id=%s %s -> %s", image_id, image.status, new_status)
        return image.model_copy(update={"status": new_status, "public_url": public_url, "updated_at": updated_at})

    async def review_image(self, image_id: str, approved: bool) -> Image:
        return await self.update_image_status(image_id, ImageStatus.APPROVED if approved else ImageStatus.REJECTED)

    async def get_image_content(self, image: Image) -> Iterator[bytes]:
        """Stream the object from the bucket implied by the image status."""
        return await self.store.get(self.buckets.for_status(image.status), image.gcs_path)

    async def list_images(self, status: ImageStatus, limit: int, offset: int) -> ImageListResponse:
        images, total = await self.repo.list_by_status(status, limit, offset)
        return ImageListResponse(
            data=images,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(images) < total,
        )

    async def moderation_stats(self) -> ModerationStats:
        return ModerationStats(
            pending=await self.repo.count_by_status(ImageStatus.PENDING),
            approved=await self.repo.count_by_status(ImageStatus.APPROVED),
            rejected=await self.repo.count_by_status(ImageStatus.REJECTED),
        )
