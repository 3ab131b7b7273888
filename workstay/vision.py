"""Google Cloud Vision SafeSearch adapter."""

import asyncio
import logging

from google.api_core import exceptions as gcp_exceptions
from google.cloud import vision

from workstay.errors import ExternalServiceError
from workstay.models.image import MODERATION_CATEGORIES, Likelihood
from workstay.services.moderation import Classification

logger = logging.getLogger(__name__)


class SafeSearchClassifier:
    def __init__(self, client: vision.ImageAnnotatorClient):
        self.client = client

    @classmethod
    def create(cls) -> "SafeSearchClassifier":
        return cls(vision.ImageAnnotatorClient())

    async def classify(self, gcs_uri: str) -> Classification:
        """Classify one stored image.

        Raises:
            ExternalServiceError: the API call failed or returned no annotation.
        """
        image = vision.Image(source=vision.ImageSource(gcs_image_uri=gcs_uri))
        try:
            response = await asyncio.to_thread(self.client.safe_search_detection, image=image)
        except gcp_exceptions.GoogleAPIError as e:
            raise ExternalServiceError(detail="vision request failed", uri=gcs_uri, reason=str(e)) from e

        if response.error.message:
            raise ExternalServiceError(detail="vision returned an error", uri=gcs_uri, reason=response.error.message)
        if "safe_search_annotation" not in response:
            raise ExternalServiceError(detail="vision returned no safe search annotation", uri=gcs_uri)

        annotation = response.safe_search_annotation
        result = Classification(
            **{c: Likelihood(int(getattr(annotation, c))) for c in MODERATION_CATEGORIES}
        )
        logger.debug("safe search uri=%s result=%s", gcs_uri, result)
        return result
