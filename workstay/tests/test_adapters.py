"""Tests for the Cloud Storage and Vision adapters."""

from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions
from google.cloud import vision

from workstay.errors import ExternalServiceError, NotFoundError, StorageError
from workstay.models.image import Likelihood
from workstay.storage import ObjectStore
from workstay.vision import SafeSearchClassifier


@pytest.fixture
def gcs_client():
    return MagicMock()


class TestObjectStore:
    @pytest.mark.asyncio
    async def test_put_uploads_with_content_type(self, gcs_client):
        store = ObjectStore(gcs_client)
        await store.put("ws-private", "u1/a.png", b"data", content_type="image/png")

        blob = gcs_client.bucket.return_value.blob.return_value
        blob.upload_from_string.assert_called_once_with(b"data", content_type="image/png")

    @pytest.mark.asyncio
    async def test_copy_between_buckets(self, gcs_client):
        store = ObjectStore(gcs_client)
        await store.copy("ws-private", "u1/a.png", "ws-public", "u1/a.png")

        source = gcs_client.bucket.return_value
        source.copy_blob.assert_called_once()
        assert source.copy_blob.call_args.args[2] == "u1/a.png"

    @pytest.mark.asyncio
    async def test_api_error_becomes_storage_error(self, gcs_client):
        gcs_client.bucket.return_value.copy_blob.side_effect = gcp_exceptions.Forbidden("denied")
        store = ObjectStore(gcs_client)

        with pytest.raises(StorageError) as exc_info:
            await store.copy("ws-private", "k", "ws-public", "k")
        assert exc_info.value.context["bucket"] == "ws-private"

    @pytest.mark.asyncio
    async def test_missing_object_is_not_found(self, gcs_client):
        gcs_client.bucket.return_value.blob.return_value.reload.side_effect = gcp_exceptions.NotFound("gone")
        store = ObjectStore(gcs_client)

        with pytest.raises(NotFoundError):
            await store.get("ws-private", "k")


class TestSafeSearchClassifier:
    @pytest.mark.asyncio
    async def test_maps_likelihoods(self):
        client = MagicMock()
        client.safe_search_detection.return_value = vision.AnnotateImageResponse(
            safe_search_annotation=vision.SafeSearchAnnotation(
                adult=vision.Likelihood.LIKELY,
                spoof=vision.Likelihood.VERY_UNLIKELY,
                medical=vision.Likelihood.UNLIKELY,
                violence=vision.Likelihood.POSSIBLE,
                racy=vision.Likelihood.VERY_LIKELY,
            )
        )

        result = await SafeSearchClassifier(client).classify("gs://ws-private/u1/a.png")

        assert result.adult is Likelihood.LIKELY
        assert result.spoof is Likelihood.VERY_UNLIKELY
        assert result.violence is Likelihood.POSSIBLE
        assert result.racy is Likelihood.VERY_LIKELY

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = MagicMock()
        client.safe_search_detection.side_effect = gcp_exceptions.ServiceUnavailable("down")

        with pytest.raises(ExternalServiceError):
            await SafeSearchClassifier(client).classify("gs://ws-private/u1/a.png")

    @pytest.mark.asyncio
    async def test_error_in_response(self):
        client = MagicMock()
        client.safe_search_detection.return_value = vision.AnnotateImageResponse(
            error={"code": 3, "message": "Bad image data."}
        )

        with pytest.raises(ExternalServiceError):
            await SafeSearchClassifier(client).classify("gs://ws-private/u1/a.png")

    @pytest.mark.asyncio
    async def test_missing_annotation(self):
        client = MagicMock()
        client.safe_search_detection.return_value = vision.AnnotateImageResponse()

        with pytest.raises(ExternalServiceError):
            await SafeSearchClassifier(client).classify("gs://ws-private/u1/a.png")
