"""Tests for centralized configuration."""

import os
from unittest.mock import patch


class TestMongoSettings:
    def test_defaults(self):
        from workstay.config import MongoSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = MongoSettings()
            assert settings.uri == "mongodb://localhost:27017"
            assert settings.database == "workstay"
            assert settings.max_pool_size == 100

    def test_from_environment(self):
        from workstay.config import MongoSettings

        env = {"MONGODB_URI": "mongodb://db:27017", "MONGODB_DATABASE": "stays"}
        with patch.dict(os.environ, env, clear=True):
            settings = MongoSettings()
            assert settings.uri == "mongodb://db:27017"
            assert settings.database == "stays"


class TestRedisSettings:
    def test_defaults(self):
        from workstay.config import RedisSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = RedisSettings()
            assert settings.host == "redis"
            assert settings.port == 6379
            assert settings.password == ""

    def test_from_environment(self):
        from workstay.config import RedisSettings

        env = {"REDIS_HOST": "cache", "REDIS_PORT": "6380", "REDIS_MAX_CONNECTIONS": "10"}
        with patch.dict(os.environ, env, clear=True):
            settings = RedisSettings()
            assert settings.host == "cache"
            assert settings.port == 6380
            assert settings.max_connections == 10


class TestGCPSettings:
    def test_bucket_defaults(self):
        from workstay.config import GCPSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = GCPSettings()
            assert settings.public_bucket == "workstay-public"
            assert settings.private_bucket == "workstay-private"

    def test_buckets_from_environment(self):
        from workstay.config import GCPSettings

        env = {
            "GCP_PROJECT_ID": "proj",
            "GCP_STORAGE_PUBLIC_BUCKET": "pub",
            "GCP_STORAGE_PRIVATE_BUCKET": "priv",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = GCPSettings()
            assert settings.project_id == "proj"
            assert settings.public_bucket == "pub"
            assert settings.private_bucket == "priv"


class TestImageModerationSettings:
    def test_thresholds_default_to_likely(self):
        from workstay.config import ImageModerationSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = ImageModerationSettings()
            assert set(settings.thresholds.values()) == {"LIKELY"}
            assert settings.imagekit_endpoint == ""

    def test_labels_are_normalized(self):
        from workstay.config import ImageModerationSettings

        env = {
            "IMAGE_REJECT_ADULT": " very_likely ",
            "IMAGE_REJECT_RACY": "",
            "IMAGEKIT_URL_ENDPOINT": "https://ik.imagekit.io/ws/",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = ImageModerationSettings()
            assert settings.reject_adult == "VERY_LIKELY"
            assert settings.reject_racy == ""
            assert settings.thresholds["racy"] == ""
            assert settings.imagekit_endpoint == "https://ik.imagekit.io/ws"


class TestNotificationSettings:
    def test_defaults(self):
        from workstay.config import NotificationSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = NotificationSettings()
            assert settings.queue_key == "workstay:notifications"
            assert settings.max_attempts == 5
            assert settings.workers == 2

    def test_from_environment(self):
        from workstay.config import NotificationSettings

        env = {"NOTIFICATION_MAX_ATTEMPTS": "7", "NOTIFICATION_WORKERS": "4"}
        with patch.dict(os.environ, env, clear=True):
            settings = NotificationSettings()
            assert settings.max_attempts == 7
            assert settings.workers == 4


class TestFlags:
    def test_request_debug_flag(self):
        from workstay.config import DebugSettings

        with patch.dict(os.environ, {"REQUEST_DEBUG": "1"}, clear=True):
            assert DebugSettings().request is True
        with patch.dict(os.environ, {}, clear=True):
            assert DebugSettings().request is False

    def test_feature_flags(self):
        from workstay.config import FeatureSettings

        with patch.dict(os.environ, {"ENABLE_VISION": "0"}, clear=True):
            features = FeatureSettings()
            assert features.vision is False
            assert features.notification_worker is True

    def test_cors_origins_parsing(self):
        from workstay.config import CorsSettings

        with patch.dict(os.environ, {"CORS_ORIGINS": "https://a.com, https://b.com,"}, clear=True):
            cors = CorsSettings()
            assert cors.origins == ["https://a.com", "https://b.com"]
            assert cors.allow_credentials is True
        with patch.dict(os.environ, {"CORS_ORIGINS": "*"}, clear=True):
            assert CorsSettings().allow_credentials is False


class TestGetSettings:
    def test_cached_until_cleared(self):
        from workstay.config import clear_settings_cache, get_settings

        clear_settings_cache()
        first = get_settings()
        assert get_settings() is first
        clear_settings_cache()
        assert get_settings() is not first
        clear_settings_cache()
