"""Domain services: availability, admission, moderation, search, notifications."""
