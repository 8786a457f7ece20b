from rest_framework.throttling import UserRateThrottle


class UploadRateThrottle(UserRateThrottle):
    """30 uploads per minute per user."""

    scope = "uploads"
    rate = "30/min"
