"""
Custom middleware for the print marketplace API.
"""
import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """
    Log one line per API request: method, path, status, caller and duration.
    Runs after AuthenticationMiddleware. Denials (4xx) are logged at warning.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        if not request.path.startswith("/api/"):
            return response
        user = getattr(request, "user", None)
        caller = user.pk if user is not None and user.is_authenticated else "anon"
        elapsed_ms = (time.monotonic() - started) * 1000
        level = logging.WARNING if 400 <= response.status_code < 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%s, %.1fms)",
            request.method,
            request.path,
            response.status_code,
            caller,
            elapsed_ms,
        )
        return response
