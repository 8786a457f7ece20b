"""
Simple health check endpoint.
"""
from django.db import connection
from django.http import JsonResponse


def health_view(request):
    """Return 200 OK when the database answers, 503 otherwise."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception:
        return JsonResponse({"status": "unavailable"}, status=503)
    return JsonResponse({"status": "ok"})
