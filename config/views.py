from django.db import connection, DatabaseError
from django.http import JsonResponse
import logging

logger = logging.getLogger(__name__)


def health_view(request):
    """Liveness plus a trivial database round trip."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error("Health check database failure: %s", e)
        return JsonResponse({'status': 'error', 'database': 'unavailable'}, status=503)
    return JsonResponse({'status': 'ok', 'database': 'ok'})
