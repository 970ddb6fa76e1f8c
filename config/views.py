from django.db import connection
from django.http import JsonResponse
from django.utils import timezone


def health_check(request):
    """Liveness check; also checks the database answers."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception:
        return JsonResponse({
            'status': 'unhealthy',
            'database': 'unavailable',
        }, status=503)

    return JsonResponse({
        'status': 'ok',
        'time': timezone.now().isoformat(),
    })


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'status': 404
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': 'Internal server error',
        'status': 500
    }, status=500)
