from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """Liveness check that also touches the database."""
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
    return JsonResponse({'status': 'ok'})


def _error(message, code, status):
    return JsonResponse({'error': message, 'code': code, 'status': status}, status=status)


def error_404(request, exception):
    """JSON 404 for paths outside the API routers."""
    return _error('Requested resource not found.', 'not_found', 404)


def error_500(request):
    return _error('Internal server error.', 'server_error', 500)
