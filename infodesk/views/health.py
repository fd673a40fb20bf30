from django.conf import settings
from django.db import connections
from django.http import JsonResponse


def healthz(request):
    """Database reachability plus the reply endpoint chat sessions will use."""
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except Exception as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=500)
    return JsonResponse({
        'ok': True,
        'db': bool(row and row[0] == 1),
        'chat': {'replyUrl': settings.CHAT_API_URL, 'timeout': settings.CHAT_REPLY_TIMEOUT},
    })
