from django.contrib.auth import get_user_model, login
from django.http import JsonResponse
import structlog

logger = structlog.get_logger()


# Trusted front proxy sets X-User-NAME; there is no password step here
class HeaderLoginMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith("/api"):
            username = request.headers.get("X-User-NAME")
            if username:
                User = get_user_model()
                try:
                    user = User.objects.get(username=username)
                except User.DoesNotExist:
                    logger.info("header_login_rejected", username=username)
                    return JsonResponse(
                        {"error": "User not found or invalid credentials."}, status=401
                    )
                login(request, user)
        return self.get_response(request)
