from rest_framework.authentication import BaseAuthentication


class HeaderUserAuthentication(BaseAuthentication):
    """
    Accept the user logged in by HeaderLoginMiddleware. Unlike session
    authentication it does not enforce CSRF, and it makes DRF answer
    unauthenticated requests with 401 instead of 403.
    """

    def authenticate(self, request):
        user = getattr(request._request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        return (user, None)

    def authenticate_header(self, request):
        return "X-User-NAME"
