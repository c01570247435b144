from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response


class UserViewSet(viewsets.ViewSet):
    """
    ViewSet for user-related operations.
    """

    @action(detail=False, methods=["get"])
    def me(self, request):
        """
        Returns the logged-in user's profile and token balance.
        """
        if request.user.is_authenticated:
            user = request.user
            return Response(
                {
                    "username": user.username,
                    "display_name": user.display_name,
                    "tokens": user.tokens,
                },
                status=status.HTTP_200_OK,
            )
        else:
            return Response(
                {"error": "User not authenticated"}, status=status.HTTP_401_UNAUTHORIZED
            )
