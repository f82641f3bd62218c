"""
WebSocket authentication middleware.

Provides JWT authentication for WebSocket connections.

Token Passing Methods:
    1. Query string: ws://host/ws/provider/orders/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

Usage in config/asgi.py:
    from authentication.middleware import JWTAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


def get_token_from_scope(scope) -> str | None:
    """Extract a JWT from the query string, falling back to the subprotocol."""
    query_string = scope.get("query_string", b"").decode()
    token_list = parse_qs(query_string).get("token", [])
    if token_list:
        return token_list[0]

    subprotocols = scope.get("subprotocols", [])
    if len(subprotocols) >= 2 and subprotocols[0] == "jwt":
        return subprotocols[1]
    return None


@database_sync_to_async
def get_user_from_token(token: str):
    """
    Validate a JWT access token and load its user.

    Returns:
        Active User instance, or AnonymousUser for any invalid token
    """
    User = get_user_model()

    try:
        access_token = AccessToken(token)
        user = User.objects.get(id=access_token["user_id"])
    except TokenError as exc:
        logger.warning("Invalid JWT token on WebSocket connect: %s", exc)
        return AnonymousUser()
    except (KeyError, User.DoesNotExist):
        logger.warning("User not found for WebSocket token")
        return AnonymousUser()

    if not user.is_active:
        logger.warning(
            "Inactive user attempted WebSocket connection",
            extra={"user_id": str(user.pk)},
        )
        return AnonymousUser()
    return user


class JWTAuthMiddleware(BaseMiddleware):
    """
    Attaches the JWT-authenticated user to ``scope["user"]``.

    Connections without a valid token get AnonymousUser; the consumer
    decides whether to close them.
    """

    async def __call__(self, scope, receive, send):
        token = get_token_from_scope(scope)
        if token:
            scope["user"] = await get_user_from_token(token)
        else:
            scope["user"] = AnonymousUser()
        return await super().__call__(scope, receive, send)
