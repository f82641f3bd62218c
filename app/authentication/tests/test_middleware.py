"""
Tests for the WebSocket JWT middleware helpers.
"""

import pytest
from asgiref.sync import async_to_sync
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.tokens import AccessToken

from authentication.middleware import get_token_from_scope, get_user_from_token
from authentication.tests.factories import UserFactory


class TestGetTokenFromScope:
    """Token extraction from the connection scope."""

    def test_query_string_token(self):
        scope = {"query_string": b"token=abc.def.ghi"}

        assert get_token_from_scope(scope) == "abc.def.ghi"

    def test_subprotocol_token(self):
        scope = {"query_string": b"", "subprotocols": ["jwt", "abc.def.ghi"]}

        assert get_token_from_scope(scope) == "abc.def.ghi"

    def test_query_string_wins_over_subprotocol(self):
        scope = {"query_string": b"token=first", "subprotocols": ["jwt", "second"]}

        assert get_token_from_scope(scope) == "first"

    def test_missing_token(self):
        assert get_token_from_scope({"query_string": b"", "subprotocols": []}) is None

    def test_subprotocol_without_jwt_marker_ignored(self):
        scope = {"query_string": b"", "subprotocols": ["graphql-ws", "abc"]}

        assert get_token_from_scope(scope) is None


@pytest.mark.django_db(transaction=True)
class TestGetUserFromToken:
    """
    Token validation against the user table.

    database_sync_to_async closes stale connections, so these run outside
    the per-test transaction.
    """

    def test_valid_token_returns_user(self):
        user = UserFactory()
        token = str(AccessToken.for_user(user))

        assert async_to_sync(get_user_from_token)(token) == user

    def test_garbage_token_is_anonymous(self):
        result = async_to_sync(get_user_from_token)("not-a-jwt")

        assert isinstance(result, AnonymousUser)

    def test_inactive_user_is_anonymous(self):
        user = UserFactory(is_active=False)
        token = str(AccessToken.for_user(user))

        result = async_to_sync(get_user_from_token)(token)

        assert isinstance(result, AnonymousUser)
