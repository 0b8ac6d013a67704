"""
Unit tests for WebSocket authentication.
"""

from types import SimpleNamespace

import pytest

from dcmaint.models.enums import UserRole
from dcmaint.routers.websocket import authenticate_websocket


def fake_websocket(cookies=None, query_params=None):
    return SimpleNamespace(cookies=cookies or {}, query_params=query_params or {})


@pytest.mark.unit
class TestAuthenticateWebsocket:
    """Tests for authenticate_websocket."""

    def test_cookie_token(self, engineer_principal, headers_for):
        token = headers_for(engineer_principal)["Authorization"].removeprefix("Bearer ")

        principal = authenticate_websocket(fake_websocket(cookies={"access_token": token}))

        assert principal is not None
        assert principal.user_id == engineer_principal.user_id
        assert principal.role == UserRole.ENGINEER

    def test_query_token(self, admin_principal, headers_for):
        token = headers_for(admin_principal)["Authorization"].removeprefix("Bearer ")

        principal = authenticate_websocket(fake_websocket(query_params={"token": token}))

        assert principal is not None
        assert principal.is_admin

    def test_no_token(self):
        assert authenticate_websocket(fake_websocket()) is None

    def test_invalid_token(self):
        assert authenticate_websocket(fake_websocket(query_params={"token": "junk"})) is None
