"""
Unit tests for viewer tokens.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from reporting.auth.jwt import create_viewer_token, decode_viewer_token
from reporting.config import get_settings
from reporting.engine.access import Viewer
from reporting.models.enums import ReportingCategory, UserRole


def _encode(claims: dict) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {"iat": now, "exp": now + timedelta(minutes=5), "type": "access", **claims}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class TestViewerTokens:
    def test_round_trip_keeps_reporting_claims(self):
        viewer = Viewer(
            user_id="board_7",
            name="Board Seven",
            role=UserRole.BOARD_MEMBER,
            has_reporting_access=True,
            reporting_categories=[ReportingCategory.CALLS, ReportingCategory.FINANCIALS],
        )

        decoded = decode_viewer_token(create_viewer_token(viewer))

        assert decoded == viewer

    def test_token_carries_only_viewer_claims(self):
        token = create_viewer_token(Viewer(user_id="admin_1", role=UserRole.ADMIN))

        claims = jwt.get_unverified_claims(token)

        assert claims["sub"] == "admin_1"
        assert claims["type"] == "access"
        assert set(claims) == {
            "sub", "name", "role", "has_reporting_access", "reporting_categories",
            "iat", "exp", "type",
        }

    def test_missing_reporting_claims_grant_nothing(self):
        decoded = decode_viewer_token(_encode({"sub": "board_2", "role": "board_member"}))

        assert decoded.has_reporting_access is False
        assert decoded.reporting_categories == []

    def test_expired_token_rejected(self):
        token = create_viewer_token(
            Viewer(user_id="admin_1", role=UserRole.ADMIN),
            expires_delta=timedelta(seconds=-1),
        )
        with pytest.raises(JWTError):
            decode_viewer_token(token)

    @pytest.mark.parametrize(
        "claims",
        [
            {"role": "admin"},
            {"sub": "", "role": "admin"},
            {"sub": "user_1"},
            {"sub": "user_1", "role": "janitor"},
            {"sub": "user_1", "role": "admin", "type": "refresh"},
            {"sub": "user_1", "role": "board_member", "reporting_categories": ["payroll"]},
        ],
    )
    def test_invalid_claims_rejected(self, claims):
        with pytest.raises(JWTError):
            decode_viewer_token(_encode(claims))

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": "admin_1", "role": "admin", "type": "access"},
            "some-other-secret",
            algorithm=get_settings().jwt_algorithm,
        )
        with pytest.raises(JWTError):
            decode_viewer_token(token)
