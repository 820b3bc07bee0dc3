import time
from unittest.mock import MagicMock, patch

import pytest
import requests
from jose import jwt

from app.errors import Unauthorized
from app.services.identity import IdentityVerifier, parse_bearer

SECRET = "test-jwt-secret"


def _token(**claims):
    payload = {"sub": "user-123", "aud": "authenticated", "exp": int(time.time()) + 60}
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


class TestParseBearer:
    def test_extracts_token(self):
        assert parse_bearer("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer abc", "Bearer   "])
    def test_rejects_malformed_headers(self, header):
        with pytest.raises(Unauthorized):
            parse_bearer(header)


class TestLocalVerification:
    def setup_method(self):
        self.verifier = IdentityVerifier(jwt_secret=SECRET, auth_url="")

    def test_accepts_valid_token(self):
        assert self.verifier.verify(_token()) == "user-123"

    def test_rejects_expired_token(self):
        with pytest.raises(Unauthorized, match="Invalid token"):
            self.verifier.verify(_token(exp=int(time.time()) - 10))

    def test_rejects_wrong_audience(self):
        with pytest.raises(Unauthorized):
            self.verifier.verify(_token(aud="anon"))

    def test_rejects_wrong_signature(self):
        forged = jwt.encode({"sub": "user-123", "aud": "authenticated"}, "other", algorithm="HS256")
        with pytest.raises(Unauthorized):
            self.verifier.verify(forged)

    def test_rejects_token_without_subject(self):
        with pytest.raises(Unauthorized):
            self.verifier.verify(_token(sub=None))


class TestRemoteVerification:
    def setup_method(self):
        self.verifier = IdentityVerifier(
            auth_url="https://auth.example/",
            api_key="service-key",
            jwt_secret="",
            timeout=2,
        )

    @patch("app.services.identity.requests.get")
    def test_returns_provider_user_id(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        mock_get.return_value.json.return_value = {"id": "abc-123", "email": "a@example.com"}

        assert self.verifier.verify("tok") == "abc-123"
        mock_get.assert_called_once_with(
            "https://auth.example/auth/v1/user",
            headers={"Authorization": "Bearer tok", "apikey": "service-key"},
            timeout=2,
        )

    @patch("app.services.identity.requests.get")
    def test_rejected_by_provider(self, mock_get):
        mock_get.return_value = MagicMock(status_code=401)

        with pytest.raises(Unauthorized, match="Invalid token"):
            self.verifier.verify("tok")

    @patch("app.services.identity.requests.get")
    def test_provider_unreachable(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("down")

        with pytest.raises(Unauthorized, match="Authentication failed"):
            self.verifier.verify("tok")

    @patch("app.services.identity.requests.get")
    def test_every_call_reverifies(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        mock_get.return_value.json.return_value = {"id": "abc-123"}

        self.verifier.verify("tok")
        self.verifier.verify("tok")

        assert mock_get.call_count == 2

    def test_unconfigured_provider_rejects(self):
        with pytest.raises(Unauthorized):
            IdentityVerifier(auth_url="", jwt_secret="").verify("tok")
