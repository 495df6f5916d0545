"""
Tests for the authentication service.
"""

import unittest
from unittest.mock import MagicMock, Mock, patch

import requests

from kafepano.auth import (
    DEFAULT_ERROR_MESSAGE,
    AuthService,
    User,
    error_code_from_response,
    get_error_message,
)


def sign_in_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestErrorMessages(unittest.TestCase):
    """Test error code mapping."""

    def test_known_codes(self):
        """Test localized messages for provider codes."""
        self.assertEqual(get_error_message("auth/wrong-password"), "Hatalı şifre")
        self.assertEqual(get_error_message("auth/invalid-credential"), "Email veya şifre hatalı")

    def test_unknown_code(self):
        """Test the generic message for unmapped codes."""
        self.assertEqual(get_error_message("auth/quota-exceeded"), DEFAULT_ERROR_MESSAGE)
        self.assertEqual(get_error_message(None), DEFAULT_ERROR_MESSAGE)

    def test_rest_error_codes(self):
        """Test mapping REST error messages to provider codes."""
        self.assertEqual(
            error_code_from_response("TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled"),
            "auth/too-many-requests",
        )
        self.assertEqual(error_code_from_response("WEAK_PASSWORD"), "auth/weak-password")


class TestAuthService(unittest.TestCase):
    """Test sign-in, sign-out and state listeners."""

    def setUp(self):
        self.auth = AuthService("test-api-key")

    @patch("kafepano.auth.requests.post")
    def test_sign_in_success(self, mock_post):
        """Test a successful sign-in."""
        mock_post.return_value = sign_in_response(
            {"localId": "u1", "email": "staff@cafe.com", "idToken": "token"}
        )
        listener = MagicMock()
        self.auth.on_auth_state_changed(listener)

        result = self.auth.sign_in("staff@cafe.com", "secret")

        self.assertTrue(result)
        self.assertEqual(result.id, "u1")
        self.assertEqual(self.auth.current_user.email, "staff@cafe.com")
        listener.assert_called_with(self.auth.current_user)
        self.assertEqual(mock_post.call_args[1]["params"], {"key": "test-api-key"})
        self.assertTrue(mock_post.call_args[1]["json"]["returnSecureToken"])

    @patch("kafepano.auth.requests.post")
    def test_sign_in_wrong_credentials(self, mock_post):
        """Test the localized message for rejected credentials."""
        mock_post.return_value = sign_in_response(
            {"error": {"code": 400, "message": "INVALID_LOGIN_CREDENTIALS"}}, 400
        )
        result = self.auth.sign_in("staff@cafe.com", "wrong")
        self.assertFalse(result)
        self.assertEqual(result.error, "Email veya şifre hatalı")
        self.assertIsNone(self.auth.current_user)

    @patch("kafepano.auth.requests.post")
    def test_sign_in_network_failure(self, mock_post):
        """Test the generic message when the service is unreachable."""
        mock_post.side_effect = requests.exceptions.ConnectionError("offline")
        result = self.auth.sign_in("staff@cafe.com", "secret")
        self.assertEqual(result.error, DEFAULT_ERROR_MESSAGE)

    @patch("kafepano.auth.requests.post")
    def test_sign_in_invalid_response(self, mock_post):
        """Test a response body that is not a JSON object."""
        mock_post.return_value = sign_in_response(["unexpected"])
        result = self.auth.sign_in("staff@cafe.com", "secret")
        self.assertFalse(result)

    @patch("kafepano.auth.requests.post")
    def test_missing_api_key(self, mock_post):
        """Test that no request is made without an API key."""
        result = AuthService(None).sign_in("staff@cafe.com", "secret")
        self.assertFalse(result)
        mock_post.assert_not_called()

    def test_require_auth(self):
        """Test the login gate."""
        on_login_required = MagicMock()
        self.assertIsNone(self.auth.require_auth(on_login_required))
        on_login_required.assert_called_once()

        self.auth.current_user = User("u1", "staff@cafe.com")
        self.assertEqual(self.auth.require_auth(on_login_required).uid, "u1")
        on_login_required.assert_called_once()

    def test_sign_out_notifies_listeners(self):
        """Test that listeners see the sign-out."""
        self.auth.current_user = User("u1", "staff@cafe.com")
        listener = MagicMock()
        subscription = self.auth.on_auth_state_changed(listener)
        listener.assert_called_once_with(self.auth.current_user)

        self.auth.sign_out()
        listener.assert_called_with(None)

        subscription.cancel()
        self.auth.current_user = User("u2", "other@cafe.com")
        self.auth.sign_out()
        self.assertEqual(listener.call_count, 2)


if __name__ == "__main__":
    unittest.main()
