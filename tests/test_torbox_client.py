import unittest
from unittest.mock import Mock

import requests

from torfinder.core.errors import AuthError, UpstreamError
from torfinder.services.torbox_client import TorBoxClient, authorization_header


class _Settings:
    def __init__(self):
        self.data = {
            "torbox_api_url": "https://api.torbox.test/v1/api/",
            "torbox_request_timeout_seconds": 9.0,
        }

    def get(self, key, default=None):
        return self.data.get(key, default)


def _session(status_code=200, text='{"success": true}', error=None):
    session = Mock()
    if error is not None:
        session.request.side_effect = error
    else:
        session.request.return_value = Mock(
            status_code=status_code,
            text=text,
            headers={"content-type": "application/json"},
        )
    return session


class TestAuthorizationHeader(unittest.TestCase):
    def test_bearer_value_is_forwarded_verbatim(self):
        self.assertEqual(authorization_header("Bearer abc"), "Bearer abc")
        self.assertEqual(authorization_header("bearer abc"), "bearer abc")

    def test_bare_token_gets_prefix(self):
        self.assertEqual(authorization_header("abc"), "Bearer abc")

    def test_missing_credential(self):
        with self.assertRaises(AuthError):
            authorization_header("  ")

    def test_scheme_without_token_is_missing(self):
        for value in ("Bearer", "bearer  ", " BEARER "):
            with self.subTest(value=value), self.assertRaises(AuthError):
                authorization_header(value)


class TestTorBoxClient(unittest.TestCase):
    def test_check_cached_is_one_batched_request(self):
        session = _session(text='{"data": {}}')
        client = TorBoxClient(_Settings(), session=session)
        response = client.check_cached(["aa", "bb", "cc"], "Bearer tok")
        self.assertEqual(session.request.call_count, 1)
        args, kwargs = session.request.call_args
        self.assertEqual(args, ("GET", "https://api.torbox.test/v1/api/torrents/checkcached"))
        self.assertEqual(
            kwargs["params"],
            [("hash", "aa"), ("hash", "bb"), ("hash", "cc"), ("format", "object")],
        )
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer tok"})
        self.assertEqual(kwargs["timeout"], 9.0)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, '{"data": {}}')

    def test_create_torrent_posts_magnet_form(self):
        session = _session(status_code=403, text='{"success": false, "error": "BAD_TOKEN"}')
        client = TorBoxClient(_Settings(), session=session)
        response = client.create_torrent("magnet:?xt=urn:btih:abc", "Bearer tok")
        args, kwargs = session.request.call_args
        self.assertEqual(args, ("POST", "https://api.torbox.test/v1/api/torrents/createtorrent"))
        self.assertEqual(kwargs["data"], {"magnet": "magnet:?xt=urn:btih:abc"})
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.ok)
        self.assertIn("BAD_TOKEN", response.text)

    def test_network_error_is_upstream_error(self):
        client = TorBoxClient(_Settings(), session=_session(error=requests.ConnectionError("reset")))
        with self.assertRaises(UpstreamError) as ctx:
            client.check_cached(["aa"], "tok")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.message, "Upstream error")

    def test_missing_credential_never_reaches_upstream(self):
        session = _session()
        client = TorBoxClient(_Settings(), session=session)
        with self.assertRaises(AuthError):
            client.create_torrent("magnet:?xt=urn:btih:abc", "")
        session.request.assert_not_called()

    def test_defaults_without_settings(self):
        session = _session()
        TorBoxClient(session=session).check_cached(["aa"], "tok")
        args, kwargs = session.request.call_args
        self.assertEqual(args[1], "https://api.torbox.app/v1/api/torrents/checkcached")
        self.assertEqual(kwargs["timeout"], 15.0)


if __name__ == "__main__":
    unittest.main()
