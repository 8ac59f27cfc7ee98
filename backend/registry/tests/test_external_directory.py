from unittest import mock

import requests
from django.test import SimpleTestCase

from ..exceptions import ExternalDirectoryError, ValidationError
from ..external_directory import ExternalDirectoryClient


def _client(response=None, error=None):
    session = mock.Mock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return ExternalDirectoryClient(url="https://directory.test/fn", api_key="k", timeout=3, session=session), session


def _response(payload):
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class ExternalDirectoryClientTests(SimpleTestCase):
    def test_fetch_wards_posts_action_and_params(self):
        client, session = _client(_response({"wards": [{"id": "w1", "name": "Ward 1"}]}))
        self.assertEqual(client.fetch_wards("p1"), [{"id": "w1", "name": "Ward 1"}])
        _, kwargs = session.post.call_args
        self.assertEqual(kwargs["json"], {"action": "fetch_wards", "panchayath_id": "p1"})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer k")
        self.assertEqual(kwargs["timeout"], 3)

    def test_missing_collection_is_empty(self):
        client, _ = _client(_response({}))
        self.assertEqual(client.fetch_agents(), [])

    def test_failures_raise_directory_error(self):
        client, _ = _client(error=requests.ConnectionError("down"))
        with self.assertRaises(ExternalDirectoryError):
            client.fetch_panchayaths()
        client, _ = _client(_response({"error": "bad key"}))
        with self.assertRaises(ExternalDirectoryError):
            client.fetch_panchayaths()
        bad_json = _response(None)
        bad_json.json.side_effect = ValueError("not json")
        client, _ = _client(bad_json)
        with self.assertRaises(ExternalDirectoryError):
            client.fetch_agents()

    def test_wards_need_panchayath(self):
        client, session = _client(_response({}))
        with self.assertRaises(ValidationError):
            client.fetch_wards("")
        session.post.assert_not_called()

    def test_unconfigured_client(self):
        client = ExternalDirectoryClient(url="", session=mock.Mock(spec=requests.Session))
        with self.assertRaises(ExternalDirectoryError):
            client.fetch_agents()
