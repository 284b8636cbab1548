import json
import tempfile
import threading
import unittest
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from unittest.mock import Mock, patch

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.exceptions import ConfigurationError, SandboxApiError
from sandbox_cli.services.sandbox_service import SandboxService
from sandbox_cli.utils.http import create_session


def _response(status_code=200, payload=None, text=""):
    resp = Mock()
    resp.status_code = status_code
    if payload is None:
        resp.content = text.encode()
        resp.json.side_effect = ValueError("no json")
    else:
        resp.content = b"{...}"
        resp.json.return_value = payload
    resp.text = text
    return resp


class TestSandboxServiceRequests(unittest.TestCase):
    def setUp(self):
        self.session = Mock()
        self.settings = EdgeRcSettings(path="/unused/.edgerc", section="default")
        self.service = SandboxService(self.settings, session=self.session, base_url="https://akab-host.example.net/")

    def _call(self):
        return self.session.request.call_args

    def test_get_sandbox_builds_url_under_api_base_path(self):
        self.session.request.return_value = _response(payload={"sandboxId": "sb1"})

        result = self.service.get_sandbox("sb1")

        self.assertEqual(result, {"sandboxId": "sb1"})
        args, kwargs = self._call()
        self.assertEqual(args, ("GET", "https://akab-host.example.net/devpops-api/v1/sandboxes/sb1"))
        self.assertIsNone(kwargs["params"])
        self.assertIsNone(kwargs["json"])
        self.assertEqual(kwargs["timeout"], (self.service.connect_timeout, self.service.timeout))

    def test_account_switch_key_is_sent_as_query_param(self):
        self.settings.account_key = "1-ABCD"
        self.session.request.return_value = _response(payload={"sandboxes": []})

        self.service.get_all_sandboxes()

        self.assertEqual(self._call().kwargs["params"], {"accountSwitchKey": "1-ABCD"})

    def test_create_from_rules_body(self):
        self.session.request.return_value = _response(payload={"sandboxId": "sb1", "jwtToken": "tok"})

        self.service.create_from_rules({"rules": {}}, ["www.example.com"], "name", True)

        args, kwargs = self._call()
        self.assertEqual(args[0], "POST")
        self.assertTrue(args[1].endswith("/devpops-api/v1/sandboxes"))
        self.assertEqual(kwargs["json"], {
            "name": "name",
            "requestHostnames": ["www.example.com"],
            "createFromRules": {"rules": {}},
            "isClonable": True,
        })

    def test_create_from_property_body(self):
        self.session.request.return_value = _response(payload={"sandboxId": "sb1", "jwtToken": "tok"})

        self.service.create_from_property(["a.example.com"], "name", False, {"propertyId": "123"})

        self.assertEqual(self._call().kwargs["json"]["createFromProperty"], {"propertyId": "123"})

    def test_add_property_endpoints(self):
        self.session.request.return_value = _response(payload={"sandboxPropertyId": "42"})

        self.service.add_property_from_rules("sb1", ["a"], {"rules": {}})
        self.assertTrue(self._call().args[1].endswith("/sandboxes/sb1/properties"))
        self.assertEqual(self._call().kwargs["json"], {"requestHostnames": ["a"], "createFromRules": {"rules": {}}})

        self.service.add_property_from_property("sb1", ["a"], {"hostname": "a"})
        self.assertEqual(self._call().kwargs["json"], {"requestHostnames": ["a"], "createFromProperty": {"hostname": "a"}})

    def test_clone_and_rotate(self):
        self.session.request.return_value = _response(payload={"sandboxId": "sb2", "jwtToken": "tok"})

        self.service.clone_sandbox("sb1", "copy")
        self.assertEqual(self._call().args, ("POST", "https://akab-host.example.net/devpops-api/v1/sandboxes/sb1/clone"))
        self.assertEqual(self._call().kwargs["json"], {"name": "copy"})

        self.service.rotate_jwt("sb1")
        self.assertTrue(self._call().args[1].endswith("/sandboxes/sb1/rotateJWT"))

    def test_update_endpoints(self):
        self.session.request.return_value = _response(payload={})

        self.service.update_sandbox({"sandboxId": "sb1", "name": "n"})
        self.assertEqual(self._call().args[0], "PUT")
        self.assertTrue(self._call().args[1].endswith("/sandboxes/sb1"))

        self.service.update_property("sb1", {"sandboxPropertyId": "7", "requestHostnames": ["a"]})
        self.assertTrue(self._call().args[1].endswith("/sandboxes/sb1/properties/7"))

        self.service.update_rules("sb1", "7", {"rules": {"name": "default"}})
        self.assertTrue(self._call().args[1].endswith("/sandboxes/sb1/properties/7/rules"))
        self.assertEqual(self._call().kwargs["json"], {"rules": {"name": "default"}})

        self.service.update_rules("sb1", "7", {"name": "default"})
        self.assertEqual(self._call().kwargs["json"], {"rules": {"name": "default"}})

    def test_delete_with_empty_body_returns_none(self):
        self.session.request.return_value = _response(status_code=204)

        self.assertIsNone(self.service.delete_sandbox("sb1"))
        self.assertEqual(self._call().args[0], "DELETE")

    def test_error_status_raises_with_json_body(self):
        self.session.request.return_value = _response(status_code=404, payload={"title": "Not Found"})

        with self.assertRaises(SandboxApiError) as ctx:
            self.service.get_sandbox("missing")

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertIn("got error code: 404", str(ctx.exception))
        self.assertIn("Not Found", str(ctx.exception))

    def test_error_status_raises_with_text_body(self):
        self.session.request.return_value = _response(status_code=500, text="boom")

        with self.assertRaises(SandboxApiError) as ctx:
            self.service.get_all_sandboxes()

        self.assertIn("boom", str(ctx.exception))


class TestSandboxServiceEdgeRc(unittest.TestCase):
    def test_missing_edgerc_raises_configuration_error(self):
        settings = EdgeRcSettings(path="/definitely/not/here/.edgerc", section="default")

        with self.assertRaises(ConfigurationError):
            SandboxService(settings)

    @patch("sandbox_cli.services.sandbox_service.EdgeGridAuth")
    @patch("sandbox_cli.services.sandbox_service.EdgeRc")
    def test_session_signed_from_edgerc_section(self, mock_edgerc_class, mock_auth_class):
        with tempfile.TemporaryDirectory() as tmpdir:
            edgerc_path = Path(tmpdir) / ".edgerc"
            edgerc_path.write_text("[papi]\nhost = akab-xyz.luna.akamaiapis.net\n")
            mock_edgerc = Mock()
            mock_edgerc.get.return_value = "akab-xyz.luna.akamaiapis.net"
            mock_edgerc_class.return_value = mock_edgerc
            mock_auth_class.from_edgerc.return_value = "auth"

            service = SandboxService(EdgeRcSettings(path=str(edgerc_path), section="papi"))

        self.assertEqual(service.base_url, "https://akab-xyz.luna.akamaiapis.net")
        self.assertEqual(service.session.auth, "auth")
        mock_edgerc.get.assert_called_once_with("papi", "host")
        mock_auth_class.from_edgerc.assert_called_once_with(mock_edgerc, "papi")

    @patch("sandbox_cli.services.sandbox_service.EdgeRc")
    def test_unreadable_section_raises_configuration_error(self, mock_edgerc_class):
        with tempfile.TemporaryDirectory() as tmpdir:
            edgerc_path = Path(tmpdir) / ".edgerc"
            edgerc_path.write_text("")
            mock_edgerc_class.return_value.get.side_effect = KeyError("nope")

            with self.assertRaises(ConfigurationError):
                SandboxService(EdgeRcSettings(path=str(edgerc_path), section="missing"))


class _UnavailableHandler(BaseHTTPRequestHandler):
    requests_seen = 0

    def do_GET(self):
        type(self).requests_seen += 1
        body = json.dumps({"title": "Service Unavailable"}).encode()
        self.send_response(503)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class TestSandboxServiceRetries(unittest.TestCase):
    def setUp(self):
        _UnavailableHandler.requests_seen = 0
        self.server = HTTPServer(("127.0.0.1", 0), _UnavailableHandler)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def tearDown(self):
        self.server.shutdown()
        self.server.server_close()

    def test_exhausted_retries_raise_api_error_with_last_response(self):
        host, port = self.server.server_address
        service = SandboxService(
            EdgeRcSettings(path="/unused/.edgerc", section="default"),
            session=create_session(retry_total=2, retry_backoff_factor=0),
            base_url=f"http://{host}:{port}",
        )

        with self.assertRaises(SandboxApiError) as ctx:
            service.get_sandbox("sb1")

        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIn("Service Unavailable", str(ctx.exception))
        self.assertEqual(_UnavailableHandler.requests_seen, 3)
        service.close()

    def test_session_returns_final_response_instead_of_raising(self):
        retries = create_session().get_adapter("https://example.com").max_retries

        self.assertFalse(retries.raise_on_status)
        self.assertNotIn("POST", retries.allowed_methods)


if __name__ == "__main__":
    unittest.main()
