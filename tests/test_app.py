import io
import os
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest import mock

from hello_service.app import create_app
from hello_service.config import AppConfig, ConfigMissingError, Profile, load_config
from hello_service.interceptor import CallInterceptor, Phase, StreamSink
from hello_service.main import create_parser, main

from test_interceptor import RecordingSink

DEV_MESSAGE = "Hello from Development"

# Environment variables the loader consults; cleared so the host cannot leak in
CONFIG_ENV_VARS = ("APP_PROFILE", "APP_CONFIG_DIR", "APP_MESSAGE", "SERVER_PORT")


def clean_environ():
    return {k: v for k, v in os.environ.items() if k not in CONFIG_ENV_VARS}


class TestHelloEndpoint(unittest.TestCase):

    def setUp(self):
        self.sink = RecordingSink()
        config = load_config("dev", environ={})
        self.app = create_app(config=config, interceptor=CallInterceptor(sink=self.sink))
        self.client = self.app.test_client()

    def test_get_hello_returns_message(self):
        response = self.client.get("/hello")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_data(as_text=True), DEV_MESSAGE)
        self.assertTrue(response.content_type.startswith("text/plain"))

    def test_get_hello_logs_view_and_responder(self):
        self.client.get("/hello")
        self.assertEqual(self.sink.lines, [
            "Before method: hello",
            "Before method: get_message",
            f"After method: get_message, Result: {DEV_MESSAGE}",
            f"After method: hello, Result: {DEV_MESSAGE}",
        ])

    def test_responder_pair_is_in_order(self):
        self.client.get("/hello")
        lines = self.sink.lines
        before = lines.index("Before method: get_message")
        after = lines.index(f"After method: get_message, Result: {DEV_MESSAGE}")
        self.assertLess(before, after)

    def test_post_not_allowed(self):
        response = self.client.post("/hello")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(self.sink.events, [])

    def test_unknown_route(self):
        self.assertEqual(self.client.get("/").status_code, 404)

    def test_app_config_reflects_profile(self):
        self.assertEqual(self.app.config["APP_PROFILE"], "dev")
        self.assertEqual(self.app.config["SERVER_PORT"], 8080)

    def test_responder_is_woven_on_instance_only(self):
        responder = self.app.extensions["hello_responder"]
        self.assertIn("get_message", vars(responder))
        self.assertEqual(responder.get_message(), DEV_MESSAGE)
        self.assertEqual([e.phase for e in self.sink.events], [Phase.BEFORE, Phase.AFTER_SUCCESS])

    def test_concurrent_requests(self):
        def request(_):
            with self.app.test_client() as client:
                return client.get("/hello").get_data(as_text=True)

        with ThreadPoolExecutor(max_workers=4) as pool:
            bodies = list(pool.map(request, range(20)))

        self.assertEqual(bodies, [DEV_MESSAGE] * 20)
        self.assertEqual(len(self.sink.events), 20 * 4)
        befores = [e for e in self.sink.events if e.phase is Phase.BEFORE]
        afters = [e for e in self.sink.events if e.phase is Phase.AFTER_SUCCESS]
        self.assertEqual(len(befores), len(afters))
        self.assertTrue(all(e.result == DEV_MESSAGE for e in afters))


class TestCreateApp(unittest.TestCase):

    def test_stdout_sink_end_to_end(self):
        with mock.patch("sys.stdout", new_callable=io.StringIO) as stdout:
            app = create_app(config=AppConfig(profile=Profile.DEV, message=DEV_MESSAGE))
            body = app.test_client().get("/hello").get_data(as_text=True)
        self.assertEqual(body, DEV_MESSAGE)
        lines = stdout.getvalue().splitlines()
        self.assertIn("Before method: get_message", lines)
        self.assertIn(f"After method: get_message, Result: {DEV_MESSAGE}", lines)
        self.assertLess(lines.index("Before method: get_message"),
                        lines.index(f"After method: get_message, Result: {DEV_MESSAGE}"))

    def test_loads_config_from_profile(self):
        with mock.patch.dict(os.environ, clean_environ(), clear=True):
            app = create_app(profile="prod", interceptor=CallInterceptor(sink=RecordingSink()))
        self.assertEqual(app.test_client().get("/hello").get_data(as_text=True), "Hello from Production")

    def test_missing_message_fails_before_app_exists(self):
        with mock.patch.dict(os.environ, clean_environ(), clear=True):
            with self.assertRaises(ConfigMissingError):
                create_app()

    def test_custom_stream_sink(self):
        stream = io.StringIO()
        app = create_app(config=AppConfig(profile=Profile.DEFAULT, message="hey"),
                         interceptor=CallInterceptor(sink=StreamSink(stream)))
        app.test_client().get("/hello")
        self.assertIn("After method: get_message, Result: hey\n", stream.getvalue())


class TestLauncher(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.config_dir = self._tmp.name
        patcher = mock.patch("hello_service.main.load_dotenv")
        patcher.start()
        self.addCleanup(patcher.stop)
        env_patcher = mock.patch.dict(os.environ, clean_environ(), clear=True)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def test_parser_defaults(self):
        args = create_parser().parse_args([])
        self.assertIsNone(args.profile)
        self.assertEqual(args.host, "0.0.0.0")
        self.assertIsNone(args.port)

    def test_missing_message_exits_without_serving(self):
        Path(self.config_dir, "application.env").write_text("server.port=8080\n", encoding="utf-8")
        with mock.patch("flask.Flask.run") as run:
            with self.assertRaises(SystemExit) as ctx:
                main(["--config-dir", self.config_dir])
        self.assertEqual(ctx.exception.code, 1)
        run.assert_not_called()

    def test_unknown_profile_exits(self):
        with mock.patch("flask.Flask.run") as run:
            with self.assertRaises(SystemExit) as ctx:
                main(["--profile", "staging"])
        self.assertEqual(ctx.exception.code, 1)
        run.assert_not_called()

    def test_serves_with_profile_port(self):
        with mock.patch("flask.Flask.run") as run:
            self.assertEqual(main(["--profile", "dev", "--host", "127.0.0.1"]), 0)
        run.assert_called_once_with(host="127.0.0.1", port=8080, threaded=True)

    def test_port_flag_overrides_profile(self):
        with mock.patch("flask.Flask.run") as run:
            main(["--profile", "prod", "--port", "9090"])
        run.assert_called_once_with(host="0.0.0.0", port=9090, threaded=True)

    def test_profile_from_environment(self):
        os.environ["APP_PROFILE"] = "prod"
        with mock.patch("flask.Flask.run") as run:
            main([])
        self.assertEqual(run.call_args.kwargs["port"], 80)


if __name__ == "__main__":
    unittest.main()
