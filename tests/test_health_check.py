"""
Тесты для проб, диспетчера и HTTP-маршрута проверки здоровья.
"""

import json
import socket
import threading
import time
import pytest
import requests
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, patch

from fanout_pool import HealthCheckResult, HealthStatus, Probe, ProbeDispatcher
from fanout_pool.api.app import create_app
from fanout_pool.cli import main
from fanout_pool.utils.config import ProbeConfig


def fake_get(url, **kwargs):
    """Поведение целей определяется их адресом."""
    if "down" in url:
        raise requests.exceptions.Timeout(f"timed out: {url}")
    if "refused" in url:
        raise requests.exceptions.ConnectionError(f"refused: {url}")
    if "error" in url:
        return Mock(status_code=500)
    if "missing" in url:
        return Mock(status_code=404)
    return Mock(status_code=200)


@pytest.fixture
def mock_get():
    with patch("fanout_pool.core.probe.requests.get", side_effect=fake_get) as mocked:
        yield mocked


class HandlerAbort(BaseException):
    """Исключение вне иерархии Exception, убивающее поток."""


class TargetHandler(BaseHTTPRequestHandler):
    """Цель на 127.0.0.1, поведение задается путем запроса."""

    def do_GET(self):
        try:
            if self.path == "/ok":
                self._reply(200)
            elif self.path == "/error":
                self._reply(500)
            elif self.path == "/stall":
                time.sleep(2.5)
                self._reply(200)
            elif self.path == "/trickle":
                self._trickle_headers()
            elif self.path.startswith("/redirect/"):
                self._redirect(int(self.path.rsplit("/", 1)[1]))
            else:
                self._reply(404)
        except (BrokenPipeError, ConnectionResetError):
            # Клиент ушел по дедлайну
            pass

    def _reply(self, code: int, location=None):
        self.send_response(code)
        if location:
            self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _trickle_headers(self):
        """Заголовки по одному раз в 0.25s: ни одно чтение не упирается в таймаут сокета."""
        self.wfile.write(b"HTTP/1.1 200 OK\r\n")
        self.wfile.flush()
        for i in range(8):
            time.sleep(0.25)
            self.wfile.write(f"X-Trickle-{i}: {i}\r\n".encode())
            self.wfile.flush()
        self.wfile.write(b"Content-Length: 0\r\nConnection: close\r\n\r\n")
        self.wfile.flush()

    def _redirect(self, hop: int):
        time.sleep(0.4)
        if hop < 5:
            self._reply(302, location=f"/redirect/{hop + 1}")
        else:
            self._reply(200)

    def log_message(self, format, *args):
        pass


class TargetServer(ThreadingHTTPServer):
    daemon_threads = True
    block_on_close = False


def closed_port_url() -> str:
    """Адрес порта, который только что освободили."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/"


class TestProbe:
    """Тесты классификации одной пробы."""

    @pytest.mark.parametrize("url, status", [
        ("http://up.example", HealthStatus.UP),
        ("http://down.example", HealthStatus.DOWN),
        ("http://refused.example", HealthStatus.DOWN),
        ("http://error.example", HealthStatus.DOWN),
        ("http://missing.example", HealthStatus.DOWN),
    ])
    def test_classification(self, mock_get, url, status):
        result = Probe().check(url)

        assert result == HealthCheckResult(url, status)

    def test_any_2xx_is_up(self):
        with patch("fanout_pool.core.probe.requests.get", return_value=Mock(status_code=204)):
            assert Probe().check("http://nocontent.example").is_up()

    def test_redirect_is_down(self):
        with patch("fanout_pool.core.probe.requests.get", return_value=Mock(status_code=302)):
            assert not Probe().check("http://moved.example").is_up()

    def test_single_request_with_timeout(self, mock_get):
        """Один запрос без ретраев, таймаут из конфигурации."""
        Probe(ProbeConfig(timeout=1.5)).check("http://down.example")

        assert mock_get.call_count == 1
        _, kwargs = mock_get.call_args
        assert kwargs['timeout'] == 1.5

    def test_default_timeout(self, mock_get):
        Probe().check("http://up.example")

        _, kwargs = mock_get.call_args
        assert kwargs['timeout'] == 3.0

    def test_response_is_closed(self):
        response = Mock(status_code=200)
        with patch("fanout_pool.core.probe.requests.get", return_value=response):
            Probe().check("http://up.example")

        response.close.assert_called_once()

    def test_invalid_url_is_down(self):
        """Некорректный адрес - это ошибка транспорта, а не исключение."""
        assert Probe().check("not a url").status == HealthStatus.DOWN


class TestProbeDispatcher:
    """Тесты fan-out/fan-in диспетчера."""

    def test_mixed_batch(self, mock_get):
        urls = ["http://up.example", "http://down.example", "http://error.example", "http://up2.example"]

        results = ProbeDispatcher().check_all(urls)

        assert len(results) == len(urls)
        assert {r.url for r in results} == set(urls)
        statuses = {r.url: r.status for r in results}
        assert statuses["http://up.example"] == HealthStatus.UP
        assert statuses["http://up2.example"] == HealthStatus.UP
        assert statuses["http://down.example"] == HealthStatus.DOWN
        assert statuses["http://error.example"] == HealthStatus.DOWN

    def test_empty_batch(self, mock_get):
        assert ProbeDispatcher().check_all([]) == []
        mock_get.assert_not_called()

    def test_duplicate_targets_yield_one_result_each(self, mock_get):
        results = ProbeDispatcher().check_all(["http://up.example"] * 3)

        assert len(results) == 3
        assert mock_get.call_count == 3

    def test_probes_run_concurrently(self):
        """Все пробы должны быть в полете одновременно."""
        urls = [f"http://host{i}.example" for i in range(5)]
        barrier = threading.Barrier(len(urls), timeout=2.0)

        def get(url, **kwargs):
            barrier.wait()
            return Mock(status_code=200)

        with patch("fanout_pool.core.probe.requests.get", side_effect=get):
            results = ProbeDispatcher().check_all(urls)

        assert all(r.is_up() for r in results)

    def test_unexpected_probe_error_becomes_down(self):
        """Любая ошибка пробы дает DOWN и не ломает пачку."""
        probe = Mock(spec=Probe)
        probe.check.side_effect = RuntimeError("unexpected")

        results = ProbeDispatcher(probe=probe).check_all(["http://a.example", "http://b.example"])

        assert len(results) == 2
        assert all(r.status == HealthStatus.DOWN for r in results)

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_thread_killing_error_still_yields_result(self):
        """Поток цели умирает от BaseException, но сборщик получает DOWN и не зависает."""
        checker = Mock(spec=Probe)
        checker.check.side_effect = HandlerAbort("abort")
        urls = ["http://a.example", "http://b.example"]

        results = []
        collector = threading.Thread(
            target=lambda: results.extend(ProbeDispatcher(probe=checker).check_all(urls)),
            daemon=True
        )
        collector.start()
        collector.join(timeout=5.0)

        assert not collector.is_alive()
        assert {r.url for r in results} == set(urls)
        assert all(r.status == HealthStatus.DOWN for r in results)

    def test_idempotent_classification(self, mock_get):
        urls = ["http://up.example", "http://down.example", "http://error.example"]
        dispatcher = ProbeDispatcher()

        first = {r.url: r.status for r in dispatcher.check_all(urls)}
        second = {r.url: r.status for r in dispatcher.check_all(urls)}

        assert first == second


class TestLocalTargets:
    """Проверки настоящих HTTP-целей на 127.0.0.1 без моков."""

    TIMEOUT = 1.0
    # Запас на планировщик потоков сверх таймаута
    SLACK = 0.8

    @pytest.fixture(scope="class")
    def base_url(self):
        server = TargetServer(("127.0.0.1", 0), TargetHandler)
        thread = threading.Thread(target=server.serve_forever, name="target-server", daemon=True)
        thread.start()
        try:
            yield f"http://127.0.0.1:{server.server_address[1]}"
        finally:
            server.shutdown()
            server.server_close()

    @pytest.fixture(autouse=True)
    def no_proxy(self, monkeypatch):
        for name in ("HTTP_PROXY", "http_proxy", "HTTPS_PROXY", "https_proxy", "ALL_PROXY", "all_proxy"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
        monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")

    def check(self, url):
        started = time.monotonic()
        result = Probe(ProbeConfig(timeout=self.TIMEOUT)).check(url)
        return result, time.monotonic() - started

    def test_ok_is_up(self, base_url):
        result, _ = self.check(f"{base_url}/ok")

        assert result == HealthCheckResult.up(f"{base_url}/ok")

    def test_server_error_is_down(self, base_url):
        result, _ = self.check(f"{base_url}/error")

        assert result.status == HealthStatus.DOWN

    def test_closed_port_is_down(self):
        url = closed_port_url()

        result, elapsed = self.check(url)

        assert result == HealthCheckResult.down(url)
        assert elapsed < self.TIMEOUT + self.SLACK

    def test_stalled_response_is_down_within_timeout(self, base_url):
        result, elapsed = self.check(f"{base_url}/stall")

        assert result.status == HealthStatus.DOWN
        assert elapsed < self.TIMEOUT + self.SLACK

    def test_trickled_headers_are_down_within_timeout(self, base_url):
        """Каждый заголовок приходит до таймаута чтения, весь ответ - нет."""
        result, elapsed = self.check(f"{base_url}/trickle")

        assert result.status == HealthStatus.DOWN
        assert elapsed < self.TIMEOUT + self.SLACK

    def test_redirect_chain_shares_one_deadline(self, base_url):
        """Каждый переход быстрее таймаута, вся цепочка - дольше."""
        result, elapsed = self.check(f"{base_url}/redirect/1")

        assert result.status == HealthStatus.DOWN
        assert elapsed < self.TIMEOUT + self.SLACK

    def test_redirect_chain_within_deadline_is_up(self, base_url):
        result = Probe(ProbeConfig(timeout=5.0)).check(f"{base_url}/redirect/4")

        assert result.is_up()

    def test_mixed_batch_finishes_within_timeout(self, base_url):
        """Медленные цели не задерживают пачку дольше одного таймаута."""
        urls = [f"{base_url}/ok", f"{base_url}/error", f"{base_url}/stall", f"{base_url}/trickle", closed_port_url()]

        started = time.monotonic()
        results = ProbeDispatcher(ProbeConfig(timeout=self.TIMEOUT)).check_all(urls)
        elapsed = time.monotonic() - started

        assert elapsed < self.TIMEOUT + self.SLACK
        statuses = {r.url: r.status for r in results}
        assert statuses == {
            urls[0]: HealthStatus.UP,
            urls[1]: HealthStatus.DOWN,
            urls[2]: HealthStatus.DOWN,
            urls[3]: HealthStatus.DOWN,
            urls[4]: HealthStatus.DOWN,
        }


class TestHealthCheckRoute:
    """Тесты маршрута POST /health-check."""

    @pytest.fixture
    def client(self):
        app = create_app()
        app.testing = True
        return app.test_client()

    def test_up_and_down(self, client, mock_get):
        response = client.post(
            "/health-check",
            data=json.dumps(["http://up.example", "http://down.example"]),
            content_type="application/json"
        )

        assert response.status_code == 200
        assert response.mimetype == "application/json"
        body = response.get_json()
        assert len(body) == 2
        assert {"url": "http://up.example", "status": "UP"} in body
        assert {"url": "http://down.example", "status": "DOWN"} in body

    def test_malformed_body(self, client, mock_get):
        response = client.post("/health-check", data="not-json")

        assert response.status_code == 400
        assert response.mimetype == "text/plain"
        assert response.get_data(as_text=True) == "Invalid request"
        mock_get.assert_not_called()

    @pytest.mark.parametrize("body", ['{"url": "http://up.example"}', '["http://up.example", 1]'])
    def test_wrong_shape(self, client, mock_get, body):
        response = client.post("/health-check", data=body)

        assert response.status_code == 400
        mock_get.assert_not_called()

    def test_empty_array(self, client, mock_get):
        response = client.post("/health-check", data="[]")

        assert response.status_code == 200
        assert response.get_json() == []

    def test_only_post_allowed(self, client):
        assert client.get("/health-check").status_code == 405

    def test_custom_dispatcher(self):
        dispatcher = Mock(spec=ProbeDispatcher)
        dispatcher.check_all.return_value = [HealthCheckResult.up("http://x.example")]
        client = create_app(dispatcher=dispatcher).test_client()

        response = client.post("/health-check", data='["http://x.example"]')

        assert response.get_json() == [{"url": "http://x.example", "status": "UP"}]
        dispatcher.check_all.assert_called_once()


class TestCli:
    """Тесты командной строки."""

    @pytest.fixture(autouse=True)
    def no_logging_setup(self, monkeypatch):
        monkeypatch.setattr("fanout_pool.cli.setup_logging", lambda **kwargs: None)

    def test_check_command(self, mock_get, capsys):
        exit_code = main(["check", "http://up.example", "http://refused.example"])

        assert exit_code == 0
        body = json.loads(capsys.readouterr().out)
        assert sorted(body, key=lambda r: r["url"]) == [
            {"url": "http://refused.example", "status": "DOWN"},
            {"url": "http://up.example", "status": "UP"},
        ]

    def test_demo_command(self, monkeypatch):
        monkeypatch.setenv("FANOUT_WORK_DURATION", "0.01")
        monkeypatch.setenv("FANOUT_SEND_INTERVAL", "0")

        assert main(["demo", "--workers", "2", "--tasks", "4"]) == 0

    def test_bad_config(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text("pool:\n  task_capacity: 0\n")

        assert main(["--config", str(path), "demo"]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_port_zero_rejected(self, capsys):
        """--port 0 доходит до валидации, а не игнорируется."""
        with patch("fanout_pool.cli.serve") as serve:
            assert main(["serve", "--port", "0"]) == 2

        serve.assert_not_called()
        assert "Configuration error" in capsys.readouterr().err

    def test_explicit_port_used(self):
        with patch("fanout_pool.cli.serve") as serve:
            assert main(["serve", "--port", "9090"]) == 0

        config = serve.call_args[0][0]
        assert config.server.port == 9090

    @pytest.mark.parametrize("content", [
        "pool: [unclosed\n",
        "pool:\n  num_workers: \"x\"\n",
        "- just\n- a list\n",
    ])
    def test_unreadable_config_file(self, tmp_path, capsys, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)

        assert main(["--config", str(path), "demo"]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_non_numeric_env_value(self, monkeypatch, capsys):
        monkeypatch.setenv("FANOUT_NUM_WORKERS", "abc")

        assert main(["demo"]) == 2
        assert "Configuration error" in capsys.readouterr().err
