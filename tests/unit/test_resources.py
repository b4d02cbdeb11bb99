"""Tests for the built-in resource accessors and property/env-file parsing."""

import httpx
import pytest

from schemafill.exceptions import ResourceReadError, SourceConfigError
from schemafill.resources import (
    EnvironmentAccessor,
    HttpsAccessor,
    PropertiesAccessor,
    ResourceAccessor,
    accessor_for,
    as_accessor,
    load_env_file,
    parse_properties,
)
from schemafill.settings import FillSettings
from schemafill.sources import ENV, HTTPS, PROPERTIES, Source

pytestmark = pytest.mark.unit


def mock_client(routes: dict[str, httpx.Response], calls: list[str] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return routes.get(str(request.url), httpx.Response(404))

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestEnvironmentAccessor:
    def test_reads_exact_key(self):
        accessor = EnvironmentAccessor({"server_port": "80"})
        assert accessor.read("env:server_port") == "80"

    def test_falls_back_to_upper_case(self):
        accessor = EnvironmentAccessor({"SERVER_PORT": "80"})
        assert accessor.read("env:server_port") == "80"

    def test_absent_variable_is_none(self):
        assert EnvironmentAccessor({}).read("env:server_port") is None

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv("SCHEMAFILL_TEST_VALUE", "42")
        assert EnvironmentAccessor().read("env:SCHEMAFILL_TEST_VALUE") == "42"


class TestPropertiesAccessor:
    def test_reads_property_by_key(self):
        accessor = PropertiesAccessor({"db.port": "5432"})
        assert accessor.read("prop:db.port") == "5432"
        assert accessor.read("prop:db.host") is None

    def test_from_args(self):
        accessor = PropertiesAccessor.from_args(["port=8080", "name=a=b"])
        assert accessor.read("prop:port") == "8080"
        assert accessor.read("prop:name") == "a=b"


class TestHttpsAccessor:
    def test_returns_response_body(self):
        client = mock_client(
            {"https://config.example/port": httpx.Response(200, text="8443")}
        )
        accessor = HttpsAccessor(client=client)
        assert accessor.read("https://config.example/port") == "8443"

    @pytest.mark.parametrize("status", [404, 410])
    def test_absent_statuses_mean_no_value(self, status):
        client = mock_client({"https://config.example/x": httpx.Response(status)})
        assert HttpsAccessor(client=client).read("https://config.example/x") is None

    def test_server_error_raises_read_error(self):
        client = mock_client({"https://config.example/x": httpx.Response(503)})
        with pytest.raises(ResourceReadError, match="HTTP error 503"):
            HttpsAccessor(client=client).read("https://config.example/x")

    def test_transport_failure_raises_read_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ResourceReadError, match="failed to fetch"):
            HttpsAccessor(client=client).read("https://config.example/x")

    def test_timeout_raises_read_error(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ResourceReadError, match="timed out"):
            HttpsAccessor(client=client).read("https://config.example/x")

    def test_each_locator_is_fetched_once(self):
        calls: list[str] = []
        client = mock_client(
            {"https://config.example/a": httpx.Response(200, text="1")}, calls
        )
        accessor = HttpsAccessor(client=client)

        assert accessor.read("https://config.example/a") == "1"
        assert accessor.read("https://config.example/a") == "1"
        assert calls == ["https://config.example/a"]

    def test_failures_are_cached_too(self):
        calls: list[str] = []
        client = mock_client(
            {"https://config.example/a": httpx.Response(500)}, calls
        )
        accessor = HttpsAccessor(client=client)
        for _ in range(2):
            with pytest.raises(ResourceReadError):
                accessor.read("https://config.example/a")
        assert len(calls) == 1


class TestAccessorFor:
    def test_builtin_schemes(self):
        assert isinstance(accessor_for(ENV, environ={}), EnvironmentAccessor)
        assert isinstance(accessor_for(PROPERTIES), PropertiesAccessor)
        assert isinstance(accessor_for(HTTPS), HttpsAccessor)

    def test_https_timeout_comes_from_settings(self):
        accessor = accessor_for(HTTPS, settings=FillSettings(https_timeout=2.5))
        assert accessor.timeout == 2.5

    def test_properties_are_passed_through(self):
        accessor = accessor_for(PROPERTIES, properties={"port": "1"})
        assert accessor.read("prop:port") == "1"

    def test_unknown_scheme_is_rejected(self):
        vault = Source(name="vault", scheme="vault:", separator="/")
        with pytest.raises(SourceConfigError, match="vault:"):
            accessor_for(vault)


class TestAsAccessor:
    def test_accessor_objects_pass_through(self):
        accessor = PropertiesAccessor({})
        assert as_accessor(accessor) is accessor

    def test_wraps_plain_functions(self):
        accessor = as_accessor(lambda locator: locator.upper())
        assert isinstance(accessor, ResourceAccessor)
        assert accessor.read("prop:x") == "PROP:X"

    def test_rejects_non_callables(self):
        with pytest.raises(TypeError, match="not a resource accessor"):
            as_accessor(42)


class TestParseProperties:
    def test_later_keys_win(self):
        assert parse_properties(["a=1", "b=2", "a=3"]) == {"a": "3", "b": "2"}

    def test_empty_value_is_allowed(self):
        assert parse_properties(["a="]) == {"a": ""}

    @pytest.mark.parametrize("item", ["novalue", "=1", " =x"])
    def test_malformed_items_raise(self, item):
        with pytest.raises(ValueError, match="Expected KEY=VALUE"):
            parse_properties([item])


class TestLoadEnvFile:
    def test_loads_new_variables(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# service settings\n"
            "\n"
            "HOST=example.org\n"
            "PORT = 8080\n"
            "NAME=\"quoted value\"\n"
            "TOKEN='single'\n",
            encoding="utf-8",
        )
        environ: dict[str, str] = {}

        loaded = load_env_file(env_file, environ)

        assert environ == {
            "HOST": "example.org",
            "PORT": "8080",
            "NAME": "quoted value",
            "TOKEN": "single",
        }
        assert loaded == environ

    def test_existing_variables_are_not_overridden(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("HOST=from-file\nPORT=1\n", encoding="utf-8")
        environ = {"HOST": "from-env"}

        loaded = load_env_file(env_file, environ)

        assert environ["HOST"] == "from-env"
        assert loaded == {"PORT": "1"}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_env_file(tmp_path / "absent.env", {})

    def test_malformed_line_raises(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("HOST=ok\nnot a pair\n", encoding="utf-8")
        with pytest.raises(ValueError, match="line 2"):
            load_env_file(env_file, {})
