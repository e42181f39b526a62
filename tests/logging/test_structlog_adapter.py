# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for StructlogAdapter — default LoggingPort implementation."""

import io
import json
import logging

import pytest

from tiercache.cache.auto_configuration import CacheAutoConfiguration, build_response_cache
from tiercache.core.config import Config
from tiercache.logging.port import LoggingPort
from tiercache.logging.structlog_adapter import HANDLER_NAME, StructlogAdapter, add_component


def _json_config(**logging_section) -> Config:
    return Config({"tiercache": {"logging": {"format": "json", **logging_section}}})


def _last_event(stream: io.StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


@pytest.fixture(autouse=True)
def _restore_loggers():
    root = logging.getLogger()
    root_level = root.level
    yield
    root.setLevel(root_level)
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
    for name in ("tiercache", "tiercache.cache", "tiercache.web"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter(io.StringIO())
        adapter.configure(Config({}))
        assert adapter.root_level == "INFO"
        assert adapter.properties.format == "console"
        assert adapter.module_levels == {}

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter(io.StringIO())
        adapter.configure(Config({"tiercache": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter.root_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG

    def test_nested_module_levels_are_flattened(self):
        adapter = StructlogAdapter(io.StringIO())
        config = Config({"tiercache": {"logging": {"level": {"root": "INFO", "tiercache": {"web": "WARNING"}}}}})
        adapter.configure(config)
        assert adapter.module_levels == {"tiercache.web": "WARNING"}
        assert logging.getLogger("tiercache.web").level == logging.WARNING

    def test_packaged_defaults(self):
        adapter = StructlogAdapter(io.StringIO())
        adapter.configure(Config.defaults())
        assert adapter.module_levels == {"tiercache": "INFO"}
        assert adapter.properties.cache_events is False

    def test_reconfigure_replaces_handler(self):
        adapter = StructlogAdapter(io.StringIO())
        adapter.configure(Config({}))
        adapter.configure(Config({}))
        handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        assert len(handlers) == 1


class TestCacheEventRendering:
    def test_stdlib_records_rendered_as_json(self):
        stream = io.StringIO()
        StructlogAdapter(stream).configure(_json_config())
        logging.getLogger("tiercache.cache.adapters.redis").warning("Redis store unavailable for %s: %s", "GET", "refused")

        event = _last_event(stream)
        assert event["event"] == "Redis store unavailable for GET: refused"
        assert event["level"] == "warning"
        assert event["logger"] == "tiercache.cache.adapters.redis"
        assert event["component"] == "redis-store"
        assert "timestamp" in event

    def test_cache_events_flag_shows_debug_lines(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TIERCACHE_LOGGING_CACHE_EVENTS", "true")
        stream = io.StringIO()
        StructlogAdapter(stream).configure(_json_config())
        logging.getLogger("tiercache.cache").debug("Cache HIT [%s] key=%s", "short", "k")
        assert _last_event(stream)["event"] == "Cache HIT [short] key=k"

    def test_debug_lines_hidden_by_default(self):
        stream = io.StringIO()
        StructlogAdapter(stream).configure(_json_config())
        logging.getLogger("tiercache.cache").debug("Cache HIT [%s] key=%s", "short", "k")
        assert stream.getvalue() == ""

    def test_trace_cache_events_toggle(self):
        adapter = StructlogAdapter(io.StringIO())
        adapter.configure(_json_config())
        adapter.trace_cache_events()
        assert logging.getLogger("tiercache.cache").level == logging.DEBUG
        adapter.trace_cache_events(False)
        assert logging.getLogger("tiercache.cache").level == logging.NOTSET

    @pytest.mark.parametrize(
        ("logger_name", "component"),
        [
            ("tiercache.cache", "cache"),
            ("tiercache.cache.adapters.memory", "memory-store"),
            ("tiercache.web.adapters.starlette.cache_filter", "interceptor"),
            ("tiercache.actuator.endpoints.cache_endpoint", "actuator"),
            ("tiercache.cachefoo", None),
            ("myapp", None),
        ],
    )
    def test_add_component(self, logger_name: str, component: str | None):
        event = add_component(None, "info", {"logger": logger_name})
        assert event.get("component") == component


class TestCacheBootstrapLogging:
    def test_configure_logging_uses_config_section(self):
        adapter = StructlogAdapter(io.StringIO())
        auto = CacheAutoConfiguration(_json_config(level={"root": "WARNING"}))
        assert auto.configure_logging(adapter) is adapter
        assert adapter.root_level == "WARNING"

    def test_build_response_cache_can_configure_logging(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.delenv("TIERCACHE_CACHE_REDIS_URL", raising=False)
        build_response_cache(configure_logging=True)
        handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        assert len(handlers) == 1

    def test_get_logger_returns_bound_logger(self):
        logger = StructlogAdapter().get_logger("tiercache.test")
        assert hasattr(logger, "info")
