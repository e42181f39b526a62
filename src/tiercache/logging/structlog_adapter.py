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
"""StructlogAdapter — renders tiercache's log records through structlog."""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog

from tiercache.config.properties.logging import LoggingProperties
from tiercache.core.config import Config

CACHE_LOGGER = "tiercache.cache"
HANDLER_NAME = "tiercache"

# Longest matching logger-name prefix wins.
COMPONENTS: dict[str, str] = {
    "tiercache.cache.adapters.redis": "redis-store",
    "tiercache.cache.adapters.memory": "memory-store",
    "tiercache.cache": "cache",
    "tiercache.web": "interceptor",
    "tiercache.actuator": "actuator",
}


def add_component(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Tag events with the cache component that emitted them."""
    name = str(event_dict.get("logger", ""))
    for prefix in sorted(COMPONENTS, key=len, reverse=True):
        if name == prefix or name.startswith(prefix + "."):
            event_dict["component"] = COMPONENTS[prefix]
            break
    return event_dict


class StructlogAdapter:
    """Logging adapter backed by structlog.

    The cache modules log through the standard library; their records are
    rendered by a :class:`structlog.stdlib.ProcessorFormatter` so they get
    the same timestamp, level, logger and ``component`` fields as structlog
    loggers, as console lines or JSON (``tiercache.logging.format``).
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._properties = LoggingProperties()
        self._root_level = "INFO"
        self._module_levels: dict[str, str] = {}

    @property
    def properties(self) -> LoggingProperties:
        return self._properties

    @property
    def root_level(self) -> str:
        return self._root_level

    @property
    def module_levels(self) -> dict[str, str]:
        return dict(self._module_levels)

    def configure(self, config: Config) -> None:
        self._properties = config.bind(LoggingProperties)
        levels = dict(self._properties.level or {})
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = _flatten_levels(levels)

        self._install_handler()
        for name, level in self._module_levels.items():
            self.set_level(name, level)
        self.trace_cache_events(bool(self._properties.cache_events))

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def trace_cache_events(self, enabled: bool = True) -> None:
        """Show or hide the debug-level cache HIT/MISS/SET/EXPIRED lines."""
        if enabled:
            self.set_level(CACHE_LOGGER, "DEBUG")
        elif CACHE_LOGGER in self._module_levels:
            self.set_level(CACHE_LOGGER, self._module_levels[CACHE_LOGGER])
        else:
            logging.getLogger(CACHE_LOGGER).setLevel(logging.NOTSET)

    def _renderer(self) -> structlog.types.Processor:
        if str(self._properties.format).lower() == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer()

    def _install_handler(self) -> None:
        shared: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_component,
        ]
        structlog.configure(
            processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        handler = logging.StreamHandler(self._stream or sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    self._renderer(),
                ],
            )
        )

        root = logging.getLogger()
        for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
            root.removeHandler(existing)
        root.addHandler(handler)
        root.setLevel(getattr(logging, self._root_level, logging.INFO))


def _flatten_levels(section: dict[str, Any], parent: str = "") -> dict[str, str]:
    # YAML turns "tiercache.cache: DEBUG" under a "tiercache" key into nested dicts
    levels: dict[str, str] = {}
    for key, value in section.items():
        name = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, dict):
            levels.update(_flatten_levels(value, name))
        else:
            levels[name] = str(value).upper()
    return levels
