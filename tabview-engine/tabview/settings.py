import logging
import os
from collections.abc import Mapping
from typing import Any, List, Optional

import yaml
from appdirs import user_config_dir
from attrs import define, field
from pydantic import BaseModel, ValidationError, field_validator
from pyrsistent import freeze, pmap, thaw
from pyrsistent.typing import PMap

from tabview.constants import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_QUERY_PARAM,
    PAGE_SIZE_OPTIONS,
)
from tabview.debounce import Debouncer, Scheduler

SAVE_DEBOUNCE_MS = 5000
VIEW_KEY = "tabview.view"
logger = logging.getLogger(__name__)


class ViewConfig(BaseModel):
    """The defaults used when a table engine is created.

    Attributes:
        page_size: The initial number of rows in a page.
        page_size_options: The choices offered by the page size selector.
        max_page_size: Upper limit for the page size; 0 means no limit.
        debounce_ms: The delay applied to the text filter.
        query_param: The query parameter that mirrors the text filter.
    """

    page_size: int = DEFAULT_PAGE_SIZE
    page_size_options: List[int] = list(PAGE_SIZE_OPTIONS)
    max_page_size: int = 0
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    query_param: str = DEFAULT_QUERY_PARAM

    @field_validator("page_size")
    @classmethod
    def _positive_page_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("page_size must be at least 1")
        return value

    @field_validator("page_size_options")
    @classmethod
    def _positive_options(cls, value: List[int]) -> List[int]:
        if any(v < 1 for v in value):
            raise ValueError("page sizes must be at least 1")
        return sorted(set(value))

    @field_validator("query_param")
    @classmethod
    def _non_empty_param(cls, value: str) -> str:
        if not value:
            raise ValueError("query_param can't be empty")
        return value


def _set_in(node: Any, path: List[str], value: Any) -> PMap[str, Any]:
    """Return a copy of `node` with `value` stored at `path`.

    Missing levels are created, and so are levels that hold a plain
    value instead of a mapping.
    """
    if not isinstance(node, Mapping):
        node = pmap()
    head, rest = path[0], path[1:]
    if rest:
        value = _set_in(node.get(head), rest, value)
    return node.set(head, value)


@define
class LocalSettings:
    """Local settings for the application.

    The settings live in a YAML file, by default in the user's
    configuration directory. Changes are saved after a quiet period.

    Attributes:
        path: The settings file; defaults to `settings.yaml` in the user's
            configuration directory.
        settings: The values, as a persistent map.
        read_only: If set the settings are never saved.
        scheduler: The timer provider for the delayed save.
    """

    path: Optional[str] = field(default=None)
    settings: PMap[str, Any] = field(default=pmap())
    read_only: bool = field(default=False)
    scheduler: Optional[Scheduler] = field(default=None)
    _saver: Debouncer = field(default=None, init=False)

    def __attrs_post_init__(self):
        self._saver = Debouncer(
            callback=self._do_save_settings,
            delay_ms=SAVE_DEBOUNCE_MS,
            scheduler=self.scheduler,
        )
        self.load_settings()

    def __getitem__(self, key: str) -> Any:
        return self.get_setting(key)

    def __setitem__(self, key: str, value: Any):
        self.set_setting(key, value)

    def _do_save_settings(self):
        """Internal method to perform the actual save operation."""
        settings_file = self.settings_file()
        tmp_settings = f"{settings_file}.tmp"
        with open(tmp_settings, "w") as f:
            yaml.safe_dump(thaw(self.settings), f)
        os.replace(tmp_settings, settings_file)
        logger.debug("settings saved to %s", settings_file)

    def save_settings(self):
        """Save the settings after a quiet period."""
        if self.read_only:
            return
        self._saver.trigger()

    def flush(self) -> bool:
        """Save now if a save is waiting."""
        return self._saver.flush()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a local read-write setting.

        Args:
            key: The key of the setting to get as a dot-separated path.
            default: The value to return if the setting does not exist.
        """
        node: Any = self.settings
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def set_setting(self, key: str, value: Any):
        """Set a local read-write setting.

        Args:
            key: The key of the setting to set as a dot-separated path.
            value: The value to set the setting to.
        """
        updated = _set_in(self.settings, key.split("."), freeze(value))
        if updated == self.settings:
            return
        self.settings = updated
        self.save_settings()

    def load_settings(self):
        """Load the settings from the settings file."""
        settings_file = self.settings_file()
        if os.path.exists(settings_file):
            with open(settings_file, "r") as f:
                tmp = freeze(yaml.safe_load(f))
                if tmp is not None:
                    self.settings = tmp
                else:
                    logger.warning("Settings file %s is empty", settings_file)
            logger.debug("Settings loaded from %s", settings_file)
        else:
            logger.debug("Settings file %s does not exist", settings_file)

    def settings_file(self) -> str:
        """Get the path to the settings file."""
        if self.path:
            return self.path
        config_dir = user_config_dir("tabview")
        if not os.path.exists(config_dir):
            os.makedirs(config_dir)
        return os.path.join(config_dir, "settings.yaml")

    def view_config(self) -> ViewConfig:
        """The table defaults; invalid values fall back to the defaults."""
        data = thaw(self.get_setting(VIEW_KEY)) or {}
        try:
            return ViewConfig.model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid view settings, using defaults: %s", e)
            return ViewConfig()
