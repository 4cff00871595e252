"""
Menu Service

Serves the static menu document: categories of items plus a configuration
block carrying the order ceiling. A ceiling in the menu file overrides the
ORDER_CEILING setting.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

import pydantic

from tapgo.core.config import Settings, get_settings
from tapgo.core.exceptions import TapGoError
from tapgo.schemas import MenuCategory, MenuConfig, MenuResponse

logger = logging.getLogger(__name__)


class MenuUnavailableError(TapGoError):
    status_code = 503
    error = "Menu unavailable"


class MenuService:
    """Loads and caches the menu document from disk."""

    def __init__(self, path: Path, settings: Optional[Settings] = None):
        self.path = Path(path)
        self.settings = settings or get_settings()
        self._categories: Optional[dict[str, MenuCategory]] = None
        self._config: Optional[MenuConfig] = None

    def load(self) -> None:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            categories = {
                name: MenuCategory.model_validate(body)
                for name, body in raw.get("categories", {}).items()
            }
            config = MenuConfig.model_validate(raw.get("config", {}))
        except (OSError, json.JSONDecodeError, pydantic.ValidationError) as e:
            logger.error(f"Could not load menu from {self.path}: {e}")
            raise MenuUnavailableError(f"Could not load menu: {e}") from e

        self._categories = categories
        self._config = config
        item_total = sum(len(c.items) for c in categories.values())
        logger.info(f"Menu loaded: {len(categories)} categories, {item_total} items")

    @property
    def categories(self) -> dict[str, MenuCategory]:
        if self._categories is None:
            self.load()
        return self._categories

    @property
    def config(self) -> MenuConfig:
        if self._config is None:
            self.load()
        return self._config

    @property
    def order_ceiling(self) -> int:
        """Menu ceiling when present, else the configured default."""
        try:
            configured = self.config.order_ceiling
        except MenuUnavailableError:
            configured = None
        return configured if configured is not None else self.settings.order_ceiling

    @property
    def ceiling_message(self) -> str:
        try:
            message = self.config.ceiling_message
        except MenuUnavailableError:
            message = None
        return message or self.settings.order_ceiling_message

    def to_response(self) -> MenuResponse:
        return MenuResponse(
            menu=self.categories,
            config=MenuConfig(
                order_ceiling=self.order_ceiling,
                ceiling_message=self.ceiling_message,
            ),
        )


@lru_cache()
def get_menu_service() -> MenuService:
    """Get the process-wide menu service."""
    settings = get_settings()
    return MenuService(Path(settings.menu_file), settings)


def reset_menu_service() -> None:
    """Clear the cached service instance (after the menu file changes)."""
    get_menu_service.cache_clear()
