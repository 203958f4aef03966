"""Shared services for one model zoo session."""

from __future__ import annotations

from typing import Optional

from .commands import CommandService, InputHarvester
from .plugins import PluginService
from .settings import ModelZooSettings, get_settings
from .ui import UIService


class Context:
    """Holds settings and the services plugins and commands need.

    Example:
        context = Context()
        archive = context.model_zoo.open("model.zip")
    """

    def __init__(
        self,
        settings: Optional[ModelZooSettings] = None,
        ui_service: Optional[UIService] = None,
        harvester: Optional[InputHarvester] = None,
        discover_plugins: bool = True,
    ):
        self.settings = settings or get_settings()
        self.plugin_service = PluginService(self, discover=discover_plugins)
        self.command_service = CommandService(self, harvester)
        self.ui_service = ui_service or UIService()
        self._model_zoo = None

    @property
    def model_zoo(self):
        """The ModelZooService bound to this context."""
        if self._model_zoo is None:
            from .service import ModelZooService

            self._model_zoo = ModelZooService(self)
        return self._model_zoo
