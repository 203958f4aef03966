"""Plugin registry for predictions and prediction commands.

Built-in plugins register with the ``plugin`` decorator when their module
is imported. Other packages register through entry points:

    [project.entry-points."modelzoo.predictions"]
    n2v = "my_package.prediction:N2VPrediction"

    [project.entry-points."modelzoo.commands"]
    n2v = "my_package.commands:N2VPredictionCommand"

The entry point name is the plugin name, matched against the ``source``
of a model description.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

if TYPE_CHECKING:
    from .context import Context

logger = logging.getLogger(__name__)

PREDICTION_GROUP = "modelzoo.predictions"
COMMAND_GROUP = "modelzoo.commands"

T = TypeVar("T", bound=type)


@dataclass(frozen=True)
class PluginInfo:
    """A registered plugin class."""

    plugin_type: type
    name: str
    plugin_class: type
    origin: str = "builtin"

    @property
    def class_name(self) -> str:
        return f"{self.plugin_class.__module__}.{self.plugin_class.__qualname__}"


_registered: list[PluginInfo] = []


def plugin(plugin_type: type, name: str) -> Callable[[T], T]:
    """Class decorator registering a built-in plugin.

    Example:
        @plugin(SingleImagePrediction, name="default")
        class DefaultSingleImagePrediction(SingleImagePrediction):
            ...
    """

    def decorator(cls: T) -> T:
        if not issubclass(cls, plugin_type):
            raise TypeError(f"{cls.__name__} is not a {plugin_type.__name__}")
        _registered.append(PluginInfo(plugin_type=plugin_type, name=name, plugin_class=cls))
        return cls

    return decorator


def _builtin_plugins() -> list[PluginInfo]:
    # Import here to avoid circular imports
    from .commands import prediction as _commands  # noqa: F401
    from .prediction import default as _default  # noqa: F401

    return list(_registered)


def _entry_point_types() -> dict[str, type]:
    from .commands.prediction import SingleImagePredictionCommand
    from .prediction.base import SingleImagePrediction

    return {
        PREDICTION_GROUP: SingleImagePrediction,
        COMMAND_GROUP: SingleImagePredictionCommand,
    }


class PluginService:
    """Lists plugins by type and creates plugin instances."""

    def __init__(self, context: Optional["Context"] = None, discover: bool = True):
        self.context = context
        self._plugins: list[PluginInfo] = _builtin_plugins()
        if discover:
            self.discover()

    def discover(self) -> list[PluginInfo]:
        """Load plugins advertised through entry points.

        Plugins that fail to import are logged and skipped.

        Returns:
            Newly added plugins
        """
        added = []
        for group, plugin_type in _entry_point_types().items():
            for ep in entry_points(group=group):
                try:
                    cls = ep.load()
                except Exception:
                    logger.exception("Failed to load plugin '%s' from %s", ep.name, ep.value)
                    continue
                if not (inspect.isclass(cls) and issubclass(cls, plugin_type)):
                    logger.error(
                        "Entry point '%s' (%s) is not a %s", ep.name, ep.value, plugin_type.__name__
                    )
                    continue
                info = PluginInfo(plugin_type=plugin_type, name=ep.name, plugin_class=cls, origin=ep.value)
                if info not in self._plugins:
                    self._plugins.append(info)
                    added.append(info)
                    logger.debug("Discovered %s plugin '%s'", plugin_type.__name__, ep.name)
        return added

    def add_plugin(self, info: PluginInfo) -> None:
        self._plugins.append(info)

    def register(self, plugin_type: type, name: str, plugin_class: type) -> PluginInfo:
        """Register a plugin class on this service only."""
        if not issubclass(plugin_class, plugin_type):
            raise TypeError(f"{plugin_class.__name__} is not a {plugin_type.__name__}")
        info = PluginInfo(plugin_type=plugin_type, name=name, plugin_class=plugin_class, origin="runtime")
        self.add_plugin(info)
        return info

    def get_plugins_of_type(self, plugin_type: type) -> list[PluginInfo]:
        """Plugins whose class is a subclass of plugin_type, in registration order."""
        return [p for p in self._plugins if issubclass(p.plugin_class, plugin_type)]

    def get_plugin(self, class_name: str) -> Optional[PluginInfo]:
        for info in self._plugins:
            if info.class_name == class_name:
                return info
        return None

    def create_instance(self, info: PluginInfo) -> Any:
        """Instantiate a plugin, passing the context if the class accepts one."""
        parameters = inspect.signature(info.plugin_class).parameters
        if "context" in parameters:
            return info.plugin_class(context=self.context)
        return info.plugin_class()

    @property
    def plugins(self) -> list[PluginInfo]:
        return list(self._plugins)
