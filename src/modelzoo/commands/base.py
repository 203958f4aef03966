"""Command modules and the service that runs them.

A command declares its inputs as ModuleItems. Before it runs, the
CommandService asks an InputHarvester for every input that was not set
and resolved by the caller.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import click

from ..exceptions import ModuleError

if TYPE_CHECKING:
    from ..context import Context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleItem:
    """One declared command input."""

    name: str
    type: type = str
    required: bool = True
    default: Any = None
    label: Optional[str] = None

    @property
    def prompt(self) -> str:
        return self.label or self.name.replace("_", " ").capitalize()


class Module(ABC):
    """A runnable command with named inputs and outputs."""

    inputs: ClassVar[tuple[ModuleItem, ...]] = ()

    def __init__(self, context: Optional["Context"] = None):
        self.context = context
        self._values: dict[str, Any] = {
            item.name: item.default for item in self.inputs if item.default is not None
        }
        self._resolved: set[str] = set()
        self.outputs: dict[str, Any] = {}

    def _item(self, name: str) -> ModuleItem:
        for item in self.inputs:
            if item.name == name:
                return item
        raise ModuleError(f"{self.__class__.__name__} has no input '{name}'")

    def set_input(self, name: str, value: Any) -> None:
        self._item(name)
        self._values[name] = value

    def get_input(self, name: str) -> Any:
        self._item(name)
        return self._values.get(name)

    def resolve_input(self, name: str) -> None:
        """Mark an input as set so it is not harvested."""
        self._item(name)
        self._resolved.add(name)

    def is_resolved(self, name: str) -> bool:
        return name in self._resolved

    def unresolved_inputs(self) -> list[ModuleItem]:
        return [item for item in self.inputs if item.name not in self._resolved]

    def validate(self) -> None:
        missing = [
            item.name
            for item in self.inputs
            if item.required and self._values.get(item.name) is None
        ]
        if missing:
            raise ModuleError(f"{self.__class__.__name__} is missing inputs: {', '.join(missing)}")

    @abstractmethod
    def run(self) -> None:
        pass


class InputHarvester:
    """Asks for unresolved module inputs on the terminal."""

    def _click_type(self, item: ModuleItem):
        if item.type is Path:
            return click.Path(path_type=Path)
        if item.type is bool:
            return click.BOOL
        return item.type

    def harvest(self, module: Module) -> None:
        for item in module.unresolved_inputs():
            current = module.get_input(item.name)
            if current is None and not item.required:
                module.resolve_input(item.name)
                continue
            value = click.prompt(
                item.prompt,
                default=current,
                type=self._click_type(item),
                show_default=current is not None,
            )
            module.set_input(item.name, value)
            module.resolve_input(item.name)


@dataclass(frozen=True)
class CommandInfo:
    """Metadata needed to create a command module."""

    class_name: str
    command_class: type
    context: Optional["Context"] = None

    def create_module(self) -> Module:
        try:
            return self.command_class(context=self.context)
        except TypeError as e:
            raise ModuleError(f"Cannot create module {self.class_name}: {e}") from e


class CommandService:
    """Looks up commands and runs their modules."""

    def __init__(self, context: Optional["Context"] = None, harvester: Optional[InputHarvester] = None):
        self.context = context
        self.harvester = harvester or InputHarvester()

    def get_command(self, class_name: str) -> CommandInfo:
        """Find a command by fully qualified class name.

        Raises:
            ModuleError: If the class cannot be found or is not a Module
        """
        command_class = None
        if self.context is not None:
            info = self.context.plugin_service.get_plugin(class_name)
            if info is not None:
                command_class = info.plugin_class
        if command_class is None:
            module_name, _, attr = class_name.rpartition(".")
            try:
                command_class = getattr(importlib.import_module(module_name), attr)
            except (ImportError, AttributeError, ValueError) as e:
                raise ModuleError(f"Unknown command '{class_name}'") from e
        if not (isinstance(command_class, type) and issubclass(command_class, Module)):
            raise ModuleError(f"'{class_name}' is not a command module")
        return CommandInfo(class_name=class_name, command_class=command_class, context=self.context)

    def run(self, module: Module, process: bool = True) -> Module:
        """Run a module, harvesting unresolved inputs first when process is set."""
        if process:
            self.harvester.harvest(module)
        module.validate()
        logger.info("Running command %s", module.__class__.__name__)
        module.run()
        return module
