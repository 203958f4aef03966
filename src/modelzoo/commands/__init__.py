"""Command modules, input harvesting and the command service."""

from .base import CommandInfo, CommandService, InputHarvester, Module, ModuleItem

__all__ = ["CommandInfo", "CommandService", "InputHarvester", "Module", "ModuleItem"]
