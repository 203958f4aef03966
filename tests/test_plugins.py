"""Tests for the plugin registry."""

from types import SimpleNamespace

import pytest

from modelzoo import plugins as plugins_mod
from modelzoo.commands.prediction import DefaultModelZooPredictionCommand, SingleImagePredictionCommand
from modelzoo.plugins import COMMAND_GROUP, PREDICTION_GROUP, PluginService
from modelzoo.prediction import DefaultSingleImagePrediction, SingleImagePrediction


class EchoPrediction(SingleImagePrediction):
    def run(self):
        self._check_configured()
        self._output = self.input.image


class NotAPrediction:
    pass


class NoContextPrediction(SingleImagePrediction):
    def __init__(self):
        super().__init__(context=None)

    def run(self):
        pass


def fake_entry_points(groups):
    def entry_points(group):
        return groups.get(group, [])

    return entry_points


def entry_point(name, loaded=None, error=None):
    def load():
        if error is not None:
            raise error
        return loaded

    return SimpleNamespace(name=name, value=f"fake_module:{name}", load=load)


def test_builtin_plugins_are_registered():
    service = PluginService(discover=False)

    predictions = service.get_plugins_of_type(SingleImagePrediction)
    commands = service.get_plugins_of_type(SingleImagePredictionCommand)

    assert ("default", DefaultSingleImagePrediction) in [(p.name, p.plugin_class) for p in predictions]
    assert ("default", DefaultModelZooPredictionCommand) in [(p.name, p.plugin_class) for p in commands]
    assert all(p.origin == "builtin" for p in predictions)


def test_plugins_are_filtered_by_type():
    service = PluginService(discover=False)
    assert DefaultModelZooPredictionCommand not in [
        p.plugin_class for p in service.get_plugins_of_type(SingleImagePrediction)
    ]


def test_register_runtime_plugin():
    service = PluginService(discover=False)
    info = service.register(SingleImagePrediction, "echo", EchoPrediction)

    assert info.origin == "runtime"
    assert info.class_name == "test_plugins.EchoPrediction"
    assert info in service.get_plugins_of_type(SingleImagePrediction)
    assert service.get_plugin("test_plugins.EchoPrediction") is info
    assert service.get_plugin("missing.Plugin") is None


def test_register_rejects_wrong_type():
    service = PluginService(discover=False)
    with pytest.raises(TypeError, match="is not a SingleImagePrediction"):
        service.register(SingleImagePrediction, "bad", DefaultModelZooPredictionCommand)


def test_decorator_rejects_wrong_type():
    with pytest.raises(TypeError):
        plugins_mod.plugin(SingleImagePrediction, name="bad")(NotAPrediction)


def test_create_instance_passes_context(context):
    service = context.plugin_service
    echo = service.create_instance(service.register(SingleImagePrediction, "echo", EchoPrediction))
    plain = service.create_instance(service.register(SingleImagePrediction, "plain", NoContextPrediction))

    assert isinstance(echo, EchoPrediction)
    assert echo.context is context
    assert plain.context is None


class TestDiscover:
    def test_entry_points_are_added(self, monkeypatch):
        monkeypatch.setattr(
            plugins_mod,
            "entry_points",
            fake_entry_points({PREDICTION_GROUP: [entry_point("echo", EchoPrediction)]}),
        )
        service = PluginService()

        echo = [p for p in service.get_plugins_of_type(SingleImagePrediction) if p.name == "echo"]
        assert len(echo) == 1
        assert echo[0].plugin_class is EchoPrediction
        assert echo[0].origin == "fake_module:echo"

    def test_discover_twice_adds_nothing(self, monkeypatch):
        monkeypatch.setattr(
            plugins_mod,
            "entry_points",
            fake_entry_points({PREDICTION_GROUP: [entry_point("echo", EchoPrediction)]}),
        )
        service = PluginService()
        assert service.discover() == []

    def test_broken_plugins_are_skipped(self, monkeypatch, caplog):
        monkeypatch.setattr(
            plugins_mod,
            "entry_points",
            fake_entry_points(
                {
                    PREDICTION_GROUP: [
                        entry_point("broken", error=ImportError("no module named fake_module")),
                        entry_point("echo", EchoPrediction),
                    ],
                    COMMAND_GROUP: [entry_point("wrong", EchoPrediction)],
                }
            ),
        )
        service = PluginService()
        names = [p.name for p in service.plugins]

        assert "echo" in names
        assert "broken" not in names
        assert "wrong" not in names
        assert "Failed to load plugin 'broken'" in caplog.text
        assert "is not a SingleImagePredictionCommand" in caplog.text
