import types

import pytest

from releasekit.errors import PluginExportError
from releasekit.plugins.selector import select_capability


def _plugin(plugin_config, context):
    return "selected"


def test_callable_is_selected_as_is():
    assert select_capability(_plugin, "publish") is _plugin


def test_default_export_is_preferred():
    module = types.ModuleType("release_plugin")
    module.default = _plugin
    module.publish = lambda plugin_config, context: None

    assert select_capability(module, "publish") is _plugin


def test_slot_member_is_selected_from_module():
    module = types.ModuleType("release_plugin")
    module.publish = _plugin

    assert select_capability(module, "publish") is _plugin


def test_slot_member_is_selected_from_default_container():
    module = types.ModuleType("release_plugin")
    module.default = {"verify_conditions": _plugin}

    assert select_capability(module, "verify_conditions") is _plugin


def test_slot_key_is_selected_from_mapping():
    assert select_capability({"generate_notes": _plugin}, "generate_notes") is _plugin


def test_missing_capability_is_rejected():
    module = types.ModuleType("release_plugin")
    module.other_slot = _plugin

    with pytest.raises(PluginExportError) as excinfo:
        select_capability(module, "my_slot", specifier="./release_plugin")

    error = excinfo.value
    assert error.code == "EPLUGINCONF"
    assert error.slot == "my_slot"
    assert error.specifier == "./release_plugin"
    assert str(error) == (
        "The my_slot plugin must be a function, or an object with a function in the property my_slot."
    )


def test_non_callable_member_is_rejected():
    with pytest.raises(PluginExportError):
        select_capability({"publish": "not-a-function"}, "publish")
