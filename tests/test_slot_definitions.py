import pytest

from releasekit.errors import PluginOutputError
from releasekit.plugins.definitions import (
    RELEASE_TYPES,
    SLOT_DEFINITIONS,
    SlotDefinition,
    get_slot,
    is_valid_semver,
    slot_index,
    slot_names,
    suggest_slots,
    with_defaults,
)


def test_slots_are_listed_in_pipeline_order():
    assert slot_names() == (
        "verify_conditions",
        "get_last_release",
        "analyze_commits",
        "verify_release",
        "generate_notes",
        "publish",
    )


def test_builtin_slots_have_no_defaults():
    assert all(definition.default is None for definition in SLOT_DEFINITIONS)


def test_with_defaults_returns_new_table():
    definitions = with_defaults(
        {"analyze_commits": "release_plugins.commit_analyzer", "publish": ["./a", {"path": "./b"}]}
    )

    assert get_slot("analyze_commits", definitions).default == "release_plugins.commit_analyzer"
    assert get_slot("analyze_commits", definitions).has_single_default
    assert get_slot("publish", definitions).default == ("./a", {"path": "./b"})
    assert not get_slot("publish", definitions).has_single_default
    assert get_slot("analyze_commits").default is None
    assert get_slot("analyze_commits", definitions).output is get_slot("analyze_commits").output


def test_unknown_slot_suggests_close_matches():
    with pytest.raises(ValueError, match=r"Unknown slot: publsh \(did you mean: publish"):
        with_defaults({"publsh": "./a"})

    assert suggest_slots("generate_note")[0] == "generate_notes"
    assert suggest_slots("") == ()


def test_unknown_slot_without_match_lists_available():
    with pytest.raises(ValueError, match="available: verify_conditions"):
        get_slot("zzz")


def test_duplicate_slot_names_are_rejected():
    with pytest.raises(ValueError, match="Duplicate slot name: publish"):
        slot_index((SlotDefinition("publish"), SlotDefinition(" publish ")))


def test_slot_definition_validates_fields():
    with pytest.raises(TypeError, match="name"):
        SlotDefinition("  ")
    with pytest.raises(TypeError, match="doc"):
        SlotDefinition("publish", doc="")
    with pytest.raises(TypeError, match="output"):
        SlotDefinition("publish", output=lambda value: True)
    with pytest.raises(ValueError, match=r"default\[1\]"):
        SlotDefinition("publish", default=["./a", {"conf": 1}])
    with pytest.raises(ValueError, match="default is not a plugin definition"):
        SlotDefinition("publish", default=3)


@pytest.mark.parametrize(
    ("output", "valid"),
    [
        (None, True),
        ({}, True),
        ({"version": None}, True),
        ({"version": "1.2.3", "git_head": "abc123"}, True),
        ({"version": "v1.2.3-beta.1+build.5", "git_head": "abc123"}, True),
        ({"version": "=1.0.0", "git_head": "abc123"}, True),
        ({"version": "1.2", "git_head": "abc123"}, False),
        ({"version": "1.2.3"}, False),
        ({"version": "1.2.3", "git_head": ""}, False),
        ("1.2.3", False),
    ],
)
def test_get_last_release_output_contract(output, valid):
    validation = get_slot("get_last_release").output

    if valid:
        assert validation.check(output) is output
    else:
        with pytest.raises(PluginOutputError, match="get_last_release"):
            validation.check(output)


@pytest.mark.parametrize("output", [None, *RELEASE_TYPES])
def test_analyze_commits_accepts_release_types(output):
    assert get_slot("analyze_commits").output.check(output) == output


@pytest.mark.parametrize("output", ["huge", 1, ["minor"]])
def test_analyze_commits_rejects_other_outputs(output):
    with pytest.raises(PluginOutputError, match="Valid values are: major, premajor"):
        get_slot("analyze_commits").output.check(output)


def test_generate_notes_contract():
    validation = get_slot("generate_notes").output

    assert validation.check("## 1.0.0") == "## 1.0.0"
    assert validation.check(None) is None
    with pytest.raises(PluginOutputError, match="Received: 42"):
        validation.check(42)


def test_slots_without_contract_accept_anything():
    assert get_slot("publish").output is None
    assert get_slot("verify_conditions").output is None


@pytest.mark.parametrize(
    ("version", "valid"),
    [("0.0.1", True), ("v2.0.0", True), (" 1.0.0 ", True), ("01.0.0", False), ("1.0", False), (None, False)],
)
def test_is_valid_semver(version, valid):
    assert is_valid_semver(version) is valid


@pytest.mark.parametrize("slot", ["get_last_release", "analyze_commits", "generate_notes"])
@pytest.mark.parametrize("output", ["", False, 0])
def test_falsy_outputs_pass_every_contract(slot, output):
    assert get_slot(slot).output.check(output) is output
