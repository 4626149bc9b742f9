import asyncio

import pytest

from releasekit.plugins.normalize import noop, normalize
from releasekit.plugins.pipeline import PluginPipeline


def test_pipeline_runs_steps_in_order_and_collects_results():
    order = []

    async def first(context=None):
        await asyncio.sleep(0)
        order.append("first")
        return 1

    async def second(context=None):
        order.append("second")
        return 2

    pipeline = PluginPipeline(slot="publish", steps=[first, second])

    assert asyncio.run(pipeline("ctx")) == [1, 2]
    assert order == ["first", "second"]


def test_each_step_receives_an_unmodified_input():
    seen = []

    def mutating(plugin_config, context):
        context["channel"] = "mutated"
        return context["channel"]

    def reading(plugin_config, context):
        seen.append(dict(context))

    pipeline = PluginPipeline(
        slot="verify_release",
        steps=(normalize("verify_release", {}, {}, mutating), normalize("verify_release", {}, {}, reading)),
    )
    context = {"channel": "latest"}

    asyncio.run(pipeline(context))

    assert seen == [{"channel": "latest"}]
    assert context == {"channel": "latest"}


def test_pipeline_stops_at_first_failure_and_annotates_error():
    calls = []

    def failing(plugin_config, context):
        calls.append("failing")
        raise RuntimeError("boom")

    def never(plugin_config, context):
        calls.append("never")

    pipeline = PluginPipeline(
        slot="publish",
        steps=(noop, normalize("publish", {}, {}, failing), normalize("publish", {}, {}, never)),
    )

    with pytest.raises(RuntimeError, match="boom") as excinfo:
        asyncio.run(pipeline())

    assert calls == ["failing"]
    assert excinfo.value.plugin_slot == "publish"
    assert excinfo.value.plugin_index == 1


def test_existing_error_annotations_are_preserved():
    async def failing(context=None):
        error = ValueError("inner")
        error.plugin_slot = "inner_slot"
        raise error

    with pytest.raises(ValueError) as excinfo:
        asyncio.run(PluginPipeline(slot="outer", steps=[failing])())

    assert excinfo.value.plugin_slot == "inner_slot"
    assert excinfo.value.plugin_index == 0


def test_pipeline_behaves_as_a_sequence():
    pipeline = PluginPipeline(slot="publish", steps=[noop, noop])

    assert len(pipeline) == 2
    assert pipeline[0] is noop
    assert list(pipeline) == [noop, noop]
    assert isinstance(pipeline.steps, tuple)


def test_empty_pipeline_returns_empty_list():
    assert asyncio.run(PluginPipeline(slot="publish")()) == []


def test_pipeline_rejects_non_callable_steps():
    with pytest.raises(TypeError, match="index=1"):
        PluginPipeline(slot="publish", steps=[noop, "not-callable"])
