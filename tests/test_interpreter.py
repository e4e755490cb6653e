"""Tests for aaim.core.interpreter — lifecycle, transitions, behavior delegation."""

import asyncio
import copy
import logging
from unittest.mock import MagicMock

import pytest

from aaim.core.behavior import AAIMBehavior
from aaim.core.interpreter import AAIMInterpreter
from aaim.situation.factory import SituationFactory

SIMPLE = {
    "initial": "First",
    "states": [
        {
            "name": "Second",
            "do": "NothingSecond",
            "events": [
                {"on": "win", "goto": "First"},
                {"on": "loose", "goto": "Third"},
            ],
        },
        {
            "name": "First",
            "do": "NothingFirst",
            "events": [
                {"on": "secondarize", "goto": "Second"},
                {"on": "thirdify", "goto": "Third", "do": "NothingOnTheWay"},
            ],
        },
        {
            "name": "Third",
            "do": "NothingThird",
            "events": [{"on": "top", "goto": "First"}],
        },
    ],
}
EMPTY = {"initial": "Init", "states": []}
MISSING_INITIAL = {"initial": "Init", "states": [{"name": "One"}]}
NO_INITIAL = {"states": [{"name": "One"}]}
MISSING_TARGET = {
    "initial": "Init",
    "states": [
        {"name": "Init", "events": [{"on": "move", "goto": "Other"}]},
        {"name": "Different"},
    ],
}


@pytest.fixture
def models():
    return {
        "simple": copy.deepcopy(SIMPLE),
        "missing_initial": copy.deepcopy(MISSING_INITIAL),
        "no_initial": copy.deepcopy(NO_INITIAL),
        "missing_target": copy.deepcopy(MISSING_TARGET),
    }


@pytest.fixture
def interpreter():
    return AAIMInterpreter()


@pytest.fixture
def started(interpreter, models):
    interpreter.load(models["simple"])
    interpreter.running = True
    return interpreter


def test_created_stopped_and_clean(interpreter):
    assert not interpreter.running
    assert interpreter.model is None
    assert interpreter.state is None
    assert interpreter.history == []


# ── Loading ──────────────────────────────────────────────────────────────


class TestLoad:
    def test_from_dicts(self, interpreter, models):
        assert interpreter.load(models["simple"]) is True
        assert interpreter.model is models["simple"]

    def test_not_by_assignment(self, interpreter, models):
        with pytest.raises(AttributeError):
            interpreter.model = models["simple"]
        assert interpreter.model is None

    def test_replacing_a_loaded_model(self, interpreter, models):
        interpreter.load(models["simple"])
        assert interpreter.load(models["missing_initial"]) is True
        assert interpreter.model is models["missing_initial"]

    @pytest.mark.parametrize(
        "invalid",
        [None, 42, "model", ["states"], EMPTY, {"initial": "First"}, {"states": "x"}],
    )
    def test_rejects_invalid_models(self, interpreter, models, invalid):
        interpreter.load(models["simple"])
        assert interpreter.load(invalid) is False
        assert interpreter.model is models["simple"]

    def test_not_while_running(self, started, models):
        assert started.load(models["missing_initial"]) is False
        assert started.running
        assert started.model is models["simple"]

    def test_first_declaration_wins_for_duplicate_names(self, interpreter):
        first = {"name": "A", "events": []}
        duplicate = {"name": "A", "events": []}
        interpreter.load({"initial": "A", "states": [first, duplicate]})
        interpreter.running = True
        assert interpreter.state is first

    def test_states_as_tuple(self, interpreter):
        first = {"name": "A", "events": []}
        assert interpreter.load({"initial": "A", "states": (first,)}) is True
        interpreter.running = True
        assert interpreter.state is first

    def test_keeps_current_state_when_loaded_while_paused(self, started, models):
        previous = started.state
        started.running = False

        assert started.load(models["missing_target"]) is True
        assert started.state is previous


# ── Running ──────────────────────────────────────────────────────────────


class TestRunning:
    def test_not_without_model(self, interpreter):
        interpreter.running = True
        assert not interpreter.running

    def test_with_a_loaded_model(self, interpreter, models):
        interpreter.load(models["simple"])
        interpreter.running = True
        assert interpreter.running
        assert interpreter.model is models["simple"]

    def test_into_the_initial_state(self, started, models):
        assert started.state is models["simple"]["states"][1]

    def test_not_when_initial_state_is_missing(self, interpreter, models):
        interpreter.load(models["missing_initial"])
        interpreter.set_running(True)
        assert not interpreter.running
        assert interpreter.state is None
        assert interpreter.model is models["missing_initial"]

    def test_not_when_no_initial_state_is_defined(self, interpreter, models):
        interpreter.load(models["no_initial"])
        interpreter.running = True
        assert not interpreter.running
        assert interpreter.state is None

    def test_can_be_paused(self, started, models):
        started.running = False
        assert not started.running
        assert started.state is models["simple"]["states"][1]

    def test_pause_is_idempotent(self, started):
        started.running = False
        started.running = False
        assert not started.running

    def test_running_twice_stays_running(self, started):
        state = started.state
        started.running = True
        assert started.running
        assert started.state is state

    def test_resumes_in_previous_state(self, started):
        started.execute_event("secondarize")
        previous = started.state
        started.running = False

        started.running = True

        assert started.state is previous
        assert len(started.history) == 2

    def test_reset_when_paused(self, started):
        started.running = False
        started.reset()
        assert started.state is None

    def test_no_reset_while_running(self, started):
        started.execute_event("secondarize")
        previous = started.state
        started.reset()
        assert started.state is previous

    def test_initial_state_again_after_reset(self, started, models):
        started.execute_event("secondarize")
        started.running = False
        started.reset()

        started.running = True

        assert started.state is models["simple"]["states"][1]


# ── Events ───────────────────────────────────────────────────────────────


class TestExecuteEvent:
    def test_to_defined_states(self, started, models):
        previous = started.state
        started.execute_event("secondarize")
        assert started.state is not previous
        assert started.state is models["simple"]["states"][0]

    def test_unknown_event_keeps_state(self, started):
        previous = started.state
        started.execute_event("nonexisting")
        assert started.state is previous

    def test_only_events_of_the_current_state(self, started):
        previous = started.state
        started.execute_event("loose")
        assert started.state is previous

    def test_not_to_missing_states(self, started, models):
        started.running = False
        started.reset()
        started.load(models["missing_target"])
        started.running = True
        previous = started.state

        started.execute_event("move")

        assert started.state is previous
        assert previous["name"] == "Init"

    def test_only_when_running(self, started):
        previous = started.state
        started.running = False
        started.execute_event("secondarize")
        assert started.state is previous

    def test_first_resolvable_event_wins(self, interpreter):
        a, b, c = {"name": "A"}, {"name": "B"}, {"name": "C"}
        a["events"] = [
            {"on": "go", "goto": "Nowhere"},
            {"on": "go", "goto": "B"},
            {"on": "go", "goto": "C"},
        ]
        interpreter.load({"initial": "A", "states": [a, b, c]})
        interpreter.running = True

        interpreter.execute_event("go")

        assert interpreter.state is b

    def test_round_trip(self, started, models):
        started.execute_event("secondarize")
        started.execute_event("win")
        assert started.state is models["simple"]["states"][1]

        started.execute_event("loose")
        assert started.state["name"] == "First"

    def test_history_records_transitions(self, started):
        started.execute_event("secondarize")
        started.execute_event("win")

        records = [(prev, new, event) for _, prev, new, event in started.history]
        assert records == [
            (None, "First", None),
            ("First", "Second", "secondarize"),
            ("Second", "First", "win"),
        ]

    def test_history_is_bounded(self, models):
        interpreter = AAIMInterpreter(history_size=2)
        interpreter.load(models["simple"])
        interpreter.running = True
        for _ in range(3):
            interpreter.execute_event("secondarize")
            interpreter.execute_event("win")
        assert len(interpreter.history) == 2


# ── Behavior delegation ──────────────────────────────────────────────────


@pytest.fixture
def behavior():
    behavior = MagicMock()
    behavior.execute_state.return_value = None
    return behavior


@pytest.fixture
def delegating(behavior, models):
    interpreter = AAIMInterpreter(behavior)
    interpreter.load(models["simple"])
    return interpreter


class TestBehaviorDelegation:
    def test_initial_state_on_startup(self, delegating, behavior):
        delegating.running = True
        behavior.execute_state.assert_called_once_with("NothingFirst")

    def test_target_state_without_transition_behavior(self, delegating, behavior):
        delegating.running = True
        behavior.execute_state.reset_mock()

        delegating.execute_event("secondarize")

        behavior.execute_state.assert_called_once_with("NothingSecond")
        behavior.execute_transition.assert_not_called()

    def test_no_behavior_on_resume(self, delegating, behavior):
        delegating.running = True
        delegating.running = False
        behavior.execute_state.reset_mock()

        delegating.running = True

        behavior.execute_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_transition_then_target_state(self, delegating, behavior):
        loop = asyncio.get_running_loop()
        transition = loop.create_future()
        behavior.execute_transition.return_value = transition
        delegating.running = True
        behavior.execute_state.reset_mock()

        delegating.execute_event("thirdify")

        behavior.execute_transition.assert_called_once_with("NothingOnTheWay")
        assert delegating.state["name"] == "Third"
        await asyncio.sleep(0)
        behavior.execute_state.assert_not_called()

        transition.set_result(None)
        await delegating.drain()

        behavior.execute_state.assert_called_once_with("NothingThird")

    @pytest.mark.asyncio
    async def test_failed_transition_skips_state_behavior(
        self, delegating, behavior, caplog
    ):
        loop = asyncio.get_running_loop()
        transition = loop.create_future()
        transition.set_exception(RuntimeError("service down"))
        behavior.execute_transition.return_value = transition
        delegating.running = True
        behavior.execute_state.reset_mock()

        with caplog.at_level(logging.ERROR, logger="aaim.core.interpreter"):
            delegating.execute_event("thirdify")
            await delegating.drain()

        behavior.execute_state.assert_not_called()
        assert delegating.state["name"] == "Third"
        assert "service down" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_reports_the_state_it_belonged_to(
        self, delegating, behavior, caplog
    ):
        transition = asyncio.get_running_loop().create_future()
        behavior.execute_transition.return_value = transition
        delegating.running = True

        with caplog.at_level(logging.ERROR, logger="aaim.core.interpreter"):
            delegating.execute_event("thirdify")
            delegating.execute_event("top")
            transition.set_exception(RuntimeError("service down"))
            await delegating.drain()

        assert delegating.state["name"] == "First"
        [record] = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert record.state == "Third"
        assert "'Third'" in record.getMessage()

    def test_transition_log_carries_the_target_state(self, delegating, caplog):
        with caplog.at_level(logging.INFO, logger="aaim.core.interpreter"):
            delegating.running = True

        [record] = [r for r in caplog.records if r.getMessage().startswith("State:")]
        assert record.state == "First"


# ── End to end with the real coordinator ─────────────────────────────────


class RecordingFactory(SituationFactory):
    def __init__(self):
        self.calls = []

    def create(self, situation, parameters, context):
        self.calls.append(("create", situation, parameters))

    def refresh(self, situation, parameters, context):
        self.calls.append(("refresh", situation, parameters))


class EchoService:
    def __init__(self):
        self.calls = []

    def provides(self, method):
        return method in ("remember", "echo")

    async def _run(self, method, params, context):
        self.calls.append((method, params))
        if method == "remember":
            context["last"] = params[0]
        return params[0] if params else None

    def execute(self, method, *params):
        return asyncio.ensure_future(self._run(method, params, self.context))


@pytest.mark.asyncio
async def test_end_to_end_three_states():
    factory = RecordingFactory()
    service = EchoService()
    behavior = AAIMBehavior(factory, service)
    service.context = behavior.data
    behavior.data["user"] = "Ford"

    second_do = {"situation": "SecondScreen", "parameters": ["${user}", "${last}"]}
    model = {
        "initial": "First",
        "states": [
            {
                "name": "First",
                "do": {"situation": "FirstScreen"},
                "events": [
                    {
                        "on": "secondarize",
                        "goto": "Second",
                        "do": {"name": "remember", "parameters": ["towel"]},
                    }
                ],
            },
            {
                "name": "Second",
                "do": second_do,
                "events": [
                    {"on": "win", "goto": "First"},
                    {"on": "loose", "goto": "Third"},
                    {"on": "again", "goto": "Second"},
                ],
            },
            {"name": "Third", "do": {"situation": "ThirdScreen"}, "events": []},
        ],
    }
    interpreter = AAIMInterpreter(behavior)
    assert interpreter.load(model)

    interpreter.running = True
    await interpreter.drain()
    assert interpreter.state["name"] == "First"

    interpreter.execute_event("secondarize")
    assert interpreter.state["name"] == "Second"
    await interpreter.drain()

    interpreter.execute_event("again")
    await interpreter.drain()

    interpreter.execute_event("win")
    await interpreter.drain()
    interpreter.execute_event("loose")
    await interpreter.drain()

    assert interpreter.state["name"] == "First"
    assert service.calls == [("remember", ("towel",))]
    assert factory.calls == [
        ("create", "FirstScreen", []),
        ("create", "SecondScreen", ["Ford", "towel"]),
        ("refresh", "SecondScreen", ["Ford", "towel"]),
        ("create", "FirstScreen", []),
    ]
