import pytest

from nemory.services.run_state import IllegalTransitionError, RunStage, RunStateMachine, can_transition

HAPPY_PATH = [
    RunStage.DISCOVERING,
    RunStage.EXTRACTING,
    RunStage.SUMMARIZING,
    RunStage.DELIVERING,
    RunStage.RECORDING,
    RunStage.SUCCESS,
]


def test_happy_path():
    machine = RunStateMachine()
    for stage in HAPPY_PATH:
        machine.advance(stage)
    assert machine.history == [RunStage.PENDING, *HAPPY_PATH]


def test_stages_cannot_be_skipped():
    machine = RunStateMachine()
    machine.advance(RunStage.DISCOVERING)
    with pytest.raises(IllegalTransitionError):
        machine.advance(RunStage.SUMMARIZING)
    assert machine.stage is RunStage.DISCOVERING


@pytest.mark.parametrize("stage", [RunStage.PENDING, RunStage.DISCOVERING, RunStage.SUMMARIZING, RunStage.DELIVERING])
def test_working_stages_can_abort_to_recording(stage):
    assert can_transition(stage, RunStage.RECORDING)


def test_success_only_after_recording():
    assert not can_transition(RunStage.DELIVERING, RunStage.SUCCESS)
    assert can_transition(RunStage.RECORDING, RunStage.FAILED)


@pytest.mark.parametrize("terminal", [RunStage.SUCCESS, RunStage.FAILED])
def test_terminal_stages_are_final(terminal):
    assert not any(can_transition(terminal, target) for target in RunStage)
