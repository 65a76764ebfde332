"""Explicit per-run state machine for the schedule runner."""

from enum import Enum


class RunStage(str, Enum):
    PENDING = "pending"
    DISCOVERING = "discovering"
    EXTRACTING = "extracting"
    SUMMARIZING = "summarizing"
    DELIVERING = "delivering"
    RECORDING = "recording"
    SUCCESS = "success"
    FAILED = "failed"


# Working stages may also jump straight to RECORDING on error
_WORKING = (RunStage.PENDING, RunStage.DISCOVERING, RunStage.EXTRACTING, RunStage.SUMMARIZING, RunStage.DELIVERING)

TRANSITIONS: dict[RunStage, frozenset[RunStage]] = {
    RunStage.PENDING: frozenset({RunStage.DISCOVERING}),
    RunStage.DISCOVERING: frozenset({RunStage.EXTRACTING}),
    RunStage.EXTRACTING: frozenset({RunStage.SUMMARIZING}),
    RunStage.SUMMARIZING: frozenset({RunStage.DELIVERING}),
    RunStage.DELIVERING: frozenset({RunStage.RECORDING}),
    RunStage.RECORDING: frozenset({RunStage.SUCCESS, RunStage.FAILED}),
    RunStage.SUCCESS: frozenset(),
    RunStage.FAILED: frozenset(),
}
for _stage in _WORKING:
    TRANSITIONS[_stage] = TRANSITIONS[_stage] | {RunStage.RECORDING}


class IllegalTransitionError(Exception):
    """Raised when the runner tries to skip or reorder stages."""


def can_transition(current: RunStage, target: RunStage) -> bool:
    return target in TRANSITIONS[current]


class RunStateMachine:
    """Tracks the current stage of one run and rejects illegal moves."""

    def __init__(self) -> None:
        self.stage = RunStage.PENDING
        self.history: list[RunStage] = [RunStage.PENDING]

    def advance(self, target: RunStage) -> RunStage:
        if not can_transition(self.stage, target):
            raise IllegalTransitionError(f"Cannot move from {self.stage.value} to {target.value}")
        self.stage = target
        self.history.append(target)
        return target
