"""
Operation State Machines

Named states and allowed transitions for analyze, generate and
send-for-signature. The orchestrator advances an OperationTrace as it
goes, so the path taken is visible in results and tests.
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, List

logger = logging.getLogger(__name__)


class AnalyzeState(Enum):
    IDLE = "idle"
    TRYING_ENDPOINT = "trying-endpoint"
    DONE = "done"
    ANALYZE_FAILED = "analyze-failed"


class GenerateState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    SAVED = "saved"
    NO_ARTIFACT = "no-artifact"
    WRITE_FAILED = "write-failed"
    GENERATE_FAILED = "generate-failed"


class SendState(Enum):
    IDLE = "idle"
    RESOLVING_FILE = "resolving-file"
    UPLOADING = "uploading"
    SENDING = "sending"
    SENT = "sent"
    MOCKED = "mocked"
    SEND_FAILED = "send-failed"


TRANSITIONS: Dict[Enum, FrozenSet[Enum]] = {
    AnalyzeState.IDLE: frozenset({AnalyzeState.TRYING_ENDPOINT, AnalyzeState.ANALYZE_FAILED}),
    # Moving to the next candidate re-enters trying-endpoint
    AnalyzeState.TRYING_ENDPOINT: frozenset({
        AnalyzeState.TRYING_ENDPOINT, AnalyzeState.DONE, AnalyzeState.ANALYZE_FAILED,
    }),

    GenerateState.IDLE: frozenset({GenerateState.ANALYZING, GenerateState.GENERATING}),
    GenerateState.ANALYZING: frozenset({GenerateState.GENERATING}),
    GenerateState.GENERATING: frozenset({
        GenerateState.SAVED, GenerateState.NO_ARTIFACT,
        GenerateState.WRITE_FAILED, GenerateState.GENERATE_FAILED,
    }),

    SendState.IDLE: frozenset({SendState.RESOLVING_FILE}),
    SendState.RESOLVING_FILE: frozenset({SendState.UPLOADING, SendState.SENDING, SendState.SEND_FAILED}),
    SendState.UPLOADING: frozenset({SendState.SENDING, SendState.SEND_FAILED}),
    SendState.SENDING: frozenset({SendState.SENT, SendState.MOCKED, SendState.SEND_FAILED}),
}

TERMINAL_STATES = frozenset({
    AnalyzeState.DONE, AnalyzeState.ANALYZE_FAILED,
    GenerateState.SAVED, GenerateState.NO_ARTIFACT,
    GenerateState.WRITE_FAILED, GenerateState.GENERATE_FAILED,
    SendState.SENT, SendState.MOCKED, SendState.SEND_FAILED,
})


class InvalidTransition(RuntimeError):
    pass


class OperationTrace:
    """
    Records the states one operation passes through.

    Usage:
        trace = OperationTrace('generate', GenerateState.IDLE)
        trace.advance(GenerateState.GENERATING)
    """

    def __init__(self, operation: str, initial: Enum):
        self.operation = operation
        self.history: List[Enum] = [initial]

    @property
    def state(self) -> Enum:
        return self.history[-1]

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: Enum) -> Enum:
        allowed = TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            raise InvalidTransition(
                f"{self.operation}: cannot move from {self.state.value} to {target.value}"
            )
        logger.debug(f"[{self.operation}] {self.state.value} -> {target.value}")
        self.history.append(target)
        return target

    def to_list(self) -> List[str]:
        return [s.value for s in self.history]
