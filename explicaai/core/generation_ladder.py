"""Generation Ladder — transition table of the explanation state machine.

Invariants:
    - TRANSITIONS is the only source of legal (state, event) pairs
    - next_state() raises ValueError for any pair not in the table
    - Terminal states have no outgoing transitions
    - At most three ATTEMPT_* states are visited per run

Design Decisions:
    - Table lives in core (pure) so the orchestrator loop contains no
      branching on tier order; adding a tier is a table edit
"""

from types import MappingProxyType

from explicaai.core.domain_types import (
    GenerationEvent as Event,
    GenerationState as State,
    PromptVariant,
)

TRANSITIONS = MappingProxyType({
    (State.IDLE, Event.START): State.ATTEMPT_NORMAL,
    (State.IDLE, Event.CANCEL): State.CANCELLED,
    (State.ATTEMPT_NORMAL, Event.VALID): State.DONE,
    (State.ATTEMPT_NORMAL, Event.INVALID): State.ATTEMPT_STRICT,
    (State.ATTEMPT_NORMAL, Event.CANCEL): State.CANCELLED,
    (State.ATTEMPT_STRICT, Event.VALID): State.DONE,
    (State.ATTEMPT_STRICT, Event.INVALID): State.ATTEMPT_FALLBACK,
    (State.ATTEMPT_STRICT, Event.CANCEL): State.CANCELLED,
    (State.ATTEMPT_FALLBACK, Event.VALID): State.DONE,
    (State.ATTEMPT_FALLBACK, Event.INVALID): State.DONE_DEGRADED,
    (State.ATTEMPT_FALLBACK, Event.CANCEL): State.CANCELLED,
})

VARIANT_FOR_STATE = MappingProxyType({
    State.ATTEMPT_NORMAL: PromptVariant.NORMAL,
    State.ATTEMPT_STRICT: PromptVariant.STRICT,
    State.ATTEMPT_FALLBACK: PromptVariant.FALLBACK,
})

TERMINAL_STATES = frozenset({State.DONE, State.DONE_DEGRADED, State.CANCELLED})


def next_state(state: State, event: Event) -> State:
    """Apply one event. Illegal pairs are programming errors."""
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(
            f"Illegal transition: {state.value} on {event.value}"
        ) from None


def is_terminal(state: State) -> bool:
    return state in TERMINAL_STATES


def is_attempt(state: State) -> bool:
    return state in VARIANT_FOR_STATE
