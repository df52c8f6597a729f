"""Auction contract finite state machine used by the simulated ledger."""

from __future__ import annotations

from enum import Enum


class ContractState(str, Enum):
    OPEN = "open"
    ENDED = "ended"


class ContractEvent(str, Enum):
    AUCTION_ENDED = "auction_ended"
    RESET = "reset"
    TIMER_STARTED = "timer_started"


_TRANSITIONS = {
    (ContractState.OPEN, ContractEvent.AUCTION_ENDED): ContractState.ENDED,
    (ContractState.OPEN, ContractEvent.RESET): ContractState.OPEN,
    (ContractState.OPEN, ContractEvent.TIMER_STARTED): ContractState.OPEN,
    (ContractState.ENDED, ContractEvent.RESET): ContractState.OPEN,
    (ContractState.ENDED, ContractEvent.TIMER_STARTED): ContractState.OPEN,
}


def transition(current: ContractState, event: ContractEvent) -> ContractState:
    try:
        return _TRANSITIONS[(current, event)]
    except KeyError as exc:
        raise ValueError(f"invalid transition from {current} via {event}") from exc
