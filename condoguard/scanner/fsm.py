# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Transition Table — config-driven finite state machine.

Reads transition rules from a dict or YAML file and answers
"where does event E take state S". Holds no state of its own; the
ScanSession owns the current state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

logger = logging.getLogger("condoguard.fsm")


class InvalidTransitionError(Exception):
    """Raised when an FSM transition is not permitted."""
    pass


class TransitionTable:
    """
    Transition rules loaded from configuration:
        states: [idle, scanning, accepted, rejected]
        initial_state: idle
        transitions:
          - from: idle
            event: START
            to: scanning
    """

    def __init__(self, config: Dict[str, Any]) -> None:
        self._states: List[str] = list(config.get("states", []))
        self._initial_state: str = config.get(
            "initial_state", self._states[0] if self._states else "idle",
        )
        self._lookup: Dict[Tuple[str, str], str] = {}
        for t in config.get("transitions", []):
            for endpoint in (t["from"], t["to"]):
                if endpoint not in self._states:
                    raise ValueError(f"Transition references unknown state '{endpoint}'")
            self._lookup[(t["from"], t["event"])] = t["to"]

    @classmethod
    def from_yaml(cls, path: str | Path) -> TransitionTable:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
        return cls(config)

    @property
    def states(self) -> List[str]:
        return list(self._states)

    @property
    def initial_state(self) -> str:
        return self._initial_state

    def transition(self, current_state: str, event_type: str) -> str:
        """
        Compute the next state given current state and event type.

        Raises InvalidTransitionError if no matching rule exists.
        """
        key = (current_state, event_type)
        if key not in self._lookup:
            raise InvalidTransitionError(
                f"No transition from state '{current_state}' "
                f"on event '{event_type}'"
            )
        next_state = self._lookup[key]
        logger.debug("FSM transition: %s -[%s]-> %s", current_state, event_type, next_state)
        return next_state

    def get_valid_events(self, current_state: str) -> List[str]:
        return [event for (state, event) in self._lookup if state == current_state]
