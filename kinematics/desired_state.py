"""
desired_state.py
----------------
Editable copy of the state vector for interactive panels.

A panel edits ``DesiredState.values`` freely; nothing moves until
``commit`` sends the vector to the controller through ``chain.move``. The
buffer is overwritten from the chain's authoritative state after every
applied update and after every commit, never the other way round.
"""
from __future__ import annotations

from typing import Callable

from kinematics.errors import StateLengthError
from kinematics.kinematics_chain import KinematicsChain, State


class DesiredState:
    """Two-buffer bridge between a UI and a KinematicsChain."""

    def __init__(self, chain: KinematicsChain) -> None:
        self._chain = chain
        self.values: State = chain.state
        self._unsubscribe: Callable[[], None] = chain.subscribe(self._resync)

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def set(self, index: int, value: float) -> None:
        """Edit one entry of the desired vector."""
        if not 0 <= index < len(self.values):
            raise IndexError(f"State index {index} out of range (chain has {len(self.values)} joints)")
        self.values[index] = float(value)

    def set_all(self, values: State) -> None:
        if len(values) != len(self.values):
            raise StateLengthError(len(self.values), len(values))
        self.values = [float(v) for v in values]

    @property
    def dirty(self) -> bool:
        """True while the desired vector differs from the authoritative one."""
        return self.values != self._chain.state

    def commit(self) -> State:
        """Send the desired vector to the controller and drop the local edits.

        Returns the vector that was sent.
        """
        sent = list(self.values)
        self._chain.move(sent)
        self._resync(self._chain.state)
        return sent

    def close(self) -> None:
        """Stop following the chain's updates."""
        self._unsubscribe()

    def _resync(self, state: State) -> None:
        self.values = list(state)
