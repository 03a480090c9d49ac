"""Room domain services: registry, state machine, word pools and timers.

Everything here is transport-agnostic; Socket.IO is only reached through
the ``RoomChannel`` and ``TaskScheduler`` handed in by the app factory.
"""
from dataclasses import dataclass
from typing import Optional

from .registry import RoomRegistry
from .scheduler import PresenceSweeper
from .state_machine import RoomStateMachine
from .words import WordSource


@dataclass
class GameServices:
    registry: RoomRegistry
    words: WordSource
    machine: RoomStateMachine
    sweeper: Optional[PresenceSweeper] = None
