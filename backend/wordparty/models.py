import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Room states
LOBBY = 'lobby'
AWAITING_WORD = 'awaiting-word'
IN_ROUND = 'in-round'
ENDED = 'ended'

# Roles
GUESSER = 'guesser'
EXPLAINER = 'explainer'
ROLES = (GUESSER, EXPLAINER)

# Difficulty labels
STANDARD = 'standard'
EASY = 'easy'
DIFFICULT = 'difficult'
CUSTOM = 'custom'

MAX_PLAYERS = 2


@dataclass
class Player:
    connection_id: str
    name: str
    ingame: bool = False


@dataclass
class ChatEntry:
    sender: str
    text: str

    def to_dict(self):
        return {'from': self.sender, 'text': self.text}


@dataclass
class Room:
    code: str
    players: List[Player] = field(default_factory=list)
    host_id: Optional[str] = None
    state: str = LOBBY
    guesser_id: Optional[str] = None
    explainer_id: Optional[str] = None
    word: Optional[str] = None
    # dict keys keep insertion order; values unused
    revealed: Dict[int, None] = field(default_factory=dict)
    hint_used: bool = False
    difficulty: Optional[str] = None
    remaining_seconds: int = 0
    chat: List[ChatEntry] = field(default_factory=list)
    timer: Optional[object] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def get_player(self, connection_id):
        for p in self.players:
            if p.connection_id == connection_id:
                return p
        return None

    def get_player_by_name(self, name):
        for p in self.players:
            if p.name == name:
                return p
        return None

    def role_of(self, connection_id):
        if connection_id is None:
            return None
        if connection_id == self.guesser_id:
            return GUESSER
        if connection_id == self.explainer_id:
            return EXPLAINER
        return None

    @property
    def host(self):
        return self.get_player(self.host_id) if self.host_id else None

    @property
    def is_playing(self):
        return self.state in (AWAITING_WORD, IN_ROUND)

    def player_list(self):
        """Payload of the ``playerList`` broadcast."""
        host = self.host
        return {
            'players': [
                {
                    'name': p.name,
                    'ingame': bool(p.ingame),
                    'role': self.role_of(p.connection_id),
                    'host': p.connection_id == self.host_id,
                }
                for p in self.players
            ],
            'hostName': host.name if host else None,
        }

    def to_dict(self):
        payload = self.player_list()
        payload.update({
            'code': self.code,
            'state': self.state,
            'difficulty': self.difficulty,
            'hintUsed': self.hint_used,
            'secondsLeft': self.remaining_seconds if self.state == IN_ROUND else None,
            'chatLength': len(self.chat),
        })
        return payload
