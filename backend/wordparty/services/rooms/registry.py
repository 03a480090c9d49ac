import random
import re
import string
import threading
from typing import Dict, List, Optional

from wordparty.errors import CodeTaken, InvalidCode
from wordparty.models import Room

CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_RE = re.compile(r'^[A-Z0-9]+$')


def normalize_code(code) -> str:
    """Uppercase a player-supplied room code, raising InvalidCode if malformed."""
    if not isinstance(code, str):
        raise InvalidCode()
    code = code.strip().upper()
    if not _CODE_RE.match(code):
        raise InvalidCode()
    return code


class RoomRegistry:
    """Owns the code -> Room mapping and the connection -> code index.

    Callers holding a room lock may call into the registry; the registry
    never takes a room lock.
    """

    def __init__(self, code_length: int = 4, rng=None):
        self.code_length = code_length
        self._rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._by_connection: Dict[str, str] = {}
        self._lock = threading.Lock()

    def generate_code(self) -> str:
        return ''.join(self._rng.choices(CODE_ALPHABET, k=self.code_length))

    def check_code(self, requested_code) -> Optional[str]:
        """Normalize a requested code and make sure it is free. None means "generate"."""
        if not requested_code:
            return None
        code = normalize_code(requested_code)
        with self._lock:
            if code in self._rooms:
                raise CodeTaken()
        return code

    def create_room(self, requested_code=None) -> Room:
        code = normalize_code(requested_code) if requested_code else None
        with self._lock:
            if code:
                if code in self._rooms:
                    raise CodeTaken()
            else:
                code = self.generate_code()
                while code in self._rooms:
                    code = self.generate_code()
            room = Room(code=code)
            self._rooms[code] = room
            return room

    def find_by_code(self, code) -> Optional[Room]:
        if not isinstance(code, str):
            return None
        with self._lock:
            return self._rooms.get(code.strip().upper())

    def find_by_connection(self, connection_id) -> Optional[Room]:
        with self._lock:
            code = self._by_connection.get(connection_id)
            return self._rooms.get(code) if code else None

    def bind(self, connection_id, code) -> None:
        with self._lock:
            self._by_connection[connection_id] = code

    def unbind(self, connection_id) -> None:
        with self._lock:
            self._by_connection.pop(connection_id, None)

    def remove(self, code, room: Optional[Room] = None) -> bool:
        """Delete a room. Idempotent.

        When ``room`` is given, only that exact instance is removed, so a
        late teardown cannot delete a newer room that reused the code.
        """
        with self._lock:
            current = self._rooms.get(code)
            if current is None or (room is not None and current is not room):
                return False
            del self._rooms[code]
            for cid in [c for c, k in self._by_connection.items() if k == code]:
                del self._by_connection[cid]
            return True

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code):
        return self.find_by_code(code) is not None
