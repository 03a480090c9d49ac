import logging
import random
from typing import Optional

from wordparty.errors import (
    AlreadyJoined,
    EmptyWord,
    GameInProgress,
    InvalidCharacters,
    NameRequired,
    NameTaken,
    NoWordsAvailable,
    NotAuthorized,
    RolesMissing,
    RoomFull,
)
from wordparty.models import (
    AWAITING_WORD,
    CUSTOM,
    ENDED,
    EXPLAINER,
    GUESSER,
    IN_ROUND,
    LOBBY,
    MAX_PLAYERS,
    ROLES,
    ChatEntry,
    Player,
    Room,
)
from .scheduler import RoundTimer
from .words import is_valid_custom_word, render_blanks

EXPLAINER_ANSWERS = ('yes', 'no', 'maybe', 'idk')
NOT_ENOUGH_PLAYERS = 'Not enough players. Game aborted.'


class RoomStateMachine:
    """Authoritative game logic for every room.

    Each public operation takes the room lock for its whole body, validates
    before mutating, and publishes its results through ``channel``. Timer
    ticks take the same lock, so no two operations on one room interleave.

    Rejected requests raise a ``GameError``; unauthorized callers raise
    ``NotAuthorized``, which the gateway drops silently.
    """

    def __init__(self, registry, words, channel, scheduler, logger=None,
                 round_seconds=300, extend_seconds=300, tick_seconds=1.0,
                 end_grace_seconds=2.0, rng=None):
        self.registry = registry
        self.words = words
        self.channel = channel
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger(__name__)
        self.round_seconds = round_seconds
        self.extend_seconds = extend_seconds
        self.tick_seconds = tick_seconds
        self.end_grace_seconds = end_grace_seconds
        self._rng = rng or random.Random()

    # ---- Lobby ----

    def create(self, connection_id, name, requested_code=None) -> Room:
        name = _clean_name(name)
        room = self.registry.create_room(requested_code)
        self.logger.info(f"[room-created] room={room.code} by={name!r} sid={connection_id}")
        self.join(room, connection_id, name)
        return room

    def check_create(self, name, requested_code=None) -> None:
        """Raise the error `create` would raise, without creating anything."""
        _clean_name(name)
        self.registry.check_code(requested_code)

    def check_join(self, room: Room, connection_id, name) -> None:
        """Raise the error `join` would raise, without joining."""
        name = _clean_name(name)
        with room.lock:
            if room.get_player(connection_id):
                raise AlreadyJoined()
            if room.get_player_by_name(name):
                raise NameTaken()
            if len(room.players) >= MAX_PLAYERS:
                raise RoomFull()
            if room.state != LOBBY:
                raise GameInProgress()

    def join(self, room: Room, connection_id, name) -> Room:
        name = _clean_name(name)
        with room.lock:
            self.check_join(room, connection_id, name)
            room.players.append(Player(connection_id=connection_id, name=name))
            if room.host_id is None:
                room.host_id = connection_id
            self.registry.bind(connection_id, room.code)
            self.channel.subscribe(connection_id, room.code)
            self.logger.info(f"[join] room={room.code} name={name!r} players={len(room.players)}")
            self.send_player_list(room)
        return room

    def leave(self, room: Room, connection_id) -> None:
        with room.lock:
            player = room.get_player(connection_id)
            if player is None:
                return
            was_host = room.host_id == connection_id
            player.ingame = False
            room.players.remove(player)
            if room.guesser_id == connection_id:
                room.guesser_id = None
            if room.explainer_id == connection_id:
                room.explainer_id = None
            self.registry.unbind(connection_id)
            self.channel.unsubscribe(connection_id, room.code)
            self.logger.info(f"[leave] room={room.code} name={player.name!r} players={len(room.players)}")

            if not room.players:
                room.host_id = None
                self._remove_room(room)
                return

            if was_host:
                lobby_player = next((p for p in room.players if not p.ingame), None)
                room.host_id = (lobby_player or room.players[0]).connection_id
                self.logger.info(f"[host-change] room={room.code} host={room.host.name!r}")
            self.send_player_list(room)

            if room.is_playing and len(room.players) < MAX_PLAYERS:
                self._stop_timer(room)
                room.state = ENDED
                self.channel.emit('gameAborted', {
                    'reason': NOT_ENOUGH_PLAYERS,
                    'word': room.word,
                    'difficulty': room.difficulty,
                }, to=room.code)
                self.logger.info(f"[abort] room={room.code} reason=not-enough-players")
                self._schedule_removal(room)

    def assign_role(self, room: Room, connection_id, target_name, role) -> None:
        with room.lock:
            if room.host_id != connection_id or room.state != LOBBY or role not in ROLES:
                raise NotAuthorized()
            target = room.get_player_by_name(target_name)
            if target is None:
                raise NotAuthorized()
            tid = target.connection_id
            if role == GUESSER:
                room.guesser_id = tid
                if room.explainer_id == tid:
                    room.explainer_id = None
            else:
                room.explainer_id = tid
                if room.guesser_id == tid:
                    room.guesser_id = None
            if len(room.players) == MAX_PLAYERS:
                other = next(p for p in room.players if p.connection_id != tid)
                if not room.guesser_id:
                    room.guesser_id = other.connection_id
                if not room.explainer_id:
                    room.explainer_id = other.connection_id
            self.logger.info(f"[roles] room={room.code} {target.name!r}={role}")
            self.send_player_list(room)

    def start(self, room: Room, connection_id) -> None:
        with room.lock:
            if room.host_id != connection_id or room.state != LOBBY:
                raise NotAuthorized()
            if not room.guesser_id or not room.explainer_id:
                self.channel.emit('errorMessage', {'message': RolesMissing.message}, to=connection_id)
                raise RolesMissing()
            if len(room.players) != MAX_PLAYERS:
                raise NotAuthorized()
            for p in room.players:
                p.ingame = True
            room.state = AWAITING_WORD
            room.word = None
            room.difficulty = None
            self.channel.emit('roundPreparing', {'role': GUESSER}, to=room.guesser_id)
            self.channel.emit('roundPreparing', {'role': EXPLAINER}, to=room.explainer_id)
            self.channel.emit('chooseWordMethod', to=room.explainer_id)
            self.channel.emit('waitingForWord', to=room.guesser_id)
            self.logger.info(f"[round-preparing] room={room.code}")
            self.send_player_list(room)

    # ---- Word selection ----

    def choose_custom_word(self, room: Room, connection_id, raw_word) -> str:
        with room.lock:
            self._require_explainer(room, connection_id)
            if not isinstance(raw_word, str) or not raw_word.strip():
                raise EmptyWord()
            word = raw_word.strip()
            if not is_valid_custom_word(word):
                raise InvalidCharacters()
            self._set_word(room, connection_id, word, CUSTOM)
            return room.difficulty

    def choose_random_word(self, room: Room, connection_id) -> str:
        with room.lock:
            self._require_explainer(room, connection_id)
            chosen = self.words.choose()
            if chosen is None:
                raise NoWordsAvailable()
            word, difficulty = chosen
            self._set_word(room, connection_id, word, difficulty)
            return room.difficulty

    def _require_explainer(self, room, connection_id):
        if room.state != AWAITING_WORD or room.explainer_id != connection_id:
            raise NotAuthorized()

    def _set_word(self, room, connection_id, word, difficulty):
        room.word = word
        room.difficulty = difficulty
        room.revealed.clear()
        room.hint_used = False
        self.channel.emit('wordChosen', {
            'by': room.get_player(connection_id).name,
            'blanks': render_blanks(word, room.revealed),
            'difficulty': difficulty,
        }, to=room.code)
        self.start_round(room)

    # ---- Round ----

    def start_round(self, room: Room) -> None:
        with room.lock:
            self._stop_timer(room)
            room.state = IN_ROUND
            room.remaining_seconds = self.round_seconds
            room.timer = RoundTimer(room.code)
            blanks = render_blanks(room.word, room.revealed)
            for p in room.players:
                if not p.ingame:
                    continue
                role = room.role_of(p.connection_id)
                payload = {
                    'role': role,
                    'blanks': blanks,
                    'secondsLeft': room.remaining_seconds,
                    'difficulty': room.difficulty,
                }
                if role == EXPLAINER:
                    payload['word'] = room.word
                self.channel.emit('gameStarted', payload, to=p.connection_id)
            self.channel.emit('blanksUpdate', {'blanks': blanks}, to=room.code)
            self.send_player_list(room)
            self.logger.info(
                f"[round-start] room={room.code} word_len={len(room.word)} "
                f"difficulty={room.difficulty} seconds={room.remaining_seconds}"
            )
            self.scheduler.spawn(self._run_countdown, room, room.timer)

    def _run_countdown(self, room: Room, timer: RoundTimer) -> None:
        while True:
            self.scheduler.sleep(self.tick_seconds)
            if not self.tick(room, timer):
                return

    def tick(self, room: Room, timer: Optional[RoundTimer] = None) -> bool:
        """Advance the countdown by one second. Returns False once the timer is dead."""
        with room.lock:
            timer = timer or room.timer
            if timer is None or timer.cancelled or room.timer is not timer or room.state != IN_ROUND:
                return False
            room.remaining_seconds -= 1
            self.channel.emit('timerUpdate', {'seconds': room.remaining_seconds}, to=room.code)
            if room.remaining_seconds > 0:
                return True
            self._stop_timer(room)
            room.state = ENDED
            self.channel.emit('timeUp', {'word': room.word, 'difficulty': room.difficulty}, to=room.code)
            self.logger.info(f"[timeup] room={room.code}")
            self._remove_room(room)
            return False

    def give_hint(self, room: Room, connection_id) -> Optional[int]:
        with room.lock:
            if (room.explainer_id != connection_id or room.state != IN_ROUND
                    or room.hint_used or not room.word):
                raise NotAuthorized()
            hidden = [i for i, ch in enumerate(room.word) if ch.isalpha() and i not in room.revealed]
            if not hidden:
                raise NotAuthorized()
            index = self._rng.choice(hidden)
            room.revealed[index] = None
            room.hint_used = True
            self.channel.emit('hintGiven', {
                'blanks': render_blanks(room.word, room.revealed),
                'index': index,
                'letter': room.word[index],
            }, to=room.code)
            self.logger.info(f"[hint] room={room.code} index={index}")
            return index

    def extend_time(self, room: Room, connection_id) -> int:
        with room.lock:
            if room.get_player(connection_id) is None:
                raise NotAuthorized()
            if room.timer is None or room.state != IN_ROUND or room.remaining_seconds <= 0:
                raise NotAuthorized()
            room.remaining_seconds += self.extend_seconds
            self.channel.emit('timerUpdate', {'seconds': room.remaining_seconds}, to=room.code)
            self.logger.info(f"[extend] room={room.code} seconds={room.remaining_seconds}")
            return room.remaining_seconds

    def submit_chat(self, room: Room, connection_id, text) -> bool:
        """Relay a chat line. Returns True if it was the winning guess."""
        with room.lock:
            player = room.get_player(connection_id)
            if player is None or not isinstance(text, str):
                raise NotAuthorized()
            entry = ChatEntry(player.name, text)
            room.chat.append(entry)
            self.channel.emit('chatMessage', entry.to_dict(), to=room.code)
            if (connection_id == room.guesser_id and room.state == IN_ROUND
                    and isinstance(room.word, str)
                    and text.strip().lower() == room.word.strip().lower()):
                self._resolve_win(room, player)
                return True
            return False

    def _resolve_win(self, room: Room, player: Player) -> None:
        self._stop_timer(room)
        room.state = ENDED
        self.channel.emit('gameWon', {
            'winner': player.name,
            'word': room.word,
            'difficulty': room.difficulty,
        }, to=room.code)
        self.logger.info(f"[win] room={room.code} winner={player.name!r}")
        self._schedule_removal(room)

    def explainer_answer(self, room: Room, connection_id, answer) -> None:
        with room.lock:
            if room.explainer_id != connection_id or answer not in EXPLAINER_ANSWERS:
                raise NotAuthorized()
            entry = ChatEntry(room.get_player(connection_id).name, answer)
            room.chat.append(entry)
            self.channel.emit('chatMessage', entry.to_dict(), to=room.code)

    def give_up(self, room: Room, connection_id, reason=None) -> None:
        with room.lock:
            player = room.get_player(connection_id)
            if player is None or not room.is_playing:
                raise NotAuthorized()
            self._stop_timer(room)
            room.state = ENDED
            self.channel.emit('gameAborted', {
                'by': player.name,
                'reason': reason,
                'word': room.word,
                'difficulty': room.difficulty,
            }, to=room.code)
            self.logger.info(f"[abort] room={room.code} by={player.name!r} reason={reason!r}")
            self._schedule_removal(room)

    # ---- Teardown ----

    def send_player_list(self, room: Room) -> None:
        self.channel.emit('playerList', room.player_list(), to=room.code)

    def _stop_timer(self, room: Room) -> None:
        if room.timer is not None:
            room.timer.cancel()
            room.timer = None

    def _schedule_removal(self, room: Room) -> None:
        self.scheduler.spawn(self._remove_later, room, self.end_grace_seconds)

    def _remove_later(self, room: Room, delay: float) -> None:
        self.scheduler.sleep(delay)
        with room.lock:
            self._remove_room(room)

    def _remove_room(self, room: Room) -> None:
        self._stop_timer(room)
        if self.registry.remove(room.code, room):
            self.channel.close(room.code)
            self.logger.info(f"[room-removed] room={room.code}")


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise NameRequired()
    return name.strip()
