class GameError(Exception):
    """Base class for rejected requests.

    ``message`` is shown to the player next to the control that triggered it.
    """

    message = 'Server error'

    def __init__(self, message=None):
        if message:
            self.message = message
        super().__init__(self.message)


class InvalidCode(GameError):
    message = 'Room code may only contain letters and numbers.'


class CodeTaken(GameError):
    message = 'This room code is already taken!'


class RoomNotFound(GameError):
    message = 'No game found with that code!'


class NameRequired(GameError):
    message = 'Name required'


class NameTaken(GameError):
    message = 'Name already taken.'


class RoomFull(GameError):
    message = 'This room is already full (max 2 players).'


class AlreadyJoined(GameError):
    message = 'You are already in this game.'


class GameInProgress(GameError):
    message = 'This game is not in the lobby.'


class NotAuthorized(GameError):
    """Wrong role or not host. Never surfaced to the client."""

    message = 'Not allowed.'


class RolesMissing(GameError):
    message = 'Please assign Guesser and Explainer first.'


class EmptyWord(GameError):
    message = 'Please enter a word.'


class InvalidCharacters(GameError):
    message = 'Invalid word.'


class NoWordsAvailable(GameError):
    message = 'No words available.'
