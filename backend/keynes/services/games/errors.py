class GameError(Exception):
    """Base class for errors reported back to the requesting connection."""

    message = 'Game error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotJoinable(GameError):
    message = 'Cannot join the room. Check the code or the game has already started.'


class InvalidGameOptions(GameError):
    message = 'Invalid game options.'
