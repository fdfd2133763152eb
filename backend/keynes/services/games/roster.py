from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    is_host: bool = False
    last_choice: Optional[float] = None

    @property
    def has_chosen(self) -> bool:
        return self.last_choice is not None

    def to_dict(self, reveal_choice: bool = True):
        data = {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'isHost': self.is_host,
            'hasChosen': self.has_chosen,
        }
        if reveal_choice:
            data['lastChoice'] = self.last_choice
        return data


class PlayerRoster:
    """Connection id -> Player for a single room.

    Iteration follows join order, which is also the order used to pick a
    new host when the current one leaves.
    """

    def __init__(self):
        self._players: Dict[str, Player] = {}

    def add(self, connection_id: str, name: str, is_host: bool = False) -> Player:
        player = Player(id=connection_id, name=name, is_host=is_host)
        self._players[connection_id] = player
        return player

    def remove(self, connection_id: str) -> Optional[Player]:
        return self._players.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[Player]:
        return self._players.get(connection_id)

    def host(self) -> Optional[Player]:
        for p in self._players.values():
            if p.is_host:
                return p
        return None

    def ensure_host(self) -> Optional[Player]:
        """Promote the earliest-joined player if nobody holds host.

        Returns the promoted player, or None when no promotion happened.
        """
        if not self._players or self.host() is not None:
            return None
        promoted = next(iter(self._players.values()))
        promoted.is_host = True
        return promoted

    def reset_choices(self) -> None:
        for p in self._players.values():
            p.last_choice = None

    def all_chosen(self) -> bool:
        return bool(self._players) and all(p.has_chosen for p in self._players.values())

    def players(self) -> List[Player]:
        return list(self._players.values())

    def __contains__(self, connection_id) -> bool:
        return connection_id in self._players

    def __iter__(self) -> Iterator[Player]:
        return iter(list(self._players.values()))

    def __len__(self) -> int:
        return len(self._players)
