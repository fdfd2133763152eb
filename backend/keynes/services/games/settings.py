from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class GameSettings:
    """Process-wide game constants, fixed when the app is created."""

    input_duration: int = 60
    results_duration: int = 15
    default_choice: float = 50.0
    target_multiplier: float = 0.8
    initial_average: float = 50.0
    room_code_length: int = 5

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'GameSettings':
        return cls(
            input_duration=int(config.get('INPUT_DURATION_SEC', 60)),
            results_duration=int(config.get('RESULTS_DURATION_SEC', 15)),
            default_choice=float(config.get('DEFAULT_CHOICE', 50.0)),
            target_multiplier=float(config.get('TARGET_MULTIPLIER', 0.8)),
            initial_average=float(config.get('INITIAL_ROUND_AVERAGE', 50.0)),
            room_code_length=int(config.get('ROOM_CODE_LENGTH', 5)),
        )
