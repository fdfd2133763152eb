from dataclasses import dataclass, field
from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, List, Tuple

from .roster import Player


_CENT = Decimal('0.01')
# Wide enough for any finite float (309 integer digits) plus cents, so sums,
# products and differences of submissions never overflow or lose digits.
_CONTEXT = Context(prec=800, rounding=ROUND_HALF_UP, Emax=999999, Emin=-999999)


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(repr(float(value)))


def _round2_decimal(value) -> Decimal:
    value = _to_decimal(value)
    if not value.is_finite():
        return value
    with localcontext(_CONTEXT):
        return value.quantize(_CENT)


def round2(value) -> float:
    """Round half-up to two decimal places.

    Goes through the shortest repr so 2.675 rounds to 2.68 instead of
    inheriting the binary representation error. Non-finite input is
    returned unchanged.
    """
    return float(_round2_decimal(value))


@dataclass
class PlayerResult:
    id: str
    name: str
    choice: float
    diff: float

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'choice': self.choice, 'diff': self.diff}


@dataclass
class RoundOutcome:
    results: List[PlayerResult]
    average: float
    target: float
    min_diff: float
    winners: List[PlayerResult] = field(default_factory=list)

    @property
    def winner_ids(self) -> List[str]:
        return [w.id for w in self.winners]

    def to_payload(self):
        return {
            'results': [r.to_dict() for r in self.results],
            'average': self.average,
            'target': self.target,
            'winners': [{'id': w.id, 'name': w.name} for w in self.winners],
            'minDiff': self.min_diff,
        }


def score_round(players: Iterable[Player], multiplier: float = 0.8) -> RoundOutcome:
    """Compute the outcome of one round from final choices.

    Every player must already carry a choice; substitution of the default
    for missing submissions happens before this is called. Scores are not
    touched here, the caller credits each winner with one point.

    Arithmetic and tie detection run on decimals, so huge submissions
    neither overflow nor collapse distinct diffs into a tie.
    """
    entries: List[Tuple[str, str, float, Decimal]] = []
    for p in players:
        if p.last_choice is None:
            raise ValueError(f"player {p.id} has no choice to score")
        choice = float(p.last_choice)
        entries.append((p.id, p.name, choice, _to_decimal(choice)))
    if not entries:
        raise ValueError('cannot score a round without players')

    with localcontext(_CONTEXT):
        average = _round2_decimal(sum((d for _, _, _, d in entries), Decimal(0)) / len(entries))
        target = _round2_decimal(average * _to_decimal(multiplier))
        diffs = [_round2_decimal(abs(d - target)) for _, _, _, d in entries]
    min_diff = min(diffs)

    results = [PlayerResult(pid, name, choice, float(diff)) for (pid, name, choice, _), diff in zip(entries, diffs)]
    winners = [r for r, diff in zip(results, diffs) if diff == min_diff]
    return RoundOutcome(results=results, average=float(average), target=float(target),
                        min_diff=float(min_diff), winners=winners)


def final_standings(players: Iterable[Player]):
    """Return (sorted players, final winners) for the end-of-game screen.

    The sort is stable, so tied players keep their roster order.
    """
    ranked = sorted(players, key=lambda p: p.score, reverse=True)
    if not ranked:
        return [], []
    max_score = ranked[0].score
    return ranked, [p for p in ranked if p.score == max_score]
