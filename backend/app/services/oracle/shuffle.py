"""
Shuffle engine - traditional three-pile fortune telling shuffle.

The Fisher-Yates pass already produces a uniform permutation. The pile cut is
a fixed re-ordering and the final cut is one more uniform rotation, so the top
card of the result stays uniformly distributed over the deck.
"""

import random
from typing import List, Optional, Sequence, TypeVar

from app.services.oracle.deck import ORACLE_CARDS, OracleCard

T = TypeVar("T")


def fisher_yates(items: Sequence[T], rng: random.Random) -> List[T]:
    """Uniform in-place random-swap shuffle over a copy of items."""
    cards = list(items)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def three_pile_cut(items: Sequence[T]) -> List[T]:
    """
    Split into piles of n//3, n//3 and the remainder, then stack them
    as pile3 + pile1 + pile2.
    """
    pile_size = len(items) // 3
    pile1 = list(items[:pile_size])
    pile2 = list(items[pile_size:pile_size * 2])
    pile3 = list(items[pile_size * 2:])
    return pile3 + pile1 + pile2


def rotate(items: Sequence[T], offset: int) -> List[T]:
    """Cyclic rotation: items[offset:] + items[:offset]."""
    return list(items[offset:]) + list(items[:offset])


class ShuffleEngine:
    """Card selection over a fixed deck with an injectable random source."""

    def __init__(
        self,
        deck: Sequence[OracleCard] = ORACLE_CARDS,
        rng: Optional[random.Random] = None
    ):
        if not deck:
            raise ValueError("Cannot shuffle an empty deck")
        self.deck = tuple(deck)
        self.rng = rng or random.Random()

    def shuffle(self) -> List[OracleCard]:
        """
        Full shuffle ceremony.

        1. Start from the declared deck order
        2. Fisher-Yates shuffle
        3. Three-pile cut, reassembled pile3 + pile1 + pile2
        4. Final cut at a uniformly random point

        Returns:
            A permutation of the whole deck
        """
        cards = fisher_yates(self.deck, self.rng)
        cards = three_pile_cut(cards)
        cut_point = self.rng.randrange(len(cards))
        return rotate(cards, cut_point)

    def draw(self) -> OracleCard:
        """Top card of a fresh shuffle."""
        return self.shuffle()[0]

    def draw_single(self) -> OracleCard:
        """One uniformly random card, without the shuffle ceremony."""
        return self.deck[self.rng.randrange(len(self.deck))]
