"""Rules for the word-order and memory mini-games."""
import random
from dataclasses import dataclass, field

from course_tutor.models import MemoryData, WordOrderData


def words_from_sentence(sentence: str) -> list[str]:
    return sentence.strip().split(" ")


def shuffled_words(data: WordOrderData, rng: random.Random | None = None) -> list[str]:
    words = list(data.words)
    (rng or random).shuffle(words)
    return words


def check_word_order(data: WordOrderData, selected: list[str]) -> bool:
    """True when the chosen words, space-joined, reproduce the sentence."""
    return " ".join(selected) == data.sentence


@dataclass(frozen=True)
class MemoryCard:
    id: str
    text: str
    pair_id: int
    kind: str  # "term" or "definition"


def build_memory_deck(data: MemoryData, rng: random.Random | None = None) -> list[MemoryCard]:
    cards = []
    for i, pair in enumerate(data.pairs):
        cards.append(MemoryCard(id=f"t-{i}", text=pair.term, pair_id=i, kind="term"))
        cards.append(MemoryCard(id=f"d-{i}", text=pair.definition, pair_id=i, kind="definition"))
    (rng or random).shuffle(cards)
    return cards


def is_match(a: MemoryCard, b: MemoryCard) -> bool:
    return a.pair_id == b.pair_id and a.kind != b.kind


@dataclass
class MemoryBoard:
    """Flip state for one memory game.

    At most two cards are face up. ``flip`` returns None while waiting for
    the second card, then True for a match or False for a miss; either way
    the face-up cards are cleared.
    """

    cards: list[MemoryCard]
    flipped: list[str] = field(default_factory=list)
    matched: set[str] = field(default_factory=set)
    attempts: int = 0

    @classmethod
    def from_data(cls, data: MemoryData, rng: random.Random | None = None) -> "MemoryBoard":
        return cls(cards=build_memory_deck(data, rng))

    def card(self, card_id: str) -> MemoryCard:
        for c in self.cards:
            if c.id == card_id:
                return c
        raise KeyError(card_id)

    def flip(self, card_id: str) -> bool | None:
        if card_id in self.flipped or card_id in self.matched:
            return None
        self.card(card_id)
        self.flipped.append(card_id)
        if len(self.flipped) < 2:
            return None
        first, second = (self.card(cid) for cid in self.flipped)
        self.flipped = []
        self.attempts += 1
        if is_match(first, second):
            self.matched.update({first.id, second.id})
            return True
        return False

    @property
    def is_finished(self) -> bool:
        return bool(self.cards) and len(self.matched) == len(self.cards)
