import os
import random
from typing import Dict, List, Optional, Tuple

from wordparty.models import STANDARD, EASY, DIFFICULT

WORDLIST_FILES = {
    STANDARD: 'wordlist.txt',
    EASY: 'wordlist-easy.txt',
    DIFFICULT: 'wordlist-difficult.txt',
}

# Upper bounds of the draw r in [0, 1) for each pool
POOL_WEIGHTS = ((STANDARD, 0.90), (EASY, 0.95), (DIFFICULT, 1.0))

# Pools tried, in order, when the drawn one is empty
FALLBACK_ORDER = (DIFFICULT, STANDARD, EASY)


def render_blanks(word: str, revealed=()) -> str:
    """Mask a word for the guesser.

    Letters are shown as ``_`` unless their index is in ``revealed``; every
    other character (space, hyphen, apostrophe) is shown as-is. Positions
    are joined with single spaces, so ``"hi you"`` renders as
    ``"_ _   _ _ _"``.
    """
    revealed = set(revealed)
    out = []
    for i, ch in enumerate(word):
        if i in revealed or not ch.isalpha():
            out.append(ch)
        else:
            out.append('_')
    return ' '.join(out)


def is_valid_custom_word(word: str) -> bool:
    return any(ch.isalpha() for ch in word) and all(ch.isalpha() or ch in ' -' for ch in word)


def read_wordlist(path: str) -> List[str]:
    with open(path, encoding='utf-8') as fh:
        return [line.strip() for line in fh if line.strip()]


class WordSource:
    """The three read-only word pools, shared by every room."""

    def __init__(self, pools: Optional[Dict[str, List[str]]] = None, rng=None):
        pools = pools or {}
        self.pools: Dict[str, Tuple[str, ...]] = {
            name: tuple(pools.get(name) or ()) for name in WORDLIST_FILES
        }
        self._rng = rng or random.Random()

    @classmethod
    def from_directory(cls, directory: str, logger=None, rng=None) -> 'WordSource':
        pools = {}
        for name, filename in WORDLIST_FILES.items():
            path = os.path.join(directory, filename)
            try:
                pools[name] = read_wordlist(path)
            except OSError as exc:
                pools[name] = []
                if name == STANDARD and logger:
                    logger.warning(f"[words] could not load wordlist {path}: {exc}")
                continue
            if logger:
                logger.info(f"[words] loaded {len(pools[name])} words from {filename}")
        return cls(pools, rng=rng)

    def sizes(self) -> Dict[str, int]:
        return {name: len(words) for name, words in self.pools.items()}

    def pick_pool(self, r: float) -> Optional[str]:
        """Map a draw in [0, 1) to a non-empty pool name, or None if all are empty."""
        selected = DIFFICULT
        for name, upper in POOL_WEIGHTS:
            if r < upper:
                selected = name
                break
        for name in (selected,) + FALLBACK_ORDER:
            if self.pools[name]:
                return name
        return None

    def choose(self) -> Optional[Tuple[str, str]]:
        """Return ``(word, difficulty)`` or None when no pool has words."""
        pool = self.pick_pool(self._rng.random())
        if pool is None:
            return None
        return self._rng.choice(self.pools[pool]), pool
