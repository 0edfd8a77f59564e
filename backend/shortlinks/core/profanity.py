import logging
from importlib import resources
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

logger = logging.getLogger(__name__)


def parse_word_list(text: str) -> FrozenSet[str]:
    """One word per line; blank lines and '#' comments are skipped"""
    words = set()
    for line in text.splitlines():
        word = line.strip()
        if word and not word.startswith("#"):
            words.add(word)
    return frozenset(words)


class ProfanityFilter:
    """
    Immutable set of disallowed identifiers.

    Membership is exact and case-sensitive.
    """

    __slots__ = ("_words",)

    def __init__(self, words: Iterable[str] = ()):
        self._words = frozenset(words)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ProfanityFilter":
        words = parse_word_list(Path(path).read_text(encoding="utf-8"))
        logger.info(f"Loaded {len(words)} disallowed words from {path}")
        return cls(words)

    @classmethod
    def bundled(cls) -> "ProfanityFilter":
        """Filter over the word list shipped with the package"""
        word_list = resources.files("shortlinks") / "data" / "dirty_words.txt"
        return cls(parse_word_list(word_list.read_text(encoding="utf-8")))

    @classmethod
    def load(cls, path: Optional[str] = None) -> "ProfanityFilter":
        return cls.from_file(path) if path else cls.bundled()

    def contains(self, word: str) -> bool:
        return word in self._words

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._words)
