import itertools
import re
import unicodedata
from collections import Counter
from functools import lru_cache

MIN_WORD_LENGTH = 3
TOP_WORDS_LIMIT = 50

# подряд идущие буквы любого алфавита; цифры и "_" разделяют
_LETTER_RUN_RE = re.compile(r"[^\W\d_]+")
_SCRIPT_PREFIXES = ("LATIN ", "CYRILLIC ", "FULLWIDTH LATIN ")

_ALLOWED_CONTROL = frozenset("\r\n\t")


@lru_cache(maxsize=4096)
def _is_latin_or_cyrillic(ch: str) -> bool:
    return unicodedata.name(ch, "").startswith(_SCRIPT_PREFIXES)


def extract_words(text: str) -> list[str]:
    words = []
    for run in _LETTER_RUN_RE.findall(text.casefold()):
        # буквы других алфавитов внутри серии тоже считаются разделителями
        for keep, chars in itertools.groupby(run, key=_is_latin_or_cyrillic):
            if not keep:
                continue
            word = "".join(chars)
            if len(word) >= MIN_WORD_LENGTH:
                words.append(word)
    return words


def word_frequency(text: str, limit: int = TOP_WORDS_LIMIT) -> dict[str, int]:
    if not isinstance(text, str) or not text:
        return {}
    counts = Counter(extract_words(text))
    # Counter.most_common сортирует устойчиво, а Counter хранит порядок вставки:
    # при равной частоте слова идут в порядке первого появления
    return dict(counts.most_common(limit))


def decode_text(raw: bytes) -> str | None:
    """None, если содержимое не похоже на текст."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if any(unicodedata.category(ch) == "Cc" and ch not in _ALLOWED_CONTROL for ch in text):
        return None
    return text
