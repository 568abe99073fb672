"""Text analysis for the search index.

Both analyzers share one tokenizer: text is lowercased and split into word
runs, and every run of CJK characters (Han, Hiragana, Katakana, Hangul) is
turned into overlapping bigrams, so ``토스페이먼츠`` becomes ``토스``,
``스페``, ``페이``, ``이먼`` and ``먼츠``. Runs in other scripts stay whole.

At indexing time every token is additionally expanded into its front edge
n-grams (length 1 to 10), which makes prefix queries such as ``pay`` match
``payment``. Tokens longer than ten characters are also kept whole so that
they can still be matched exactly. Queries are never n-grammed.
"""

import re
from collections.abc import Iterator

EDGE_NGRAM_MIN = 1
EDGE_NGRAM_MAX = 10

_CJK_CHARS = (
    "\u1100-\u11ff"  # Hangul Jamo
    "\u3040-\u309f"  # Hiragana
    "\u30a0-\u30ff"  # Katakana
    "\u3130-\u318f"  # Hangul Compatibility Jamo
    "\u31f0-\u31ff"  # Katakana Phonetic Extensions
    "\u3400-\u4dbf"  # CJK Extension A
    "\u4e00-\u9fff"  # CJK Unified Ideographs
    "\ua960-\ua97f"  # Hangul Jamo Extended-A
    "\uac00-\ud7af"  # Hangul Syllables
    "\ud7b0-\ud7ff"  # Hangul Jamo Extended-B
    "\uf900-\ufaff"  # CJK Compatibility Ideographs
    "\uff66-\uff9f"  # Halfwidth Katakana
    "\U00020000-\U0002fa1f"  # CJK Extensions B-F and supplement
)

_WORD_RE = re.compile(r"\w+")
_SCRIPT_RUN_RE = re.compile(f"[{_CJK_CHARS}]+|[^{_CJK_CHARS}]+")
_CJK_RUN_RE = re.compile(f"[{_CJK_CHARS}]+")


def _cjk_bigrams(run: str) -> Iterator[str]:
    if len(run) == 1:
        yield run
        return
    for start in range(len(run) - 1):
        yield run[start : start + 2]


def tokenize(text: str) -> list[str]:
    """Split text into lowercase tokens with CJK bigrams.

    Args:
        text: Raw field or query text.

    Returns:
        Tokens in text order, duplicates kept.
    """
    tokens: list[str] = []
    for word in _WORD_RE.findall(text.lower()):
        for run in _SCRIPT_RUN_RE.findall(word):
            if _CJK_RUN_RE.fullmatch(run):
                tokens.extend(_cjk_bigrams(run))
            else:
                tokens.append(run)
    return tokens


def edge_ngrams(token: str, min_size: int = EDGE_NGRAM_MIN, max_size: int = EDGE_NGRAM_MAX) -> list[str]:
    """Return the front edge n-grams of a token.

    Tokens longer than ``max_size`` only contribute their prefixes up to
    ``max_size`` characters; the full token is not emitted.
    """
    return [token[:size] for size in range(min_size, min(len(token), max_size) + 1)]


def analyze_for_index(text: str) -> list[str]:
    """Index-time analyzer: tokenizer followed by edge n-grams."""
    terms: list[str] = []
    for token in tokenize(text):
        terms.extend(edge_ngrams(token))
        if len(token) > EDGE_NGRAM_MAX:
            terms.append(token)
    return terms


def analyze_for_query(text: str) -> list[str]:
    """Query-time analyzer: tokenizer only, first occurrence of each term kept."""
    return list(dict.fromkeys(tokenize(text)))


def auto_fuzziness(term: str) -> int:
    """Return the edit distance allowed for a term of this length."""
    if len(term) <= 2:
        return 0
    if len(term) <= 5:
        return 1
    return 2


def edit_distance(left: str, right: str, limit: int) -> int:
    """Levenshtein distance between two strings, bounded by ``limit``.

    Returns ``limit + 1`` as soon as the distance is known to exceed ``limit``.
    """
    if abs(len(left) - len(right)) > limit:
        return limit + 1

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        if min(current) > limit:
            return limit + 1
        previous = current
    return min(previous[-1], limit + 1)
