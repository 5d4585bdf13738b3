"""
Aethr — Token Extractor

Turns free-text queries and raw error output into FTS5 match expressions.
Catches what a naive MATCH would choke on: stray quotes, FTS operators,
punctuation-heavy error lines.

No LLM calls. Entirely heuristic, runs in microseconds.
"""
import re
from typing import List

# Words that carry no signal when searching for a fix
ERROR_STOPWORDS = frozenset({
    "the", "and", "for", "not", "was", "error", "found",
    "command", "no", "such", "file", "cannot",
})

MAX_ERROR_TOKENS = 5
MIN_TOKEN_LENGTH = 3

_QUOTE_CHARS = "\"'`"
_NON_TOKEN_CHARS = re.compile(r"[^\w\-]+", re.UNICODE)
_TOKEN_CHARS = re.compile(r"^[\w\-]+$", re.UNICODE)
_WORD_CHAR = re.compile(r"\w", re.UNICODE)


def history_query_tokens(query: str) -> List[str]:
    """Whitespace tokens with quote characters stripped."""
    tokens = []
    for raw in query.split():
        token = raw.translate({ord(c): None for c in _QUOTE_CHARS})
        if token:
            tokens.append(token)
    return tokens


def brain_query_tokens(query: str) -> List[str]:
    """Whitespace tokens longer than two chars made only of alnum, '-' or '_'."""
    return [
        t for t in query.split()
        if len(t) >= MIN_TOKEN_LENGTH and _TOKEN_CHARS.match(t)
    ]


def extract_error_tokens(error_text: str, max_tokens: int = MAX_ERROR_TOKENS) -> List[str]:
    """
    Salient tokens from an error message: split on anything that is not
    alnum, '-' or '_'; keep tokens longer than two chars that are not
    stopwords; cap at max_tokens, in order of appearance.
    """
    tokens = []
    for t in _NON_TOKEN_CHARS.split(error_text):
        if len(t) < MIN_TOKEN_LENGTH:
            continue
        if t.lower() in ERROR_STOPWORDS:
            continue
        tokens.append(t)
        if len(tokens) >= max_tokens:
            break
    return tokens


def build_fts_or_query(tokens: List[str]) -> str:
    """
    OR-combine tokens into an FTS5 expression. Each token is quoted as a
    string literal so operators and punctuation are never interpreted.
    Returns "" when there is nothing to match.
    """
    quoted = []
    for t in tokens:
        cleaned = t.replace('"', "")
        # Pure punctuation tokenizes to nothing in FTS5
        if _WORD_CHAR.search(cleaned):
            quoted.append(f'"{cleaned}"')
    return " OR ".join(quoted)
