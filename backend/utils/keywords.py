import re
from typing import List

_PUNCTUATION = re.compile(r"[.,!?;:()\"'`]")
MIN_KEYWORD_LENGTH = 3


def normalize_keyword(word: str) -> str:
    """Lowercase a token and strip the punctuation keywords never contain"""
    return _PUNCTUATION.sub("", word.lower())


def generate_keywords(text: str) -> List[str]:
    """Unique lowercase search tokens of a joke text, in order of appearance"""
    if not text:
        return []
    keywords = []
    seen = set()
    for word in text.lower().split():
        keyword = normalize_keyword(word)
        if len(keyword) >= MIN_KEYWORD_LENGTH and keyword not in seen:
            seen.add(keyword)
            keywords.append(keyword)
    return keywords
