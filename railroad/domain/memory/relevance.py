from typing import Any, Iterable, List, Set
import json
import re


WORD_PATTERN = re.compile(r'\w+')


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens in order of appearance"""
    return WORD_PATTERN.findall(text.lower())


def content_text(content: Any) -> str:
    """Flatten record content into searchable text"""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    try:
        return json.dumps(content, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return str(content)


class RelevanceScorer:
    """Scores stored text against a query by keyword overlap"""

    def __init__(self, key_weight: float = 2.0, substring_boost: float = 0.3):
        self.key_weight = key_weight
        self.substring_boost = substring_boost

    def score(self, query: str, key: str, content: Any, tags: Iterable[str] = ()) -> float:
        """Relevance in [0, 1]; an empty query matches everything with score 0"""

        query_words: Set[str] = set(tokenize(query))
        if not query_words:
            return 0.0

        text = content_text(content)
        key_words = set(tokenize(key)) | {tag.lower() for tag in tags}
        content_words = set(tokenize(text))

        # Weight key and tag matches higher
        key_overlap = len(query_words & key_words)
        content_overlap = len(query_words & content_words)
        score = (key_overlap * self.key_weight + content_overlap) / len(query_words)

        if query.lower() in text.lower():
            score += self.substring_boost

        return min(score, 1.0)
