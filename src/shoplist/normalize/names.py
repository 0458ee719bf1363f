"""Ingredient name normalization into dedup match keys."""

import re

ARTICLES = ("a", "an", "the")

MODIFIERS = (
    "fresh",
    "dried",
    "frozen",
    "organic",
    "large",
    "medium",
    "small",
    "whole",
)

# Singular words that end in "s"
SINGULAR_EXCEPTIONS = frozenset(
    {
        "asparagus",
        "bass",
        "citrus",
        "couscous",
        "cress",
        "molasses",
        "hummus",
        "octopus",
        "swiss",
        "watercress",
        "lemongrass",
        "schnapps",
        "series",
        "species",
        "hibiscus",
    }
)

_ARTICLE_RE = re.compile(rf"^(?:{'|'.join(ARTICLES)})\s+")
# Whole words only; hyphenated compounds such as "whole-wheat" are kept
_MODIFIER_RE = re.compile(rf"(?<![\w-])(?:{'|'.join(MODIFIERS)})(?![\w-])")
_PUNCTUATION_RE = re.compile(r"[^\w\s'-]")
_ES_AFTER_RE = re.compile(r"(?:sses|xes|zzes|ches|shes|oes)$")


def singularize(word: str) -> str:
    """
    Minimal suffix-based singularization.

    - "berries" -> "berry"
    - "tomatoes", "peaches", "glasses" -> drop "es"
    - "onions" -> "onion" (trailing "s" after a letter)
    """
    if len(word) <= 3 or word in SINGULAR_EXCEPTIONS or word.endswith(("ss", "us", "is")):
        return word
    if word.endswith("ies"):
        return word[:-3] + "y"
    if _ES_AFTER_RE.search(word):
        return word[:-2]
    if word.endswith("s") and word[-2].isalpha():
        return word[:-1]
    return word


def normalize_ingredient_name(name: str) -> str:
    """
    Reduce an ingredient name to its match key.

    - Lowercase and trim
    - Drop one leading article ("a", "an", "the")
    - Remove modifier words (fresh, dried, large, ...)
    - Singularize the last word

    A name made only of modifiers keeps its lowercased form so it still
    gets a key of its own.
    """
    if not name:
        return ""

    base = " ".join(_PUNCTUATION_RE.sub(" ", name.lower()).split())
    key = _ARTICLE_RE.sub("", base, count=1)
    key = " ".join(_MODIFIER_RE.sub(" ", key).split())

    if not key:
        return base

    words = key.split(" ")
    words[-1] = singularize(words[-1])
    return " ".join(words)
