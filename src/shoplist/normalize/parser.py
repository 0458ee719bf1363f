"""Ingredient line parsing.

A line such as ``"1 ½ cups flour (sifted), divided"`` is taken apart by a
fixed sequence of extraction steps::

    strip marker -> note -> prep -> quantity -> unit -> name

Each step is a plain function over the working string so it can be tested
and extended on its own.
"""

import re
from dataclasses import dataclass

from shoplist.logging_config import get_logger
from shoplist.normalize.units import DEFAULT_UNIT_TABLE, UnitTable

logger = get_logger(__name__)


VULGAR_FRACTIONS: dict[str, float] = {
    "½": 1 / 2,
    "¼": 1 / 4,
    "¾": 3 / 4,
    "⅓": 1 / 3,
    "⅔": 2 / 3,
    "⅛": 1 / 8,
    "⅜": 3 / 8,
    "⅝": 5 / 8,
    "⅞": 7 / 8,
}

_VULGAR = "[" + "".join(VULGAR_FRACTIONS) + "]"

LIST_MARKER_RE = re.compile(r"^\s*(?:[-*+•·]|\d+[.)])\s+")
NOTE_RE = re.compile(r"\(([^()]*)\)")

# Quantity forms, most specific first. A quantity must not run into more digits.
_END = r"(?![\d/.]\d)"
_MIXED_VULGAR_RE = re.compile(rf"(\d+)\s*({_VULGAR}){_END}")
_MIXED_SLASH_RE = re.compile(rf"(\d+)\s+(\d+)\s*/\s*(\d+){_END}")
_SLASH_RE = re.compile(rf"(\d+)\s*/\s*(\d+){_END}")
_VULGAR_RE = re.compile(rf"({_VULGAR})")
_NUMBER_RE = re.compile(rf"(\d+(?:\.\d+)?|\.\d+){_END}")
_RANGE_SEPARATOR_RE = re.compile(r"(?:\s*[-–—]\s*|\s+to\s+)", re.IGNORECASE)
# "1-inch", "2-pound": a number hyphenated onto a word is a modifier, not a quantity
_COMPOUND_MODIFIER_RE = re.compile(r"-[^\W\d_]")
_OF_RE = re.compile(r"^of\s+", re.IGNORECASE)
_GLUED_UNIT_RE = re.compile(r"([a-zA-Z]+)\.?(?=\s|$)")


@dataclass(frozen=True)
class ParsedIngredient:
    """Structured form of a single ingredient line."""

    raw: str
    quantity: float | None
    unit: str | None
    name: str
    prep: str | None = None
    note: str | None = None

    @classmethod
    def unparsed(cls, line: str) -> "ParsedIngredient":
        """Raw-only ingredient for text that could not be taken apart."""
        return cls(raw=line, quantity=None, unit=None, name=line.strip())


# =============================================================================
# Extraction Steps
# =============================================================================


def _clean(text: str) -> str:
    return " ".join(text.split())


def strip_list_marker(text: str) -> str:
    """Remove a leading bullet or ordinal marker ("- ", "* ", "2. ", "3) ")."""
    return LIST_MARKER_RE.sub("", text, count=1)


def extract_note(text: str) -> tuple[str, str | None]:
    """Pull out the first well-formed parenthetical group."""
    match = NOTE_RE.search(text)
    if not match:
        return text, None
    note = _clean(match.group(1)) or None
    remaining = text[: match.start()] + " " + text[match.end() :]
    return _clean(remaining), note


def extract_prep(text: str) -> tuple[str, str | None]:
    """Split on the last comma; the suffix is the preparation clause."""
    head, sep, tail = text.rpartition(",")
    if not sep:
        return text, None
    return head.strip(), tail.strip() or None


def _match_single_quantity(text: str) -> tuple[float, int] | None:
    """Match one quantity token at the start of text, returning (value, end)."""
    match = _MIXED_VULGAR_RE.match(text)
    if match:
        return int(match.group(1)) + VULGAR_FRACTIONS[match.group(2)], match.end()

    match = _MIXED_SLASH_RE.match(text)
    if match and int(match.group(3)) != 0:
        whole, num, denom = (int(g) for g in match.groups())
        return whole + num / denom, match.end()

    match = _SLASH_RE.match(text)
    if match:
        num, denom = int(match.group(1)), int(match.group(2))
        if denom == 0:
            return None
        return num / denom, match.end()

    match = _VULGAR_RE.match(text)
    if match:
        return VULGAR_FRACTIONS[match.group(1)], match.end()

    match = _NUMBER_RE.match(text)
    if match:
        return float(match.group(1)), match.end()

    return None


def extract_quantity(text: str) -> tuple[float | None, str]:
    """
    Consume a leading quantity.

    Handles integers, decimals, vulgar fractions, mixed numbers, slash
    fractions and ranges ("2-3", "2 to 3"); for ranges only the first
    value is kept. A range separator without a second value is not
    consumed. Returns (None, text) when there is no quantity, including
    a number hyphenated onto a word ("1-inch piece ginger").
    """
    text = text.lstrip()
    first = _match_single_quantity(text)
    if first is None:
        return None, text

    value, end = first
    if _COMPOUND_MODIFIER_RE.match(text, end):
        return None, text

    separator = _RANGE_SEPARATOR_RE.match(text, end)
    if separator:
        second = _match_single_quantity(text[separator.end() :])
        if second is not None:
            end = separator.end() + second[1]

    return value, text[end:]


def extract_unit(text: str, unit_table: UnitTable = DEFAULT_UNIT_TABLE) -> tuple[str | None, str]:
    """
    Consume a unit token following a quantity.

    Tries the longest multi-word alias first ("fl oz"), then a single
    token. A unit glued to the number ("500g") is also recognised. An
    "of" after the unit is dropped ("2 cups of flour").
    """
    if text and not text[0].isspace():
        glued = _GLUED_UNIT_RE.match(text)
        if glued:
            unit = unit_table.resolve_alias(glued.group(1))
            if unit:
                return unit, _OF_RE.sub("", text[glued.end() :].lstrip())
        return None, text

    tokens = text.split()
    for size in range(min(unit_table.max_alias_words, len(tokens)), 0, -1):
        candidate = " ".join(token.rstrip(".") for token in tokens[:size])
        unit = unit_table.resolve_alias(candidate)
        if unit:
            remainder = " ".join(tokens[size:])
            return unit, _OF_RE.sub("", remainder)

    return None, text


# =============================================================================
# Parser
# =============================================================================


def _parse(line: str, unit_table: UnitTable) -> ParsedIngredient:
    text = strip_list_marker(line)
    text, note = extract_note(text)
    text, prep = extract_prep(text)

    quantity, rest = extract_quantity(text)
    unit = None
    if quantity is not None:
        unit, rest = extract_unit(rest, unit_table)

    name = _clean(rest)
    if not name:
        return ParsedIngredient.unparsed(line)

    return ParsedIngredient(
        raw=line,
        quantity=quantity,
        unit=unit,
        name=name,
        prep=prep,
        note=note,
    )


def parse_ingredient_line(
    line: str,
    unit_table: UnitTable = DEFAULT_UNIT_TABLE,
) -> ParsedIngredient:
    """
    Parse a free-text ingredient line.

    Never raises: text that cannot be taken apart comes back with the
    trimmed line as its name and no quantity or unit.

    Examples:
        "2 tbsp olive oil" -> (2.0, "tbsp", "olive oil")
        "1 (15 oz) can tomatoes, drained" -> (1.0, "can", "tomatoes"),
            note "15 oz", prep "drained"
        "Salt and pepper to taste" -> (None, None, "Salt and pepper to taste")
    """
    try:
        parsed = _parse(line, unit_table)
    except Exception as e:
        logger.warning(f"Failed to parse ingredient line {line!r}: {e}")
        return ParsedIngredient.unparsed(line)

    if parsed.quantity is None:
        logger.debug(f"No quantity found in {line!r}")
    return parsed
