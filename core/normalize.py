"""
Transaction description normalization.
Strips bank noise (card terminal markers, location suffixes) before classification.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Pattern, Tuple


class StripMode(str, Enum):
    """How much text a rule removes once its marker matches."""
    TOKEN = "token"
    TO_END = "to_end"


@dataclass(frozen=True)
class NormalizationRule:
    """A marker pattern and how to strip it."""
    pattern: str
    mode: StripMode = StripMode.TOKEN

    def compile(self) -> Pattern:
        source = self.pattern
        if self.mode is StripMode.TO_END:
            source = f"(?:{source}).*$"
        return re.compile(source, re.IGNORECASE | re.DOTALL)


# Applied in order; each rule removes every match before the next rule runs
DEFAULT_RULES: Tuple[NormalizationRule, ...] = (
    NormalizationRule(r"PAGAMENTO POS\b"),
    NormalizationRule(r"CRV\*"),
    NormalizationRule(r"VILNIUS IRL", StripMode.TO_END),
    NormalizationRule(r"DUBLIN IRL", StripMode.TO_END),
    NormalizationRule(r"OPERAZIONE", StripMode.TO_END),
)


def normalize_description(
    description: Optional[str],
    rules: Iterable[NormalizationRule] = DEFAULT_RULES
) -> str:
    """
    Remove noise markers from a transaction description.

    Args:
        description: Raw description from the ledger (may be None or empty)
        rules: Ordered normalization rules

    Returns:
        Cleaned description, trimmed; never None
    """
    if not description:
        return ""

    result = description
    for rule in rules:
        result = rule.compile().sub("", result)

    return result.strip()
