"""Post-processor - mechanical cleanup of final copy."""

import re
from dataclasses import dataclass, field

STOCK_OPENERS = [
    re.compile(r"^Here'?s (the thing|what|why)[:\s]\s*", re.IGNORECASE),
    re.compile(r"^Let me (tell you|explain|break)[^.]*\.\s*", re.IGNORECASE),
]
STOCK_CLOSER = re.compile(r"\s*Happy \w+ing!?\s*$", re.IGNORECASE)


@dataclass
class PostProcessResult:
    text: str
    changes: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def remove_em_dashes(text: str) -> str:
    """Replace em dashes (and spaced double hyphens) with commas or periods."""
    result = re.sub(r"\s—\s", ", ", text)
    result = result.replace("—.", ".")
    result = re.sub(r"\s--\s", ", ", result)
    result = result.replace("—", ", ")
    result = re.sub(r",\s*,", ",", result)
    result = re.sub(r",\s*\.", ".", result)
    return result


def reduce_exclamation(text: str) -> str:
    """Keep at most one exclamation mark, the last one."""
    total = text.count("!")
    if total <= 1:
        return text
    head, _, tail = text.rpartition("!")
    return head.replace("!", ".") + "!" + tail


def clean_stock_phrases(text: str) -> str:
    result = text
    for pattern in STOCK_OPENERS:
        result = pattern.sub("", result, count=1)
    result = STOCK_CLOSER.sub("", result)
    if result == text:
        return text
    result = result.strip()
    if result and result[0].islower():
        result = result[0].upper() + result[1:]
    return result


def post_process(text: str) -> PostProcessResult:
    """Run every cleanup step, recording which ones changed the text."""
    changes = []
    result = text
    for name, step in (
        ("em dashes replaced", remove_em_dashes),
        ("exclamation marks reduced", reduce_exclamation),
        ("stock phrases removed", clean_stock_phrases),
    ):
        cleaned = step(result)
        if cleaned != result:
            changes.append(name)
        result = cleaned
    return PostProcessResult(text=result, changes=changes)
