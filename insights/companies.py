"""Company name cleanup.

The backend stores free-typed company names, so the same tenant shows up as
``"Divino Fogão"``, ``"DIVINO FOGAO "`` and friends.  Names are compared on a
normalized form and junk values (template placeholders, image sizes) are
discarded.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Dict, Iterable, List, Optional

MAX_COMPANY_NAME_LENGTH = 60

_DIMENSIONS_RE = re.compile(r"\d+x\d+")


def normalize_company_name(name: Optional[str]) -> str:
    """Strip accents, upper-case and trim *name* (``""`` for falsy input)."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.upper().strip()


def is_valid_company_name(name: object) -> bool:
    if not isinstance(name, str):
        return False
    trimmed = name.strip()
    if not trimmed or len(trimmed) > MAX_COMPANY_NAME_LENGTH:
        return False
    if "{{" in trimmed or "}}" in trimmed or "$" in trimmed:
        return False
    return not _DIMENSIONS_RE.fullmatch(trimmed)


def group_company_variants(names: Iterable[object]) -> Dict[str, List[str]]:
    """Map each normalized company name to its raw spellings.

    Keys are sorted; variants keep first-seen order without duplicates.
    """
    variants: Dict[str, List[str]] = {}
    for raw in names:
        if not is_valid_company_name(raw):
            continue
        bucket = variants.setdefault(normalize_company_name(raw), [])
        if raw not in bucket:
            bucket.append(raw)
    return {key: variants[key] for key in sorted(variants)}


def match_company(candidate: Optional[str], options: Iterable[str]) -> Optional[str]:
    """Pick the normalized option matching *candidate*.

    Exact matches win, then substring matches in either direction, then the
    sole option when there is only one.
    """
    options = list(options)
    target = normalize_company_name(candidate)
    if target:
        if target in options:
            return target
        for option in options:
            if option in target or target in option:
                return option
    if len(options) == 1:
        return options[0]
    return None
