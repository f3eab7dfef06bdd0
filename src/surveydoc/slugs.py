"""
Machine-key derivation from human labels.

One shared slug function is used for field names, table column keys and
option values so that the same label always yields the same key.
"""

import re
import unicodedata
from typing import Collection, Optional


_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: Optional[str]) -> str:
    """
    Convert a label to a snake_case machine key.

    Steps:
        - lowercase
        - fold diacritics (NFKD, combining marks dropped; "ß" -> "ss")
        - collapse every run of non-alphanumerics into "_"
        - trim "_" from both edges

    Examples:
        "Straße & Hausnummer" -> "strasse_hausnummer"
        "  Ort (PLZ)  "       -> "ort_plz"
        "!!!"                 -> ""
    """
    if not text:
        return ""
    s = str(text).strip().lower().replace("ß", "ss")
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = _NON_ALNUM_RE.sub("_", s)
    return s.strip("_")


def unique_slug(base: str, taken: Collection[str], separator: str = "_") -> str:
    """
    Return base, or base with the smallest numeric suffix not in taken.

    Comparison is case-insensitive, matching how the merge engine
    compares field names.

    Examples:
        unique_slug("email", {"email"})             -> "email_2"
        unique_slug("email", {"email", "email_2"})  -> "email_3"
    """
    lowered = {t.lower() for t in taken}
    if base.lower() not in lowered:
        return base
    i = 2
    while f"{base}{separator}{i}".lower() in lowered:
        i += 1
    return f"{base}{separator}{i}"
