"""
Text normalization for catalog matching.

Uploaded rows and catalog records record the same attribute with different
formatting ("Acme Corp, L.L.C." vs "ACME CORP LLC", "Cal .223" vs
"223 CALIBER"). These functions reduce raw values to comparable tokens:

- "Glock Inc."        → "GLOCK"
- "Model 19"          → "19"
- "Semi-Auto Firearm" → "SEMIAUTO"
- ".380 ACP Caliber"  → "380ACP"
- "0-12345-67890-5"   → "012345678905"

All functions are pure and accept None.
"""

import re
from typing import Mapping, Optional

from config.aliases import ALL_FIELDS, FIELD_ALIASES
from models.verification import CanonicalField, CanonicalFieldSet

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_NON_DIGIT = re.compile(r"\D")

# Longest first so CORPORATION wins over CORP and LLC/LLP over LP
CORPORATE_SUFFIXES = ("CORPORATION", "CORP", "LLC", "LLP", "LTD", "INC", "PLC", "LP")
MODEL_PREFIXES = ("MODEL", "MOD", "MDL")
TYPE_NOISE = ("FIREARMS", "FIREARM", "WEAPONS", "WEAPON")
CALIBER_MARKERS = ("CALIBER", "CAL")


def normalize_token(text: Optional[str]) -> str:
    """Uppercase and drop everything outside A-Z0-9."""
    if not text:
        return ""
    return _NON_ALNUM.sub("", str(text).upper())


def normalize_digits(text: Optional[str]) -> str:
    """
    Keep digits only.

    "012-345-0" → "0123450"
    """
    if not text:
        return ""
    return _NON_DIGIT.sub("", str(text))


def strip_leading_zeros(digits: str) -> str:
    """
    Drop leading zeros so UPC-A and EAN-13 forms of a code compare equal.

    "0123450" → "123450"
    """
    return digits.lstrip("0")


def normalize_identifier(text: Optional[str]) -> str:
    """Digits with leading zeros removed; the identifier index key."""
    return strip_leading_zeros(normalize_digits(text))


def normalize_manufacturer(text: Optional[str]) -> str:
    """
    Token with corporate-entity suffixes removed.

    Suffixes stack ("ACMECORPLLC" → "ACME"). A suffix is only removed while
    at least two characters would remain, so short names survive.
    """
    token = normalize_token(text)
    stripped = True
    while stripped:
        stripped = False
        for suffix in CORPORATE_SUFFIXES:
            if token.endswith(suffix) and len(token) >= len(suffix) + 2:
                token = token[:-len(suffix)]
                stripped = True
                break
    return token


def normalize_model(text: Optional[str]) -> str:
    """Token without a leading MODEL/MOD/MDL prefix."""
    token = normalize_token(text)
    for prefix in MODEL_PREFIXES:
        if token.startswith(prefix):
            return token[len(prefix):] or token
    return token


def normalize_type(text: Optional[str]) -> str:
    """Token with every FIREARM(S)/WEAPON(S) occurrence removed."""
    token = normalize_token(text)
    for noise in TYPE_NOISE:
        token = token.replace(noise, "")
    return token


def normalize_caliber(text: Optional[str]) -> str:
    """
    Token without a leading zero or CAL/CALIBER marker.

    "Cal .223" and "223 CALIBER" both give "223"; "0" stays "0".
    """
    token = normalize_token(text)

    if len(token) > 1 and token[0] == "0" and token[1].isdigit():
        token = token[1:]

    # Only the first marker found is considered; a bare marker is kept
    for marker in CALIBER_MARKERS:
        if token.startswith(marker):
            return token[len(marker):] or token
    for marker in CALIBER_MARKERS:
        if token.endswith(marker):
            return token[:-len(marker)] or token
    return token


# ===================
# KEYS
# ===================

def attribute_key(
    manufacturer: Optional[str],
    model: Optional[str],
    type: Optional[str],
    caliber: Optional[str],
) -> tuple[str, str, str, str]:
    """Normalized (manufacturer, model, type, caliber) tuple."""
    return (
        normalize_manufacturer(manufacturer),
        normalize_model(model),
        normalize_type(type),
        normalize_caliber(caliber),
    )


def make_model_key(manufacturer: Optional[str], model: Optional[str]) -> tuple[str, str]:
    """Normalized (manufacturer, model) pair."""
    return normalize_manufacturer(manufacturer), normalize_model(model)


# ===================
# ALIAS RESOLUTION
# ===================

def resolve_alias(
    row: Mapping[str, Optional[str]],
    aliases: tuple[str, ...],
) -> tuple[str, Optional[str]]:
    """
    First non-blank value among `aliases`, with the key it was found under.

    Each alias is probed as given, lowercased, then uppercased.
    Returns ("", None) when no alias holds a value.
    """
    for alias in aliases:
        for key in (alias, alias.lower(), alias.upper()):
            value = row.get(key)
            if value is None:
                continue
            value = str(value).strip()
            if value:
                return value, key
    return "", None


def canonicalize_row(
    row: Mapping[str, Optional[str]],
) -> tuple[CanonicalFieldSet, dict[CanonicalField, Optional[str]]]:
    """Resolve every canonical field of a raw row."""
    values = {}
    source_columns = {}
    for name in ALL_FIELDS:
        value, key = resolve_alias(row, FIELD_ALIASES[name])
        values[name] = value
        source_columns[CanonicalField[name.upper()]] = key
    return CanonicalFieldSet(**values), source_columns
