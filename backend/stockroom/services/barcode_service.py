# Overview: Barcode generation and validation for catalog products.

"""
Supported formats:
- EAN13: 13 digits, "20" prefix (in-store range), mod-10 check digit.
- UPC: 12 digits, "0" prefix, mod-10 check digit.
- INTERNAL: "INT" followed by 7 digits (10 characters).

Unknown kinds fall back to INTERNAL.
"""

from __future__ import annotations

import secrets

BARCODE_TYPES = {
    "EAN13": {"length": 13, "prefix": "20"},
    "UPC": {"length": 12, "prefix": "0"},
    "INTERNAL": {"length": 10, "prefix": "INT"},
}


def check_digit(payload: str) -> str:
    """
    GS1 mod-10 check digit for the digits preceding it.

    Weights alternate 3,1,3,... starting from the rightmost payload digit,
    which covers both EAN-13 and UPC-A.
    """
    total = 0
    for i, ch in enumerate(reversed(payload)):
        total += int(ch) * (3 if i % 2 == 0 else 1)
    return str((10 - total % 10) % 10)


def generate(kind: str = "INTERNAL") -> str:
    kind = kind if kind in BARCODE_TYPES else "INTERNAL"
    config = BARCODE_TYPES[kind]
    prefix = config["prefix"]

    if kind == "INTERNAL":
        body_len = config["length"] - len(prefix)
        return prefix + "".join(str(secrets.randbelow(10)) for _ in range(body_len))

    body_len = config["length"] - len(prefix) - 1
    payload = prefix + "".join(str(secrets.randbelow(10)) for _ in range(body_len))
    return payload + check_digit(payload)


def _ascii_digits(text: str) -> bool:
    # str.isdigit also accepts superscripts and non-Latin digits
    return text.isascii() and text.isdigit()


def validate(code: str | None) -> bool:
    if not code:
        return False

    internal = BARCODE_TYPES["INTERNAL"]
    if code.startswith(internal["prefix"]):
        return len(code) == internal["length"] and _ascii_digits(code[len(internal["prefix"]):])

    if _ascii_digits(code) and len(code) in (BARCODE_TYPES["EAN13"]["length"], BARCODE_TYPES["UPC"]["length"]):
        return check_digit(code[:-1]) == code[-1]

    return False
