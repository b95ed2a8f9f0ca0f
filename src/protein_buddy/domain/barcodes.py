"""Barcode normalization for product lookups."""

GTIN13_LENGTH = 13
GTIN14_LENGTH = 14
SHORT_LENGTHS = frozenset({8, 12, GTIN13_LENGTH})
UPCE_LENGTH = 8
UPCE_NUMBER_SYSTEMS = frozenset({"0", "1"})


def normalize_gtin13(raw: str) -> str | None:
    """Return a scanned UPC/EAN code as a GTIN-13 string.

    Accepts UPC-A (12 digits), UPC-E, EAN-8, EAN-13 and GTIN-14 with a leading
    zero. An 8-digit code in number system 0 or 1 is read as UPC-E and expanded
    to UPC-A when its check digit holds for the expansion; otherwise it is
    treated as EAN-8. Returns None for anything that is not a well-formed code
    with a valid check digit.
    """
    digits = "".join(char for char in raw if not char.isspace() and char != "-")
    if not digits.isdigit():
        return None
    if len(digits) == GTIN14_LENGTH and digits.startswith("0"):
        digits = digits[1:]
    if len(digits) == UPCE_LENGTH and digits[0] in UPCE_NUMBER_SYSTEMS:
        upc_a = expand_upce(digits)
        if has_valid_check_digit(upc_a):
            return upc_a.zfill(GTIN13_LENGTH)
    if len(digits) not in SHORT_LENGTHS:
        return None
    if not has_valid_check_digit(digits):
        return None
    return digits.zfill(GTIN13_LENGTH)


def expand_upce(code: str) -> str:
    """Expand an 8-digit UPC-E code into its 12-digit UPC-A form."""
    number_system, body, check = code[0], code[1:7], code[7]
    last = body[5]
    if last in "012":
        middle = body[:2] + last + "0000" + body[2:5]
    elif last == "3":
        middle = body[:3] + "00000" + body[3:5]
    elif last == "4":
        middle = body[:4] + "00000" + body[4]
    else:
        middle = body[:5] + "0000" + last
    return number_system + middle + check


def has_valid_check_digit(digits: str) -> bool:
    """Validate the GS1 mod-10 check digit of a numeric code."""
    body, check = digits[:-1], int(digits[-1])
    total = 0
    for position, char in enumerate(reversed(body)):
        weight = 3 if position % 2 == 0 else 1
        total += int(char) * weight
    return (10 - total % 10) % 10 == check
