"""
Chilean RUT helpers.

A RUT is a body of 7-8 digits plus a check digit (0-9 or K) computed
modulo 11 with weights 2..7 cycling from the rightmost digit.
"""
import re

_RUT_SHAPE = re.compile(r'^\d{7,8}[0-9K]$')


def clean_rut(value):
    """Strip dots, dashes and spaces; upper-case the check digit."""
    return re.sub(r'[^0-9kK]', '', value or '').upper()


def compute_check_digit(body):
    total = 0
    weight = 2
    for digit in reversed(body):
        total += int(digit) * weight
        weight = 2 if weight == 7 else weight + 1

    remainder = 11 - (total % 11)
    if remainder == 11:
        return '0'
    if remainder == 10:
        return 'K'
    return str(remainder)


def is_valid_rut(value):
    cleaned = clean_rut(value)
    if not _RUT_SHAPE.match(cleaned):
        return False
    return compute_check_digit(cleaned[:-1]) == cleaned[-1]


def format_rut(value):
    """Canonical stored form: '12.345.678-k' -> '12345678-K'."""
    cleaned = clean_rut(value)
    return f'{cleaned[:-1]}-{cleaned[-1]}'
