"""
Role normalizer.

Stored role names drifted between two naming schemes ("admin" vs
"administrador", "oftalmologo" vs "oftalmólogo"). Every comparison goes
through ``parse_role``: the raw name is folded (trimmed, case-folded,
diacritics stripped) and looked up in ``ROLE_ALIASES``. Names missing from
the table never match anything; there is no prefix, substring or fuzzy
matching.
"""
import unicodedata
from typing import FrozenSet, Iterable, Optional

from django.db import models


class RoleChoices(models.TextChoices):
    """Canonical roles."""
    ADMIN = 'admin', 'Administrador'
    CAPTADOR = 'captador', 'Captador'
    OFTALMOLOGO = 'oftalmologo', 'Oftalmólogo'


# Bump when a spelling is added or removed.
ROLE_ALIASES_VERSION = 1

# Folded spelling -> canonical role.
ROLE_ALIASES = {
    'admin': RoleChoices.ADMIN,
    'administrador': RoleChoices.ADMIN,
    'administrator': RoleChoices.ADMIN,
    'captador': RoleChoices.CAPTADOR,
    'oftalmologo': RoleChoices.OFTALMOLOGO,
    'ophthalmologist': RoleChoices.OFTALMOLOGO,
}


def fold(name: str) -> str:
    """Trim, case-fold and strip combining marks: ' Oftalmólogo ' -> 'oftalmologo'."""
    decomposed = unicodedata.normalize('NFKD', name.strip().casefold())
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def parse_role(raw) -> Optional[RoleChoices]:
    """Map a stored or requested role name to its canonical role, or None."""
    if isinstance(raw, RoleChoices):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    return ROLE_ALIASES.get(fold(raw))


def normalize_roles(raw_names: Iterable[str]) -> FrozenSet[RoleChoices]:
    """Canonical roles held by a caller; unknown spellings are dropped."""
    parsed = (parse_role(name) for name in raw_names or ())
    return frozenset(role for role in parsed if role is not None)


def satisfies(capability, raw_names: Iterable[str]) -> bool:
    """True when any of ``raw_names`` names the same role as ``capability``."""
    wanted = parse_role(capability)
    if wanted is None:
        return False
    return wanted in normalize_roles(raw_names)


def satisfies_any(capabilities: Iterable, raw_names: Iterable[str]) -> bool:
    """OR over ``capabilities``."""
    held = normalize_roles(raw_names)
    return any(parse_role(capability) in held for capability in capabilities)
