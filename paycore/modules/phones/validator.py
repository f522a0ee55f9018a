"""Pakistani mobile number normalisation and carrier lookup."""

from __future__ import annotations

import re
from typing import Mapping, Optional

PAKISTANI_NETWORKS: Mapping[str, tuple[str, ...]] = {
    "JAZZ": ("030", "031", "032", "033", "034", "035", "036", "037", "038", "039"),
    "TELENOR": ("340", "341", "342", "343", "344", "345", "346", "347", "348", "349"),
    "ZONG": ("310", "311", "312", "313", "314", "315", "316", "317", "318", "319"),
    "UFONE": ("333", "334", "335", "336", "337"),
    "WARID": ("321", "322", "323", "324", "325"),
    "SCOM": ("355", "356", "357", "358", "359"),
}

_FORMATTING = re.compile(r"[\s\-()+]")
_LOCAL_MOBILE = re.compile(r"^03[0-9]{9}$")


def all_prefixes() -> tuple[str, ...]:
    return tuple(prefix for prefixes in PAKISTANI_NETWORKS.values() for prefix in prefixes)


def normalize(phone: Optional[str]) -> str:
    """Return the 11-digit local form (``03XXXXXXXXX``) of ``phone``.

    Spaces, dashes, parentheses and ``+`` are stripped; ``923XXXXXXXXX`` and
    ``92XXXXXXXXX`` become ``0``-prefixed local numbers. Anything else is returned
    stripped but otherwise untouched, so the function is idempotent.
    """
    if not phone:
        return ""
    cleaned = _FORMATTING.sub("", phone)
    if cleaned.startswith("923") and len(cleaned) == 12:
        return "0" + cleaned[2:]
    if cleaned.startswith("92") and len(cleaned) == 11:
        return "0" + cleaned[2:]
    return cleaned


def _prefix(phone: Optional[str]) -> Optional[str]:
    normalized = normalize(phone)
    if not _LOCAL_MOBILE.match(normalized):
        return None
    # The carrier table is keyed on the first three digits of the local form.
    return normalized[:3]


def network_of(phone: Optional[str]) -> Optional[str]:
    prefix = _prefix(phone)
    if prefix is None:
        return None
    for network, prefixes in PAKISTANI_NETWORKS.items():
        if prefix in prefixes:
            return network
    return None


def is_valid(phone: Optional[str]) -> bool:
    return network_of(phone) is not None


class PhoneValidator:
    """Object facade over the module functions, handy for injection."""

    networks = PAKISTANI_NETWORKS

    @staticmethod
    def normalize(phone: Optional[str]) -> str:
        return normalize(phone)

    @staticmethod
    def is_valid(phone: Optional[str]) -> bool:
        return is_valid(phone)

    @staticmethod
    def network_of(phone: Optional[str]) -> Optional[str]:
        return network_of(phone)


__all__ = ["PAKISTANI_NETWORKS", "PhoneValidator", "all_prefixes", "is_valid", "network_of", "normalize"]
