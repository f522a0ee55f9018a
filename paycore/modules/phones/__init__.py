"""Phone validation exports"""

from .validator import PAKISTANI_NETWORKS, PhoneValidator, is_valid, network_of, normalize

__all__ = [
    "PAKISTANI_NETWORKS",
    "PhoneValidator",
    "is_valid",
    "network_of",
    "normalize",
]
