"""Malware scanning of uploaded and stored files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from paycore.core.identifiers import Clock, utcnow

logger = logging.getLogger(__name__)

LOW_RISK = "low"
HIGH_RISK = "high"

EICAR_SIGNATURE = b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"

# Leading bytes of formats that must never arrive disguised as an image.
HEADER_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"MZ", "Malware.Win32.Executable"),
    (b"\x7fELF", "Malware.Linux.Executable"),
    (b"\xfe\xed\xfa\xce", "Malware.MachO.Executable"),
    (b"\xfe\xed\xfa\xcf", "Malware.MachO.Executable"),
    (b"\xca\xfe\xba\xbe", "Malware.Java.Class"),
    (b"PK\x03\x04", "Archive.Embedded.Payload"),
    (b"Rar!", "Archive.Embedded.Payload"),
)

CONTENT_PATTERNS: tuple[tuple[re.Pattern[bytes], str], ...] = (
    (re.compile(rb"<\s*script[^>]*>", re.IGNORECASE), "Html.Script.Injection"),
    (re.compile(rb"javascript:", re.IGNORECASE), "Html.Script.Injection"),
    (re.compile(rb"<\?\s*php", re.IGNORECASE), "Php.Webshell.Generic"),
)


@dataclass(slots=True, frozen=True)
class ScanResult:
    clean: bool
    engine: str
    scanned_at: datetime
    threats: tuple[str, ...] = ()
    risk_level: str = LOW_RISK
    signature_matches: int = 0

    @classmethod
    def infected(cls, engine: str, scanned_at: datetime, threats: list[str]) -> "ScanResult":
        return cls(
            clean=False,
            engine=engine,
            scanned_at=scanned_at,
            threats=tuple(threats),
            risk_level=HIGH_RISK,
            signature_matches=len(threats),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "clean": self.clean,
            "engine": self.engine,
            "scanned_at": self.scanned_at.isoformat(),
            "threats": list(self.threats),
            "risk_level": self.risk_level,
            "signature_matches": self.signature_matches,
        }


class MalwareScanner(Protocol):
    async def scan(self, file_name: str, content: bytes) -> ScanResult:
        ...


@dataclass(slots=True)
class SignatureScanner:
    """Byte-signature scanner.

    Flags the EICAR test string, executable or archive headers and embedded
    script payloads. A ClamAV backed scanner only has to return the same
    :class:`ScanResult`.
    """

    engine: str = "paycore-signatures"
    clock: Clock = field(default=utcnow)

    async def scan(self, file_name: str, content: bytes) -> ScanResult:
        threats: list[str] = []
        if EICAR_SIGNATURE in content:
            threats.append("Eicar-Test-Signature")
        for header, threat in HEADER_SIGNATURES:
            if content.startswith(header) and threat not in threats:
                threats.append(threat)
        for pattern, threat in CONTENT_PATTERNS:
            if threat not in threats and pattern.search(content):
                threats.append(threat)

        now = self.clock()
        if threats:
            logger.warning("Scan of %s found %s", file_name, ", ".join(threats))
            return ScanResult.infected(self.engine, now, threats)
        return ScanResult(clean=True, engine=self.engine, scanned_at=now)


__all__ = [
    "EICAR_SIGNATURE",
    "HIGH_RISK",
    "LOW_RISK",
    "MalwareScanner",
    "ScanResult",
    "SignatureScanner",
]
