"""Malware scanning exports"""

from .scanner import EICAR_SIGNATURE, HIGH_RISK, LOW_RISK, MalwareScanner, ScanResult, SignatureScanner

__all__ = ["EICAR_SIGNATURE", "HIGH_RISK", "LOW_RISK", "MalwareScanner", "ScanResult", "SignatureScanner"]
