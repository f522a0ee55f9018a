import pytest

from paycore.modules import phones
from paycore.modules.phones import PhoneValidator


@pytest.mark.parametrize(
    "raw",
    ["03001234567", "+923001234567", "923001234567", "+92 300 1234567", "0300-123-4567", "(0300) 1234567"],
)
def test_normalize_accepts_common_formats(raw):
    assert phones.normalize(raw) == "03001234567"


def test_normalize_is_idempotent():
    for raw in ("+92 345 1234567", "03121234567", "0333-7654321"):
        once = phones.normalize(raw)
        assert phones.normalize(once) == once


def test_normalize_empty_input():
    assert phones.normalize(None) == ""
    assert phones.normalize("") == ""


@pytest.mark.parametrize(
    "raw",
    ["0300123456", "030012345678", "04001234567", "02112345678", "abc", "", None],
)
def test_invalid_numbers_have_no_network(raw):
    assert phones.is_valid(raw) is False
    assert phones.network_of(raw) is None


def test_network_lookup_uses_local_prefix():
    assert phones.network_of("03001234567") == "JAZZ"
    assert phones.network_of("+923451234567") == "JAZZ"
    assert PhoneValidator.is_valid("0345 1234567") is True


def test_validity_matches_network_lookup():
    for raw in ("03001234567", "03991234567", "05001234567", "0300", "92300123456"):
        assert phones.is_valid(raw) == (phones.network_of(raw) is not None)
