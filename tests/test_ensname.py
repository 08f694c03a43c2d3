import pytest

from ethereal.ensname import (
    EnsNameError,
    domain_level,
    domain_part,
    format_pubkey,
    label_hash,
    name_hash,
    normalise,
    parse_pubkey,
    split_domains,
    tld,
    validate_subdomain,
)


def test_normalise_lowercases():
    assert normalise("EnsTest.ETH") == "enstest.eth"


def test_normalise_is_idempotent():
    once = normalise("Foo.Bar.Eth")
    assert normalise(once) == once


def test_normalise_empty_label_rejected():
    with pytest.raises(EnsNameError):
        normalise("foo..eth")


def test_tld_and_level():
    assert tld("sub.enstest.eth") == "eth"
    assert domain_level("sub.enstest.eth") == 2
    assert domain_level("enstest.eth") == 1
    assert domain_level("eth") == 0


def test_domain_part_positive_and_negative():
    assert domain_part("sub.enstest.eth", 1) == "sub"
    assert domain_part("sub.enstest.eth", 2) == "enstest"
    assert domain_part("sub.enstest.eth", -1) == "eth"
    assert domain_part("sub.enstest.eth", -3) == "sub"


def test_domain_part_zero_rejected():
    with pytest.raises(EnsNameError):
        domain_part("enstest.eth", 0)


def test_domain_part_out_of_range():
    with pytest.raises(EnsNameError):
        domain_part("enstest.eth", 3)
    with pytest.raises(EnsNameError):
        domain_part("enstest.eth", -3)


def test_name_hash_empty_is_zero():
    assert name_hash("") == bytes(32)


def test_name_hash_eth():
    assert name_hash("eth").hex() == (
        "93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"
    )


def test_label_hash_eth():
    assert label_hash("eth").hex() == (
        "4f5b812789fc606be1b3b16908db13fc7a9adf7ca72641f84d75b47069d3d7f0"
    )


def test_name_hash_case_insensitive():
    assert name_hash("EnsTest.ETH") == name_hash("enstest.eth")
    assert len(name_hash("enstest.eth")) == 32


def test_label_hash_rejects_dotted():
    with pytest.raises(EnsNameError):
        label_hash("foo.eth")


def test_parse_pubkey_pads_values():
    x, y = parse_pubkey("(0x0102,0x0304)")
    assert x == bytes(30) + b"\x01\x02"
    assert y == bytes(30) + b"\x03\x04"


def test_pubkey_round_trip():
    x = bytes(range(32))
    y = bytes(range(32, 64))
    assert parse_pubkey(format_pubkey(x, y)) == (x, y)


def test_format_pubkey_layout():
    text = format_pubkey(1, b"\x02")
    assert text == "(0x" + "00" * 31 + "01,0x" + "00" * 31 + "02)"


def test_parse_pubkey_wrong_shape():
    with pytest.raises(EnsNameError, match="format"):
        parse_pubkey("(0x01)")
    with pytest.raises(EnsNameError, match="format"):
        parse_pubkey("(0x01,0x02,0x03)")


def test_parse_pubkey_invalid_components():
    with pytest.raises(EnsNameError, match="Invalid x"):
        parse_pubkey("(0xzz,0x01)")
    with pytest.raises(EnsNameError, match="Invalid y"):
        parse_pubkey("(0x01,0x123)")
    with pytest.raises(EnsNameError, match="Invalid x"):
        parse_pubkey("(0x" + "ab" * 33 + ",0x01)")


def test_parse_pubkey_required():
    with pytest.raises(EnsNameError):
        parse_pubkey("")


def test_split_domains():
    assert split_domains("mydomain1.eth&&mydomain2.eth", "") == [
        "mydomain1.eth",
        "mydomain2.eth",
    ]
    assert split_domains("", "enstest.eth") == ["enstest.eth"]
    assert split_domains("a.eth", "b.eth") == ["a.eth"]


def test_split_domains_requires_one():
    with pytest.raises(EnsNameError, match="required"):
        split_domains("", "")


def test_validate_subdomain():
    assert validate_subdomain("sub") == "sub"
    with pytest.raises(EnsNameError, match="required"):
        validate_subdomain("")
    with pytest.raises(EnsNameError, match="'.'"):
        validate_subdomain("a.b")