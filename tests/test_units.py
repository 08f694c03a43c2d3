import pytest

from ethereal.units import UnitError, format_balance, string_to_wei, wei_to_string


def test_one_ether_in_wei():
    assert string_to_wei("1 ether") == 10**18


def test_one_ether_renders_as_ether():
    assert wei_to_string(10**18, True) == "1 Ether"


def test_zero_renders_as_zero():
    assert wei_to_string(0, True) == "0"
    assert wei_to_string(0, False) == "0"


def test_bare_number_is_wei():
    assert string_to_wei("12345") == 12345


def test_space_between_number_and_unit_is_optional():
    assert string_to_wei("1.5ether") == string_to_wei("1.5 ether")


def test_unit_is_case_insensitive():
    assert string_to_wei("2 GWei") == string_to_wei("2 gwei")


def test_equivalent_units_agree():
    assert string_to_wei("1000 gwei") == string_to_wei("0.000001 ether")
    assert string_to_wei("1 szabo") == string_to_wei("1 microether")
    assert string_to_wei("1 finney") == string_to_wei("0.001 ether")


@pytest.mark.parametrize(
    "amount",
    [1, 999, 10**9, 123456789012, 10**18, 15 * 10**17, 7 * 10**21, 31415926535897932384],
)
@pytest.mark.parametrize("standard", [True, False])
def test_round_trip(amount, standard):
    assert string_to_wei(wei_to_string(amount, standard)) == amount


def test_standard_output_uses_standard_units():
    for amount in (5, 5 * 10**12, 5 * 10**20):
        unit = wei_to_string(amount, True).split(" ")[1]
        assert unit in {"Wei", "GWei", "Ether"}


def test_rendered_value_is_at_least_one():
    for amount in (7, 7 * 10**4, 7 * 10**10, 7 * 10**13, 7 * 10**16):
        number = float(wei_to_string(amount, False).split(" ")[0])
        assert number >= 1


def test_no_trailing_zeros():
    number = wei_to_string(string_to_wei("1.50 ether"), True).split(" ")[0]
    assert not number.endswith("0")
    assert string_to_wei(f"{number} ether") == string_to_wei("1.5 ether")


@pytest.mark.parametrize("text", ["", "abc", "1 foo", "-1 ether", "1..2 ether", "ether"])
def test_unparseable_amounts(text):
    with pytest.raises(UnitError):
        string_to_wei(text)


def test_fractional_wei_rejected():
    with pytest.raises(UnitError):
        string_to_wei("1.5 wei")


def test_non_string_rejected():
    with pytest.raises(UnitError):
        string_to_wei(5)


def test_format_balance_zero():
    assert format_balance(0, False) == "0"
    assert format_balance(0, True) == "0"


def test_format_balance_in_wei():
    assert format_balance(4242, True) == "4242"


def test_format_balance_in_units():
    balance = string_to_wei("2.25 ether")
    assert format_balance(balance, False) == wei_to_string(balance, True)
    assert string_to_wei(format_balance(balance, False)) == balance