import pytest

from bridgekeeper.core.chain_types import DEFAULT_CHAIN_ID, normalize_chain_id


def test_normalize_chain_id_defaults_to_mainnet():
    assert normalize_chain_id(None) == DEFAULT_CHAIN_ID == 1


def test_normalize_chain_id_formats():
    assert normalize_chain_id(10) == 10
    assert normalize_chain_id("0xa") == 10
    assert normalize_chain_id(" 0XA ") == 10
    assert normalize_chain_id("137") == 137


@pytest.mark.parametrize("value", ["ethereum", "0xzz", "", 0, -1, "0x0", True])
def test_normalize_chain_id_rejects_garbage(value):
    with pytest.raises(ValueError):
        normalize_chain_id(value)
