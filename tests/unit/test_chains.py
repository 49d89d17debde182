import pytest

from litgate.blockchain.chains import (
    DATIL,
    DATIL_DEV,
    DATIL_TEST,
    SUPPORTED_CHAINS,
    Chain,
    UnrecognizedChain,
    UnrecognizedLitNetwork,
    get_chain,
    get_network,
)


def test_chain_names_match_registry():
    assert str(Chain.ARBITRUM) == "arbitrum"
    assert Chain.ARBITRUM.id == 42161
    assert str(Chain.BASE_SEPOLIA) == "baseSepoliaTestnet"
    assert set(SUPPORTED_CHAINS) == {str(chain) for chain in Chain}


@pytest.mark.parametrize("chain", list(Chain))
def test_get_chain(chain):
    assert get_chain(str(chain)) is chain
    assert get_chain(chain) is chain


def test_get_unknown_chain():
    with pytest.raises(UnrecognizedChain, match="solana"):
        get_chain("solana")
    with pytest.raises(TypeError):
        get_chain(42161)


def test_get_network():
    assert get_network("datil-dev") == DATIL_DEV
    assert get_network("datil-test") == DATIL_TEST
    assert get_network("datil") == DATIL
    with pytest.raises(UnrecognizedLitNetwork):
        get_network("cayenne")
    with pytest.raises(TypeError):
        get_network(None)


def test_network_properties():
    assert not DATIL_DEV.requires_capacity
    assert DATIL_TEST.requires_capacity and DATIL.requires_capacity
    assert DATIL_DEV.is_testnet and DATIL_TEST.is_testnet
    assert not DATIL.is_testnet
    assert DATIL_DEV != DATIL_TEST
    assert len({DATIL_DEV, DATIL_TEST, DATIL, get_network("datil")}) == 3
