from __future__ import annotations

from enum import IntEnum


class ChainId(IntEnum):
    ETHEREUM = 1
    GOERLI = 5
    BSC = 56
    BSC_TESTNET = 97


CHAIN_ID_TO_KEY = {
    ChainId.ETHEREUM: "ethereum",
    ChainId.GOERLI: "goerli",
    ChainId.BSC: "bsc",
    ChainId.BSC_TESTNET: "bsc_testnet",
}


def chain_key(chain_id: int) -> str | None:
    try:
        return CHAIN_ID_TO_KEY.get(ChainId(chain_id))
    except ValueError:
        return None
