from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from eth_abi import encode
from eth_utils import keccak, to_bytes

from lp_apr.domain.entities.chain import ChainId
from lp_apr.domain.entities.token import Token, sort_tokens
from lp_apr.domain.exceptions import UnsupportedChainError


@dataclass(frozen=True)
class PoolDeployment:
    factory: str
    init_code_hash: str


V2_DEPLOYMENTS = {
    ChainId.BSC: PoolDeployment(
        factory="0xcA143Ce32Fe78f1f7019d7d551a6402fC5350c73",
        init_code_hash="0x00fb7f630766e6a796048ea87d01acd3068e8ff67d078148a3fa3f4a84f69bd5",
    ),
    ChainId.ETHEREUM: PoolDeployment(
        factory="0x1097053Fd2ea711dad45caCcc45EfF7548fCB362",
        init_code_hash="0x57224589c67f3f30a6b0d7a1b54cf3153ab84563bc609ef41dfb34f8b2974d2d",
    ),
    ChainId.BSC_TESTNET: PoolDeployment(
        factory="0x6725F303b657a9451d8BA641348b6761A6CC7a17",
        init_code_hash="0xd0d4c4cd0848c93cb4fd1f498d7013ee6bfb25783ea21593d5834f5d250ece66",
    ),
    ChainId.GOERLI: PoolDeployment(
        factory="0x1097053Fd2ea711dad45caCcc45EfF7548fCB362",
        init_code_hash="0x57224589c67f3f30a6b0d7a1b54cf3153ab84563bc609ef41dfb34f8b2974d2d",
    ),
}

# V3 pools are created by the pool deployer, not by the factory.
_V3_POOL_DEPLOYER = "0x41ff9AA7e16B8B1a8a8dc4f0eFacd93D02d071c9"
_V3_INIT_CODE_HASH = "0x6ce8eb472fa82df5469c6ab6d485f17c3ad13c8cd7af59b3d4a8026c5ce0f7e2"
V3_DEPLOYMENTS = {
    chain_id: PoolDeployment(factory=_V3_POOL_DEPLOYER, init_code_hash=_V3_INIT_CODE_HASH)
    for chain_id in (ChainId.BSC, ChainId.ETHEREUM, ChainId.BSC_TESTNET, ChainId.GOERLI)
}


def get_create2_address(*, deployer: str, salt: bytes, init_code_hash: str) -> str:
    raw = keccak(b"\xff" + to_bytes(hexstr=deployer) + salt + to_bytes(hexstr=init_code_hash))
    return "0x" + raw[12:].hex()


def _deployment(deployments: dict, chain_id: int, kind: str) -> PoolDeployment:
    deployment = deployments.get(chain_id)
    if deployment is None:
        raise UnsupportedChainError(f"No {kind} pool deployment configured for chain_id={chain_id}.")
    return deployment


def compute_v2_pool_address(token_a: Token, token_b: Token) -> str:
    token0, token1 = sort_tokens(token_a, token_b)
    deployment = _deployment(V2_DEPLOYMENTS, token0.chain_id, "V2")
    salt = keccak(to_bytes(hexstr=token0.address) + to_bytes(hexstr=token1.address))
    return get_create2_address(
        deployer=deployment.factory,
        salt=salt,
        init_code_hash=deployment.init_code_hash,
    )


def compute_v3_pool_address(token_a: Token, token_b: Token, fee: int) -> str:
    token0, token1 = sort_tokens(token_a, token_b)
    deployment = _deployment(V3_DEPLOYMENTS, token0.chain_id, "V3")
    salt = keccak(encode(["address", "address", "uint24"], [token0.key, token1.key, fee]))
    return get_create2_address(
        deployer=deployment.factory,
        salt=salt,
        init_code_hash=deployment.init_code_hash,
    )


def parse_protocol_fees(fee_protocol: int | str) -> tuple[Decimal, Decimal]:
    packed = int(fee_protocol)
    token0_fee = packed % (2 ** 16)
    token1_fee = packed >> 16
    return Decimal(token0_fee) / Decimal(10000), Decimal(token1_fee) / Decimal(10000)
