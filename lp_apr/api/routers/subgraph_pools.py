from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from lp_apr.api.deps import get_subgraph_pool_providers
from lp_apr.api.schemas.subgraph_pools import (
    SubgraphPoolResponse,
    SubgraphPoolsRequest,
    TokenResponse,
)
from lp_apr.application.use_cases.subgraph_pool_provider import SubgraphPoolProvider
from lp_apr.domain.entities.pool import V2Pool, V3Pool
from lp_apr.domain.entities.token import Token
from lp_apr.domain.exceptions import (
    IndexerRequestFailedError,
    InvalidPairInputError,
    NoIndexerClientForNetworkError,
    UnsupportedChainError,
)

router = APIRouter()


def _token_response(token: Token) -> TokenResponse:
    return TokenResponse(address=token.address, decimals=token.decimals, symbol=token.symbol)


def _pool_response(pool: V2Pool | V3Pool) -> SubgraphPoolResponse:
    if isinstance(pool, V2Pool):
        return SubgraphPoolResponse(
            type=pool.type.value,
            address=pool.address,
            token0=_token_response(pool.token0),
            token1=_token_response(pool.token1),
            tvl_usd=str(pool.tvl_usd),
            reserve0=str(pool.reserve0.raw),
            reserve1=str(pool.reserve1.raw),
        )
    return SubgraphPoolResponse(
        type=pool.type.value,
        address=pool.address,
        token0=_token_response(pool.token0),
        token1=_token_response(pool.token1),
        tvl_usd=str(pool.tvl_usd),
        fee=pool.fee,
        liquidity=str(pool.liquidity),
        sqrt_ratio_x96=str(pool.sqrt_ratio_x96),
        tick=pool.tick,
        token0_protocol_fee=pool.token0_protocol_fee,
        token1_protocol_fee=pool.token1_protocol_fee,
    )


@router.post("/v1/pools/subgraph", response_model=list[SubgraphPoolResponse])
def get_subgraph_pools(
    req: SubgraphPoolsRequest,
    providers: dict[str, SubgraphPoolProvider] = Depends(get_subgraph_pool_providers),
):
    provider = providers.get(req.protocol.strip().lower())
    if provider is None:
        raise HTTPException(status_code=400, detail="protocol must be v2 or v3.")

    pairs = [
        (
            Token(chain_id=req.chain_id, address=token_a.address, decimals=token_a.decimals, symbol=token_a.symbol),
            Token(chain_id=req.chain_id, address=token_b.address, decimals=token_b.decimals, symbol=token_b.symbol),
        )
        for token_a, token_b in req.pairs
    ]
    try:
        pools = provider.get_pools(pairs)
    except (InvalidPairInputError, UnsupportedChainError, NoIndexerClientForNetworkError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except IndexerRequestFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return [_pool_response(pool) for pool in pools]
