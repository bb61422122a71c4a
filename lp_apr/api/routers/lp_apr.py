from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from lp_apr.api.deps import get_update_lp_aprs_use_case
from lp_apr.api.schemas.lp_apr import LpAprRequest, LpAprResponse
from lp_apr.application.dto.lp_apr import UpdateLpAprsInput
from lp_apr.application.use_cases.update_lp_aprs import UpdateLpAprsUseCase
from lp_apr.domain.exceptions import (
    InvalidFarmInputError,
    LpAprUpdateError,
    NoIndexerClientForNetworkError,
)
from lp_apr.domain.services.lp_apr import farm_from_record

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/v1/farms/lp-apr", response_model=LpAprResponse)
def update_lp_aprs(
    req: LpAprRequest,
    use_case: UpdateLpAprsUseCase = Depends(get_update_lp_aprs_use_case),
):
    try:
        farms = [farm_from_record(farm.lp_address, farm.stable_swap_address) for farm in req.farms]
        result = use_case.execute(UpdateLpAprsInput(chain_id=req.chain_id, farms=farms))
    except InvalidFarmInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NoIndexerClientForNetworkError as exc:
        logger.warning("lp_apr_router: no_indexer chain_id=%s detail=%s", req.chain_id, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LpAprUpdateError as exc:
        logger.error(
            "lp_apr_router: update_failed stage=%s chain_id=%s detail=%s",
            exc.stage,
            exc.chain_id,
            exc,
        )
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return LpAprResponse(
        aprs=result.aprs,
        block_week_ago=result.block_week_ago,
        normal_farms=result.normal_farms,
        stable_farms=result.stable_farms,
    )
