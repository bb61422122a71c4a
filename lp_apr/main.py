from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lp_apr.api.routers.lp_apr import router as lp_apr_router
from lp_apr.api.routers.subgraph_pools import router as subgraph_pools_router
from lp_apr.shared.config import get_settings


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title="LP APR API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(lp_apr_router)
app.include_router(subgraph_pools_router)


@app.get("/health")
def health():
    return {"status": "ok"}
