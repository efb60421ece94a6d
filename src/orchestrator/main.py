"""Orchestrator FastAPI app: POST /run -> normalize, fan out, aggregate."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import AsyncIterator

from dotenv import load_dotenv

# Load .env so N8N_API_KEY / N8N_BASE_URL are set when the service runs standalone
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
for _p in (_PROJECT_ROOT / "config" / "env" / ".env", _PROJECT_ROOT / ".env"):
    if _p.exists():
        load_dotenv(_p, override=False)
        break

import httpx

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(message)s", datefmt="%H:%M:%S")
log = logging.getLogger("orchestrator")
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from src.core.config.env import get_api_credential
from src.core.config.loader import load_run_config
from src.core.config.models import RunConfig, RunPolicy
from src.core.contracts.gateway import RunRequest, RunResponse
from src.core.exceptions import AbortedOnFailure, ConfigError, GlobalTimeoutError, ValidationError
from src.orchestrator.runner import run_fanout

app = FastAPI(title="Parallel Workflow Orchestrator")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

CONFIG_PATH = os.environ.get("CONFIG_PATH")
PROJECT_ROOT = _PROJECT_ROOT
RUN_CONFIG: RunConfig | None = None


def get_config() -> RunConfig | None:
    global RUN_CONFIG
    if RUN_CONFIG is None and CONFIG_PATH:
        RUN_CONFIG = load_run_config(CONFIG_PATH, project_root=PROJECT_ROOT)
    return RUN_CONFIG


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as client:
        yield client


@app.on_event("startup")
def startup():
    get_config()


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/run", response_model=RunResponse)
async def run(req: RunRequest, client: httpx.AsyncClient = Depends(get_http_client)):
    try:
        config = get_config()
    except ConfigError as e:
        log.error("Config failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    source = req.source or (config.source if config else None)
    if source is None:
        raise HTTPException(status_code=400, detail="No call source configured")
    policy = req.policy or (config.policy if config else RunPolicy())

    log.info("RUN: %s mode, %s input items, %s aggregation", source.mode, len(req.items), policy.aggregation)
    try:
        items = await run_fanout(source, policy, req.items, client=client, credential=get_api_credential())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (GlobalTimeoutError, AbortedOnFailure) as e:
        log.warning("RUN failed: %s", e)
        return RunResponse(status="failed", error=str(e))
    return RunResponse(status="completed", items=items)


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
