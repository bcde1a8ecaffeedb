import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime

import httpx
from fastapi import APIRouter, FastAPI, Request
from pydantic import BaseModel

from claimbot.config import BotConfig
from claimbot.orchestrator import Orchestrator, build_orchestrator
from claimbot.rpc import ChainClient

log = logging.getLogger("claimbot.app")


class TaskReportOut(BaseModel):
    account: str
    task: str
    outcome: str
    actions: list[str]
    transaction_id: str | None = None
    error: str | None = None
    finished_at: datetime


class SchedulerState(BaseModel):
    running: bool
    stopping: bool
    passes: int
    dev_mode: bool
    accounts: list[str]


class EndpointsOut(BaseModel):
    order: list[str]


r_state = APIRouter(prefix="/state", tags=["State"])
r_workload = APIRouter(prefix="/workload", tags=["Workload"])


def _orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


@r_state.get("/accounts", response_model=list[TaskReportOut])
def state_accounts(request: Request):
    return _orchestrator(request).snapshot()


@r_state.get("/endpoints", response_model=EndpointsOut)
def state_endpoints(request: Request):
    return {"order": list(_orchestrator(request).pool.order)}


@r_state.get("/scheduler", response_model=SchedulerState)
def state_scheduler(request: Request):
    o = _orchestrator(request)
    return {
        "running": o.running,
        "stopping": request.app.state.stop.is_set(),
        "passes": o.passes,
        "dev_mode": o.config.dev_mode,
        "accounts": [a.name for a in o.accounts],
    }


@r_workload.post("/stop", response_model=SchedulerState)
def workload_stop(request: Request):
    log.info("Stop requested via API")
    request.app.state.stop.set()
    return state_scheduler(request)


def create_app(config: BotConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop = asyncio.Event()
        client = ChainClient(timeout=config.submit_timeout, transport=transport)
        try:
            app.state.orchestrator = build_orchestrator(config, client)
            app.state.stop = stop

            async with asyncio.TaskGroup() as tg:
                tg.create_task(app.state.orchestrator.run(stop), name="scheduler")
                log.info("Scheduler started for %s", ", ".join(a.name for a in app.state.orchestrator.accounts))
                try:
                    yield
                finally:
                    log.info("Shutting down...")
                    stop.set()
                # exiting the TaskGroup waits for the scheduler to notice the stop signal
        finally:
            await client.aclose()
        log.info("Shutdown complete")

    app = FastAPI(
        title="claimbot",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Latest task results and endpoint order"},
            {"name": "Workload", "description": "Control the scheduler"},
        ],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(r_state)
    app.include_router(r_workload)
    return app
