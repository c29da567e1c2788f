import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from repolaunch.core.config import Settings, settings as default_settings
from repolaunch.core.github_client import GitHubClient
from repolaunch.guardrails.errors import as_http_500
from repolaunch.guardrails.token_format import TokenFormatError, check_token_format
from repolaunch.jobs.models import Job, JobStatus
from repolaunch.jobs.store import JobStore, run_sweeper
from repolaunch.jobs.tasks import TaskRegistry
from repolaunch.models.schemas import (
    HealthResponse,
    JobsListResponse,
    JobStatusResponse,
    SetupRepositoryRequest,
    SetupRepositoryResponse,
)
from repolaunch.observability.middleware import (
    RequestTimeoutMiddleware,
    RequestTimingMiddleware,
    get_request_id,
)
from repolaunch.orchestrator.setup import RepositorySetup
from repolaunch.pipeline.build import BuildPipeline, SimulatedBuildPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# -------------------------
# Health
# -------------------------

@router.get("/health", response_model=HealthResponse)
def health():
    """Returns status and server time. Used by load balancers and probes to check if the API is up."""
    return HealthResponse(status="healthy", timestamp=_now())


# -------------------------
# Integration package
# -------------------------

@router.get("/download-package")
def download_package(request: Request):
    """Streams the pre-built integration archive as an attachment.
    Why available: Lets users grab the same files the setup flow pushes, without going through GitHub."""
    package_path = request.app.state.settings.package_path
    if not os.path.isfile(package_path):
        raise HTTPException(status_code=404, detail="Integration package not found")

    filename = f"integration-{_now().date().isoformat()}.tar.gz"
    return FileResponse(
        package_path,
        media_type="application/gzip",
        filename=filename,
        headers={"Cache-Control": "no-cache"},
    )


# -------------------------
# Repository setup
# -------------------------

@router.post("/setup-repository", status_code=202, response_model=SetupRepositoryResponse)
async def setup_repository(request: Request, req: Optional[SetupRepositoryRequest] = None):
    """Validates the token shape, registers a job and starts the setup flow in the background. Client polls GET /api/status/{job_id}.
    Why available: Repository creation and upload take far longer than a request should; the job record carries progress instead."""
    state = request.app.state

    if req is None or not req.github_token or not req.repository_name:
        raise HTTPException(status_code=400, detail="GitHub token and repository name required")
    try:
        check_token_format(req.github_token)
    except TokenFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    job_id = str(uuid.uuid4())
    state.store.create(Job(id=job_id))
    description = req.description or state.settings.default_description

    state.tasks.spawn(
        state.setup.run(job_id, req.github_token, req.repository_name, description),
        name=f"setup-{job_id}",
    )
    logger.info("Setup job %s started (request %s)", job_id, get_request_id(request))

    return SetupRepositoryResponse(
        job_id=job_id,
        status=JobStatus.INITIALIZING.value,
        message="Repository setup started",
        status_url=f"/api/status/{job_id}",
    )


# -------------------------
# Job status
# -------------------------

@router.get("/status/{job_id}", response_model=JobStatusResponse)
def job_status(job_id: str, request: Request):
    """Returns the full job record: status, step history, repository and download URLs."""
    job = request.app.state.store.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse.from_job(job, updated_at=_now())


@router.get("/jobs", response_model=JobsListResponse)
def list_jobs(request: Request):
    """Returns the most recently created jobs, newest first."""
    state = request.app.state
    jobs = state.store.list_recent(state.settings.jobs_list_limit)
    return JobsListResponse(jobs=[JobStatusResponse.from_job(j) for j in jobs])


# -------------------------
# Artifact download proxy
# -------------------------

@router.get("/download/{job_id}/{file_name}")
async def download_artifact(job_id: str, file_name: str, request: Request):
    """Streams the completed job's artifact from its download URL under the requested file name.
    Why available: Clients download through this API instead of following GitHub release links themselves."""
    state = request.app.state
    job = state.store.get(job_id)
    if not job or job.status != JobStatus.COMPLETED:
        raise HTTPException(status_code=404, detail="Job not found or not completed")
    if not job.download_url:
        raise HTTPException(status_code=404, detail="Download URL not available")

    client = httpx.AsyncClient(
        timeout=state.settings.http_timeout_seconds,
        follow_redirects=True,
        transport=state.http_transport,
    )
    upstream: Optional[httpx.Response] = None
    try:
        upstream = await client.send(client.build_request("GET", job.download_url), stream=True)
        upstream.raise_for_status()
    except httpx.HTTPError:
        logger.exception("Download error for job %s", job_id)
        if upstream is not None:
            await upstream.aclose()
        await client.aclose()
        raise HTTPException(status_code=500, detail="Failed to download executable")

    headers = {"Content-Disposition": f'attachment; filename="{file_name}"'}
    if "content-length" in upstream.headers and "content-encoding" not in upstream.headers:
        headers["Content-Length"] = upstream.headers["content-length"]

    async def _close():
        await upstream.aclose()
        await client.aclose()

    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type="application/octet-stream",
        headers=headers,
        background=BackgroundTask(_close),
    )


# -------------------------
# App setup
# -------------------------

def create_app(
    settings: Optional[Settings] = None,
    *,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
    build_pipeline: Optional[BuildPipeline] = None,
) -> FastAPI:
    """Build the API with its own job store, task registry and orchestrator.
    http_transport is handed to every outbound httpx client (tests pass httpx.MockTransport)."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = JobStore()
    tasks = TaskRegistry()

    def _client_factory(token: str) -> GitHubClient:
        return GitHubClient(
            token,
            base_url=settings.github_api_url,
            timeout=settings.http_timeout_seconds,
            user_agent=settings.github_user_agent,
            transport=http_transport,
        )

    setup = RepositorySetup(
        store,
        build_pipeline or SimulatedBuildPipeline(
            settings.build_start_delay_seconds, settings.build_finish_delay_seconds
        ),
        settings,
        client_factory=_client_factory,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(
            run_sweeper(store, settings.job_sweep_interval_seconds, settings.failed_job_max_age_seconds)
        )
        logger.info("Repolaunch API ready on port %d", settings.port)
        try:
            yield
        finally:
            sweeper.cancel()
            await asyncio.gather(sweeper, return_exceptions=True)
            await tasks.drain(timeout=settings.shutdown_grace_seconds)
            await tasks.shutdown()

    app = FastAPI(title="Repolaunch", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.tasks = tasks
    app.state.setup = setup
    app.state.http_transport = http_transport

    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(GZipMiddleware)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        err = as_http_500(exc)
        return JSONResponse(status_code=err.status_code, content={"detail": err.detail})

    @app.get("/")
    def root():
        """Returns a minimal welcome payload with app name and docs URL."""
        return {"app": "Repolaunch", "docs": "/docs"}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.port, timeout_keep_alive=int(default_settings.request_timeout_seconds))
