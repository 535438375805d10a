"""FastAPI application for the novel extraction service.

``POST /extract`` reads a single chapter page and returns its content
lines. ``POST /novel`` extracts a whole work in a background task and
packages it as EPUB files; clients poll ``/jobs/{id}`` and then fetch the
structured work from ``/catalog/{id}`` or the files from
``/download/{id}/{name}``. Job records are kept in memory for the
lifetime of the process; the extracted work is written to the job's
output directory as ``catalog.json`` rather than held by the record.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Callable, Dict

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import FileResponse, JSONResponse

from . import config, packaging, sources
from .errors import NovelError, SourceNotRecognized
from .fetcher import PageFetcher
from .models import line_to_dict

logger = logging.getLogger(__name__)

app = FastAPI(title="Web Novel Extractor")

settings = config.load_settings()

JOBS: Dict[str, Dict[str, Any]] = {}

# Finished jobs keep only file names; the work itself is written here.
CATALOG_FILE = "catalog.json"

FetcherFactory = Callable[[], PageFetcher]


def get_fetcher_factory() -> FetcherFactory:
    """Dependency returning a callable that opens a new ``PageFetcher``."""
    return settings.make_fetcher


async def _read_url(request: Request) -> str:
    data = await request.json()
    url = data.get("url") if isinstance(data, dict) else None
    if not url:
        raise HTTPException(status_code=400, detail="Missing 'url' in request body")
    return url


async def background_extract_novel(job_id: str, url: str, make_fetcher: FetcherFactory) -> None:
    """Background task to extract a full work and package it as EPUBs."""
    job = JOBS[job_id]
    job["status"] = "running"
    out_dir = settings.output_dir / job_id
    try:
        async with make_fetcher() as fetcher:
            work = await sources.make_work(url, fetcher, max_workers=settings.max_workers)
        paths = packaging.package_epubs(work, str(out_dir))
        (out_dir / CATALOG_FILE).write_text(
            json.dumps(work.to_dict(), ensure_ascii=False), encoding="utf-8"
        )
    except Exception as e:
        logger.error("Extracting %s failed: %s", url, e, exc_info=not isinstance(e, NovelError))
        job.update(status="error", error=str(e))
        return
    job.update(status="done", title=work.display_name, files=[Path(p).name for p in paths])
    logger.info("Job %s finished: %s", job_id, work.display_name)


@app.post("/extract")
async def extract_endpoint(
    request: Request, make_fetcher: FetcherFactory = Depends(get_fetcher_factory)
) -> Response:
    """Extract the content lines of a single chapter page."""
    url = await _read_url(request)
    try:
        adapter = sources.find_adapter(url)
        async with make_fetcher() as fetcher:
            lines = await adapter.extract_page(url, fetcher)
    except SourceNotRecognized as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NovelError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return JSONResponse({"source": adapter.name, "lines": [line_to_dict(line) for line in lines]})


@app.post("/novel")
async def novel_endpoint(
    request: Request,
    background_tasks: BackgroundTasks,
    make_fetcher: FetcherFactory = Depends(get_fetcher_factory),
) -> Response:
    """Start extracting the work whose table of contents is at ``url``.

    A job identifier is returned immediately; unknown sites are rejected
    before the job is created.
    """
    url = await _read_url(request)
    try:
        sources.find_adapter(url)
    except SourceNotRecognized as e:
        raise HTTPException(status_code=400, detail=str(e))
    job_id = str(uuid.uuid4())
    JOBS[job_id] = {"id": job_id, "url": url, "status": "queued", "error": None, "files": []}
    background_tasks.add_task(background_extract_novel, job_id, url, make_fetcher)
    return JSONResponse({"job_id": job_id})


def _get_job(job_id: str) -> Dict[str, Any]:
    job = JOBS.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@app.get("/jobs/{job_id}")
async def job_status(job_id: str) -> Response:
    job = _get_job(job_id)
    return JSONResponse({
        "id": job["id"],
        "url": job["url"],
        "status": job["status"],
        "error": job["error"],
        "files": job["files"],
    })


@app.get("/catalog/{job_id}")
async def get_catalog(job_id: str) -> Response:
    job = _get_job(job_id)
    if job["status"] != "done":
        raise HTTPException(status_code=409, detail=f"Job is {job['status']}")
    catalog = settings.output_dir / job_id / CATALOG_FILE
    return JSONResponse(json.loads(catalog.read_text(encoding="utf-8")))


@app.get("/download/{job_id}/{file_name}")
async def download_endpoint(job_id: str, file_name: str) -> Response:
    """Download one of the EPUB files produced by a finished job."""
    job = _get_job(job_id)
    if file_name not in job["files"]:
        raise HTTPException(status_code=404, detail="File not found")
    path = settings.output_dir / job_id / file_name
    return FileResponse(str(path), filename=file_name, media_type="application/epub+zip")
