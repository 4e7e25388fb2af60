"""
HTTP job service around the string art engine.

The local runner (`python -m stringart`) is the flag-free, stateless program;
this service alone reads PUBLIC_BASE_URL and keeps per-job status.json files.
"""
import os
import json
import uuid
from pathlib import Path
from typing import Optional, Literal
import traceback

from fastapi import FastAPI, HTTPException, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, HttpUrl
from starlette.responses import FileResponse
from concurrent.futures import ThreadPoolExecutor

import requests

from stringart import (
    StringArtConfig,
    ChordSelector,
    FrameSink,
    generate_anchors,
    load_target,
    write_output,
)

# -------------------------------------------------------------------
# Basic config
# -------------------------------------------------------------------

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")  # e.g. https://string-art-api.onrender.com
JOBS_ROOT = "jobs"
os.makedirs(JOBS_ROOT, exist_ok=True)

# Parameters for the string art generator
SERVICE_CONFIG = StringArtConfig(
    size=300,
    num_anchors=240,
    tolerance=0.5,
    mode="fast",
    max_chords=1300,
)
SNAPSHOT_EVERY = 25  # how often to snapshot for timelapse
DOWNLOAD_TIMEOUT = 30  # seconds

RESULT_PNG = "string_art_result.png"
RESULT_MP4 = "string_art_timelapse.mp4"
ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp"}


app = FastAPI(title="String Art API", version="1.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# A tiny thread pool so jobs run in the background
EXECUTOR = ThreadPoolExecutor(max_workers=2)


# -------------------------------------------------------------------
# Pydantic models
# -------------------------------------------------------------------

class RedeemBody(BaseModel):
    imageUrl: HttpUrl


class JobStatus(BaseModel):
    jobId: str
    status: Literal["queued", "processing", "done", "error"]
    error: Optional[str] = None
    resultImageUrl: Optional[str] = None
    resultTimelapseUrl: Optional[str] = None
    chordCount: Optional[int] = None
    finalLoss: Optional[float] = None


# -------------------------------------------------------------------
# Helper functions for status JSON per job
# -------------------------------------------------------------------

def job_dir(job_id: str) -> str:
    return os.path.join(JOBS_ROOT, job_id)


def status_path(job_id: str) -> str:
    return os.path.join(job_dir(job_id), "status.json")


def job_file(job_id: str, filename: str) -> Optional[str]:
    """Path of a file inside a job directory, or None if it would leave JOBS_ROOT."""
    root = os.path.realpath(JOBS_ROOT)
    path = os.path.realpath(os.path.join(root, job_id, filename))
    if os.path.dirname(os.path.dirname(path)) != root:
        return None
    return path


def read_status(job_id: str) -> JobStatus:
    path = job_file(job_id, "status.json")
    if path is None or not os.path.exists(path):
        raise HTTPException(status_code=404, detail="Unknown job_id")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return JobStatus(**data)


def write_status(status: JobStatus) -> None:
    jd = job_dir(status.jobId)
    os.makedirs(jd, exist_ok=True)
    path = status_path(status.jobId)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(status.model_dump(), f)


def build_file_url(job_id: str, filename: str) -> str:
    if PUBLIC_BASE_URL:
        base = PUBLIC_BASE_URL.rstrip("/")
        return f"{base}/files/{job_id}/{filename}"
    # Fallback: relative path
    return f"/files/{job_id}/{filename}"


def input_suffix(filename: Optional[str]) -> str:
    suffix = Path(filename or "").suffix.lower()
    return suffix if suffix in ALLOWED_SUFFIXES else ".jpg"


# -------------------------------------------------------------------
# Core pipeline: string art + timelapse
# -------------------------------------------------------------------

def generate_string_art_assets(input_path: str, job_id: str) -> None:
    """
    Runs the full pipeline for a given job:
    - prepare the target grid and anchors
    - greedy chord selection, snapshotting frames as it goes
    - final PNG + MP4 timelapse
    Updates status.json as it goes.
    """
    jd = job_dir(job_id)
    os.makedirs(jd, exist_ok=True)

    status = JobStatus(jobId=job_id, status="processing")
    write_status(status)

    print(f"[JOB {job_id}] Starting pipeline, input_path={input_path}", flush=True)

    try:
        config = SERVICE_CONFIG
        target = load_target(input_path, config)
        anchors = generate_anchors(config.num_anchors, config.size, config.shape)

        frames = FrameSink(
            os.path.join(jd, "frames"),
            snapshot_every=SNAPSHOT_EVERY,
            mp4_path=os.path.join(jd, RESULT_MP4),
        )
        selector = ChordSelector(target, anchors, config)
        frames.start(selector.working)
        result = selector.run(frames)
        print(
            f"[JOB {job_id}] {len(result.chords)} chords, "
            f"loss {result.initial_loss:.2f} -> {result.final_loss:.2f} ({result.stop_reason})",
            flush=True,
        )

        write_output(result.working, os.path.join(jd, RESULT_PNG))
        frames.finish(result.working)

        status.status = "done"
        status.chordCount = len(result.chords)
        status.finalLoss = result.final_loss
        status.resultImageUrl = build_file_url(job_id, RESULT_PNG)
        if frames.video_written:
            status.resultTimelapseUrl = build_file_url(job_id, RESULT_MP4)
        write_status(status)

        print(f"[JOB {job_id}] Finished OK", flush=True)

    except Exception as e:
        status.status = "error"
        status.error = str(e)
        write_status(status)

        print(f"[JOB {job_id}] ERROR: {e!r}", flush=True)
        traceback.print_exc()


def queue_job(job_id: str, input_path: str) -> JobStatus:
    status = JobStatus(jobId=job_id, status="queued")
    write_status(status)
    EXECUTOR.submit(generate_string_art_assets, input_path, job_id)
    return status


def new_job() -> str:
    job_id = uuid.uuid4().hex[:12]
    os.makedirs(job_dir(job_id), exist_ok=True)
    return job_id


# -------------------------------------------------------------------
# API endpoints
# -------------------------------------------------------------------

@app.get("/")
def root():
    return {
        "status": "ok",
        "publicBaseUrl": PUBLIC_BASE_URL or "(relative)",
        "filesRoot": JOBS_ROOT,
    }


@app.post("/redeem-upload", response_model=JobStatus)
async def redeem_upload(file: UploadFile = File(...)):
    """
    Start a job from an uploaded image.
    Always writes a status.json file so /status/{job_id} never 404s.
    """
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Uploaded file must be an image")

    job_id = new_job()
    input_path = os.path.join(job_dir(job_id), "input" + input_suffix(file.filename))

    try:
        contents = await file.read()
        with open(input_path, "wb") as out:
            out.write(contents)
    except OSError as e:
        # If saving fails, still create a status.json with error
        status = JobStatus(jobId=job_id, status="error", error=f"Failed to save upload: {e}")
        write_status(status)
        return status

    return queue_job(job_id, input_path)


@app.post("/redeem", response_model=JobStatus)
def redeem(body: RedeemBody):
    """Start a job from an image URL."""
    url = str(body.imageUrl)
    try:
        resp = requests.get(url, timeout=DOWNLOAD_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise HTTPException(status_code=400, detail=f"Could not download image: {e}")

    content_type = resp.headers.get("Content-Type", "")
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="URL does not point to an image")

    job_id = new_job()
    input_path = os.path.join(job_dir(job_id), "input" + input_suffix(Path(url.split("?")[0]).name))
    with open(input_path, "wb") as out:
        out.write(resp.content)

    return queue_job(job_id, input_path)


@app.get("/status/{job_id}", response_model=JobStatus)
def get_status(job_id: str):
    status = read_status(job_id)

    # If already done, ensure the image URL is filled in
    if status.status == "done" and status.resultImageUrl is None:
        status.resultImageUrl = build_file_url(job_id, RESULT_PNG)

    return status


@app.get("/files/{job_id}/{filename}")
def get_file(job_id: str, filename: str):
    path = job_file(job_id, filename)
    if path is None or not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)
