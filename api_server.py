"""
FastAPI server for listing URL validation and owner enrichment
"""

import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from listing_enrich import __version__
from listing_enrich.config import Settings
from listing_enrich.logging_utils import setup_logger
from listing_enrich.owner_lookup import OwnerLookupClient
from listing_enrich.pipeline import run_enrichment
from listing_enrich.platforms import classify
from listing_enrich.url_validation import RemoteUnavailableError, request_remote_detection

# Load environment variables
load_dotenv()

logger = setup_logger(__name__)

app = FastAPI(
    title="Listing Enrichment API",
    description="Validate listing URLs and enrich listing CSVs with owner information",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Enrich-Total", "X-Enrich-Processed", "X-Enrich-Updated"],
)


class ValidateUrlBody(BaseModel):
    url: Optional[str] = None
    expected_platform: Optional[str] = None


def make_lookup_client(settings: Settings) -> OwnerLookupClient:
    return OwnerLookupClient(
        settings.api_base_url,
        source=settings.lookup_source,
        timeout=settings.request_timeout_s,
    )


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.post("/api/validate-url")
def validate_url(body: ValidateUrlBody):
    """
    Validate a URL and detect its platform.

    Forwards to the classification backend; when the backend cannot be
    reached, answers from the local classifier instead.
    """
    url = (body.url or "").strip()
    if not url:
        return JSONResponse({"error": "URL is required"}, status_code=400)
    if not (url.startswith("http://") or url.startswith("https://")):
        return JSONResponse({"error": "URL must start with http:// or https://"}, status_code=400)

    settings = Settings.from_env()
    try:
        reply = request_remote_detection(
            url, body.expected_platform, settings.backend_url, timeout=settings.request_timeout_s
        )
    except RemoteUnavailableError as e:
        logger.warning(f"Backend validation failed, using local detection: {e}")
    else:
        if reply.ok:
            return reply.body
        return JSONResponse(reply.body, status_code=reply.status_code)

    result = classify(url)
    payload = {
        "platform": result.platform,
        "table": result.table,
        "location": result.location.as_dict(),
        "isValid": result.platform is not None,
    }

    if body.expected_platform and result.platform != body.expected_platform:
        payload["isValid"] = False
        payload["error"] = f"URL is for {result.platform or 'unknown platform'}, but expected {body.expected_platform}"
        return JSONResponse(payload, status_code=400)

    if result.platform is None:
        payload["error"] = "Unknown or unsupported platform"
    return payload


@app.post("/enrich")
def enrich_csv(
    file: UploadFile = File(..., description="Listing CSV file to enrich"),
    source: Optional[str] = Form(None, description="Optional: override the lookup source"),
):
    """
    Enrich an uploaded listing CSV with owner information

    Returns:
        Enriched CSV; counters in X-Enrich-* headers
    """
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="File must be a CSV file")

    logger.info(f"Received enrichment request for file: {file.filename}")
    csv_bytes = file.file.read()

    settings = Settings.from_env()
    if source:
        settings = replace(settings, lookup_source=source.strip())

    with tempfile.TemporaryDirectory() as temp_dir:
        input_path = Path(temp_dir) / "input.csv"
        output_path = Path(temp_dir) / "enriched.csv"
        input_path.write_bytes(csv_bytes)

        try:
            stats = run_enrichment(
                input_path,
                output_path,
                settings=settings,
                client=make_lookup_client(settings),
            )
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="File must be UTF-8 encoded")
        except Exception as e:
            logger.error(f"Enrichment error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Enrichment failed: {str(e)}")

        content = output_path.read_bytes()

    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": 'attachment; filename="enriched.csv"',
            "X-Enrich-Total": str(stats.total),
            "X-Enrich-Processed": str(stats.processed),
            "X-Enrich-Updated": str(stats.updated),
        },
    )


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": "Listing Enrichment API",
        "version": __version__,
        "endpoints": {
            "health": "/health",
            "validate_url": "/api/validate-url (POST) - platform detection",
            "enrich": "/enrich (POST) - owner enrichment of a CSV upload",
        },
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    # For production, use: uvicorn api_server:app --host 0.0.0.0 --port 8000
    uvicorn.run(app, host="0.0.0.0", port=8000)
