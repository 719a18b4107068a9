import logging
from typing import Any, Dict, Optional

import httpx
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from recruitflow import config
from recruitflow.db import get_parse_log_collection
from recruitflow.errors import ResumeValidationError
from recruitflow.models import (
    ExtractRequest,
    ParsedResumeData,
    ParseLog,
    ParseOutcome,
    ParseResponse,
    ParseTextRequest,
)
from recruitflow.parser import extract_resume_fields, parse_resume_text, validate_resume_text
from recruitflow.text_extract import extract_text_from_upload

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="RecruitFlow Resume Parser")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


async def get_ai_client():
    async with httpx.AsyncClient(timeout=config.AI_TIMEOUT_SECONDS) as client:
        yield client


async def _record_parse(
    parse_logs: AsyncIOMotorCollection,
    outcome: ParseOutcome,
    text: str,
    filename: Optional[str] = None,
) -> Optional[str]:
    """Store a parse log; a database outage must not fail the parse itself."""
    log = ParseLog(
        filename=filename,
        text_chars=len(text),
        source=outcome.source,
        model=outcome.ai_model,
        ai_error=outcome.ai_error,
        confidence=outcome.data.confidence,
        processing_time_ms=outcome.processing_time_ms,
        parsed=outcome.data.model_dump(by_alias=True, mode="json"),
    )
    try:
        result = await parse_logs.insert_one(log.model_dump())
    except PyMongoError as e:
        logger.error("Failed to store parse log: %s", e)
        return None
    return str(result.inserted_id)


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.post("/parse-resume", response_model=ParseResponse)
async def parse_resume(
    req: ParseTextRequest,
    client: httpx.AsyncClient = Depends(get_ai_client),
    parse_logs: AsyncIOMotorCollection = Depends(get_parse_log_collection),
) -> ParseResponse:
    """Parse pasted resume text: AI first, rule-based extraction as fallback."""
    try:
        outcome = await parse_resume_text(req.text, model=req.model, client=client)
    except ResumeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    log_id = await _record_parse(parse_logs, outcome, req.text)
    return ParseResponse(id=log_id, outcome=outcome)


@app.post("/upload-resume", response_model=ParseResponse)
async def upload_resume(
    file: UploadFile = File(...),
    model: Optional[str] = Form(None),
    client: httpx.AsyncClient = Depends(get_ai_client),
    parse_logs: AsyncIOMotorCollection = Depends(get_parse_log_collection),
) -> ParseResponse:
    """Upload a PDF, DOCX or TXT resume and parse it."""
    content = await file.read()
    try:
        text = extract_text_from_upload(file.filename, content)
        logger.info("Extracted %d characters from %s", len(text), file.filename)
        outcome = await parse_resume_text(text, model=model, client=client)
    except ResumeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    log_id = await _record_parse(parse_logs, outcome, text, filename=file.filename)
    return ParseResponse(id=log_id, outcome=outcome)


@app.post("/extract", response_model=ParsedResumeData)
async def extract_only(req: ExtractRequest) -> ParsedResumeData:
    """Run only the rule-based extractor, without calling the AI service."""
    try:
        validate_resume_text(req.text)
    except ResumeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return extract_resume_fields(req.text)


@app.get("/parse-log/{log_id}")
async def get_parse_log(
    log_id: str,
    parse_logs: AsyncIOMotorCollection = Depends(get_parse_log_collection),
) -> Dict[str, Any]:
    try:
        oid = ObjectId(log_id)
    except InvalidId:
        raise HTTPException(status_code=400, detail="Invalid parse log id")

    doc = await parse_logs.find_one({"_id": oid})
    if not doc:
        raise HTTPException(status_code=404, detail="Parse log not found")
    doc["_id"] = str(doc["_id"])
    return doc
