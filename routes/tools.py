"""
Document tool routes.

Handles:
- POST /api/tools/<operation>         - Start merge / compress / images_to_pdf
- GET  /api/tools/<job_id>/status     - Poll progress
- GET  /api/tools/<job_id>/download   - Fetch the produced PDF
- DELETE /api/tools/<job_id>          - Tool dialog closed, drop the job

Uploaded files are read into memory and handed to ToolService; nothing
is written to disk. The produced PDF is released from memory shortly
after it was downloaded.
"""

import html
from io import BytesIO
from typing import Any, Dict, List, Optional

import bleach
from flask import Blueprint, current_app, request, send_file
from werkzeug.utils import secure_filename

from core.exceptions import InvalidSelectionError
from models.requirements import RequirementResult
from models.tool_job import InputFile, ToolJob, ToolOperation, ToolStatus
from modules.document_producer import suggest_file_names
from modules.requirement_engine import evaluate_requirements
from services.state_store import SessionStateStore
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

tools_bp = Blueprint("tools", __name__)

_store = SessionStateStore()

# Constants
MAX_FILENAME_LENGTH = 255


def _strip_markup(text: str) -> str:
    """Remove HTML tags, leaving plain text (no entity escaping)."""
    return html.unescape(bleach.clean(text, tags=[], strip=True))


def _sanitize_file_name(name: Optional[str], default: str) -> str:
    """
    Clean a caller-chosen download name.

    Markup is stripped, the name is reduced to a safe ASCII file name and
    always ends in .pdf.
    """
    if not name:
        return default

    safe = secure_filename(_strip_markup(name.strip()))
    if not safe:
        return default

    if safe.lower().endswith(".pdf"):
        safe = safe[:-4]
    safe = safe[:MAX_FILENAME_LENGTH - 4]
    return f"{safe}.pdf" if safe else default


def _parse_operation(value: str) -> Optional[ToolOperation]:
    try:
        return ToolOperation(value.replace("-", "_"))
    except ValueError:
        return None


def _read_uploads() -> List[InputFile]:
    """Read the multipart 'files' field in the order the client sent them."""
    files = []
    for storage in request.files.getlist("files"):
        if not storage or not storage.filename:
            continue
        files.append(InputFile(
            data=storage.read(),
            mime_hint=storage.mimetype or "",
            original_name=_strip_markup(storage.filename),
        ))
    return files


def _input_summary(files: List[InputFile]) -> List[Dict[str, Any]]:
    pdf_analyzer = current_app.config.get("PDF_ANALYZER")
    summary = []
    for input_file in files:
        if input_file.is_pdf and pdf_analyzer:
            summary.append(pdf_analyzer.analyze(input_file.data, input_file.original_name))
        else:
            summary.append({
                "name": input_file.original_name,
                "size_kb": round(input_file.size / 1024, 2),
            })
    return summary


def _session_checklist() -> Optional[RequirementResult]:
    """Checklist for the session's answers, None while the wizard is unfinished."""
    state = _store.load()
    if state is None:
        return None
    try:
        return evaluate_requirements(
            state.selection,
            forms_base_url=current_app.config.get("DECLARATION_FORMS_BASE_URL"),
        )
    except InvalidSelectionError:
        return None


@tools_bp.route("/api/tools/<operation>", methods=["POST"])
def submit_tool_job(operation: str):
    """
    Start a document tool job.

    Form fields:
        files: One or more files, in the order they should appear
    """
    tool_operation = _parse_operation(operation)
    if tool_operation is None:
        return {"error": f"Unknown tool operation: {operation}"}, 404

    tool_service = current_app.config.get("TOOL_SERVICE")
    if not tool_service:
        return {"error": "Tool service unavailable"}, 503

    files = _read_uploads()
    if not files:
        return {"error": "Please choose at least one file."}, 400

    job = ToolJob(operation=tool_operation, input_files=tuple(files))
    job_id = tool_service.submit(job)
    logger.info(f"Accepted {tool_operation.value} job {job_id[:8]} with {len(files)} file(s)")

    return {
        "job_id": job_id,
        "operation": tool_operation.value,
        "inputs": _input_summary(files),
    }, 202


@tools_bp.route("/api/tools/<job_id>/status", methods=["GET"])
def tool_status(job_id: str):
    """Progress and outcome of a tool job."""
    tool_service = current_app.config.get("TOOL_SERVICE")
    status = tool_service.status(job_id) if tool_service else None
    if status is None:
        return {
            "job_id": job_id,
            "status": "unknown",
            "message": "Job not found. It may have expired; please run the tool again.",
            "complete": True,
        }, 404

    if status["status"] == ToolStatus.COMPLETED.value:
        status["file_names"] = suggest_file_names(
            ToolOperation(status["operation"]), _session_checklist()
        )
    return status


@tools_bp.route("/api/tools/<job_id>/download", methods=["GET"])
def download_tool_output(job_id: str):
    """
    Download the produced PDF.

    Query:
        name: Optional file name for the attachment
    """
    tool_service = current_app.config.get("TOOL_SERVICE")
    output = tool_service.take_output(job_id) if tool_service else None
    if output is None:
        return {"error": "No finished document for this job"}, 404

    download_name = _sanitize_file_name(request.args.get("name"), output.suggested_name)
    logger.info(f"Serving {download_name} ({output.size // 1024} KB) for job {job_id[:8]}")

    return send_file(
        BytesIO(output.data),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=download_name,
    )


@tools_bp.route("/api/tools/<job_id>", methods=["DELETE"])
def release_tool_job(job_id: str):
    """Drop a finished job when the tool dialog is closed."""
    tool_service = current_app.config.get("TOOL_SERVICE")
    status = tool_service.status(job_id) if tool_service else None
    if status is None:
        return {"error": "Job not found"}, 404
    if not status["complete"]:
        return {"error": "Job is still processing"}, 409

    tool_service.release(job_id)
    logger.info(f"Released job {job_id[:8]} on dialog close")
    return {"job_id": job_id, "released": True}
