from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import docx
from docx.opc.exceptions import PackageNotFoundError
import fitz  # type: ignore
import pdfplumber

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


@dataclass
class ResumeParseResult:
    raw_text: str
    method: str
    metadata: Optional[dict] = None


def _extract_with_pdfplumber(path: str) -> Optional[str]:
    try:
        text_chunks = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                text_chunks.append(page.extract_text() or "")
        text = "\n".join(text_chunks).strip()
        return text or None
    except Exception as exc:  # pragma: no cover - safety
        logger.warning("pdfplumber failed, will fallback: %s", exc)
        return None


def _extract_with_pymupdf(path: str) -> Optional[str]:
    try:
        with fitz.open(path) as doc:
            text_chunks = [page.get_text() for page in doc]
        text = "\n".join(text_chunks).strip()
        return text or None
    except Exception as exc:  # pragma: no cover - safety
        logger.warning("pymupdf failed: %s", exc)
        return None


def parse_resume_pdf(path: str) -> ResumeParseResult:
    """
    Extract resume text preferring pdfplumber first, then falling back to pymupdf.
    """
    text = _extract_with_pdfplumber(path)
    method_used = "pdfplumber"

    if not text or _is_low_quality(text):
        fallback_text = _extract_with_pymupdf(path)
        if fallback_text:
            text = fallback_text
            method_used = "pymupdf"

    if not text:
        raise ValueError("Unable to extract text from PDF with available extractors")

    return ResumeParseResult(raw_text=text, method=method_used, metadata={"path": path})


def parse_resume_docx(path: str) -> ResumeParseResult:
    try:
        document = docx.Document(path)
    except (PackageNotFoundError, zipfile.BadZipFile) as exc:
        raise ValueError(f"Could not open DOCX file: {exc}") from exc
    lines = [p.text.strip() for p in document.paragraphs if p.text.strip()]
    # Two-column resumes often keep the contact block or skills in a table.
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    text = "\n".join(lines).strip()
    if not text:
        raise ValueError("DOCX file contains no text")
    return ResumeParseResult(raw_text=text, method="python-docx", metadata={"path": path})


def parse_resume_txt(path: str) -> ResumeParseResult:
    text = Path(path).read_text(encoding="utf-8", errors="replace").strip()
    if not text:
        raise ValueError("Text file is empty")
    return ResumeParseResult(raw_text=text, method="text", metadata={"path": path})


def parse_resume_file(path: str) -> ResumeParseResult:
    suffix = Path(path).suffix.lower()
    if suffix == ".pdf":
        return parse_resume_pdf(path)
    if suffix == ".docx":
        return parse_resume_docx(path)
    if suffix == ".txt":
        return parse_resume_txt(path)
    raise ValueError(
        f"Unsupported file type '{suffix or path}'. Upload one of: {', '.join(SUPPORTED_EXTENSIONS)}"
    )


def _is_low_quality(text: str) -> bool:
    # Basic heuristic: very few unique words implies extraction failed.
    words = [w for w in text.split() if w.isalpha()]
    unique_ratio = len(set(words)) / max(len(words), 1)
    return unique_ratio < 0.15 or len(text) < 100
