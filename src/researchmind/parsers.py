"""Text extraction for uploaded documents.

Each parser reads a file and returns plain text. PDF extraction also
reports the character offset at which every page starts so chunks can
carry page numbers.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
import zipfile
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from docx import Document as DocxDocument
from pypdf import PdfReader

from .errors import ParseError, UnsupportedSourceError
from .models import Source, SourceType

logger = logging.getLogger(__name__)

EXTENSION_TYPES: Dict[str, SourceType] = {
    "pdf": "pdf",
    "docx": "docx",
    "pptx": "ppt",
    "txt": "text",
    "md": "text",
}

_SLIDE_NAME = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
_TEXT_RUN = "{http://schemas.openxmlformats.org/drawingml/2006/main}t"


def source_from_file(path: str) -> Source:
    """Builds a pending source for ``path``; the type comes from the extension."""
    name = os.path.basename(path)
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    source_type = EXTENSION_TYPES.get(ext)
    if source_type is None:
        raise UnsupportedSourceError(f'File type for "{name}" is not supported.')
    return Source(type=source_type, title=name, path=path, status="pending")


def source_from_text(text: str, now: Optional[datetime] = None) -> Source:
    """Pasted text needs no parsing, so the source starts out complete."""
    now = now or datetime.now()
    return Source(type="pasted", title=f"Pasted Text ({now.strftime('%H:%M:%S')})",
                  content=text, status="complete")


def _read_pdf(path: str) -> Tuple[str, List[int]]:
    reader = PdfReader(path)
    text = ""
    breaks: List[int] = []
    for page in reader.pages:
        breaks.append(len(text))
        text += (page.extract_text() or "") + "\n\n"
    return text, breaks


def _read_docx(path: str) -> str:
    doc = DocxDocument(path)
    return "\n".join(p.text for p in doc.paragraphs)


def _read_pptx(path: str) -> str:
    with zipfile.ZipFile(path) as archive:
        slides = []
        for name in archive.namelist():
            m = _SLIDE_NAME.match(name)
            if m:
                slides.append((int(m.group(1)), name))
        parts = []
        for _, name in sorted(slides):
            root = ET.fromstring(archive.read(name))
            runs = [el.text or "" for el in root.iter(_TEXT_RUN)]
            parts.append(" ".join(runs) + "\n\n")
    return "".join(parts)


def _read_text(path: str) -> str:
    with open(path, "rb") as f:
        data = f.read()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def extract_text(source: Source) -> Tuple[str, Optional[List[int]]]:
    """Blocking extraction; returns the text and page breaks when known."""
    if source.type == "pasted":
        return source.content, None
    if not source.path:
        raise ParseError(source.title, "no file to read")
    try:
        if source.type == "pdf":
            return _read_pdf(source.path)
        if source.type == "docx":
            return _read_docx(source.path), None
        if source.type == "ppt":
            return _read_pptx(source.path), None
        return _read_text(source.path), None
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(source.title, str(e) or type(e).__name__) from e


async def parse_source(source: Source) -> Source:
    """
    Parses ``source`` off the event loop and returns a completed copy.

    Raises ``ParseError``; the input source is never modified.
    """
    text, breaks = await asyncio.to_thread(extract_text, source)
    logger.debug("Parsed %s (%d chars)", source.title, len(text))
    return source.model_copy(update={"content": text, "pageBreaks": breaks, "status": "complete", "error": None})
