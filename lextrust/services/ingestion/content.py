"""Content helpers for ingested authorities.

Hashing, storage naming, plain-text extraction and the Akoma Ntoso-style
structured payload stored on each source.
"""

import hashlib
import re
import unicodedata
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from lextrust.schemas.ingestion import NormalizedDocument

MIME_EXTENSION = {
    "application/pdf": "pdf",
    "text/plain": "txt",
    "text/html": "html",
}

SECTION_HEADING = re.compile(r"^(titre|chapitre|section)\s+[ivxlcdm0-9a-z-]+", re.IGNORECASE)
ARTICLE_HEADING = re.compile(r"^(article|art\.)\s*[0-9a-z][0-9a-z.-]*", re.IGNORECASE)
HEADING_SEPARATOR = re.compile(r"^[-:–—]\s*")
EXCERPT_LIMIT = 400


def sha256_hex(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def slugify(value: str) -> str:
    """ASCII slug used for storage object names."""
    decomposed = unicodedata.normalize("NFD", value or "")
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = re.sub(r"[^\w\s-]", "", without_marks, flags=re.ASCII).strip()
    return re.sub(r"[\s_-]+", "-", cleaned).lower()


def extension_for_mime(mime_type: Optional[str]) -> str:
    return MIME_EXTENSION.get((mime_type or "").lower(), "bin")


def storage_path(org_id: str, residency_zone: str, title: str, mime_type: Optional[str]) -> str:
    """Object path ``{org}/{zone}/{slug}.{ext}`` inside the authorities bucket."""
    slug = slugify(title) or "document"
    return f"{org_id}/{residency_zone}/{slug}.{extension_for_mime(mime_type)}"


def placeholder_payload(title: str, canonical_url: str) -> bytes:
    """Deterministic body stored when the download fails."""
    return f"Document placeholder for {title} ({canonical_url})".encode("utf-8")


def _normalise_lines(text: str) -> str:
    lines = (re.sub(r"[ \t\r\f\v]+", " ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def extract_plain_text(payload: bytes, mime_type: Optional[str]) -> str:
    """Plain text of a downloaded body.

    Markup (HTML, XHTML, XML) is parsed and stripped of scripts and styles,
    ``text/*`` is decoded as is, and any other type yields an empty string.
    Line breaks are kept so headings stay on their own line.
    """
    if not payload:
        return ""
    mime = (mime_type or "").lower()
    decoded = payload.decode("utf-8", errors="replace")

    if "html" in mime or "xml" in mime:
        soup = BeautifulSoup(decoded, "lxml")
        for node in soup(["script", "style"]):
            node.decompose()
        return _normalise_lines(soup.get_text("\n"))
    if mime.startswith("text/"):
        return _normalise_lines(decoded)
    return ""


def _excerpt(paragraphs: List[str]) -> str:
    text = " ".join(paragraphs).strip()
    if len(text) <= EXCERPT_LIMIT:
        return text
    return f"{text[:EXCERPT_LIMIT - 3]}..."


def build_akoma_body(text: str) -> Optional[Dict[str, Any]]:
    """Split plain text into sections and articles by their headings.

    Args:
        text: Plain text of the document, one block per line.

    Returns:
        ``{"sections": [...], "articles": [...]}`` or ``None`` for empty text.
    """
    lines = [line for line in _normalise_lines(text or "").split("\n") if line]
    if not lines:
        return None

    sections: List[Dict[str, Any]] = []
    root_articles: List[Dict[str, Any]] = []
    current_section: Optional[Dict[str, Any]] = None
    current_article: Optional[Dict[str, Any]] = None

    for line in lines:
        if SECTION_HEADING.match(line):
            current_section = {"heading": line, "articles": []}
            sections.append(current_section)
            current_article = None
            continue

        match = ARTICLE_HEADING.match(line)
        if match:
            remainder = HEADING_SEPARATOR.sub("", line[match.end():].strip())
            current_article = {
                "marker": match.group(0),
                "heading": line,
                "paragraphs": [remainder] if remainder else [],
                "excerpt": "",
                "section": current_section["heading"] if current_section else None,
            }
            if current_section is not None:
                current_section["articles"].append(current_article)
            else:
                root_articles.append(current_article)
            continue

        if current_article is not None:
            current_article["paragraphs"].append(line)

    articles = [article for section in sections for article in section["articles"]] + root_articles
    for article in articles:
        article["excerpt"] = _excerpt(article["paragraphs"])

    return {"sections": sections, "articles": articles}


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def build_akoma_payload(
    doc: NormalizedDocument,
    eli: Optional[str],
    ecli: Optional[str],
    body: Optional[Dict[str, Any]],
    captured_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Structured payload persisted on ``sources.akoma_ntoso``."""
    captured = captured_at or datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "meta": {
            "identification": {
                "source": doc.publisher,
                "jurisdiction": doc.jurisdiction_code,
                "eli": eli,
                "ecli": ecli,
                "workURI": doc.canonical_url,
            },
            "publication": {
                "adoptionDate": _iso(doc.adoption_date),
                "effectiveDate": _iso(doc.effective_date),
                "capturedAt": captured.isoformat(),
                "consolidated": doc.consolidated,
                "bindingLanguage": doc.binding_language,
                "languageNote": doc.language_note,
            },
        }
    }
    if body and (body.get("articles") or body.get("sections")):
        payload["body"] = body
    return payload
