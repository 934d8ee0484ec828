"""Tests for document payloads and text extraction."""

import base64
from pathlib import Path

import fitz
import pytest

from handbook_chat.core.errors import InvalidInputError
from handbook_chat.documents.loaders import LoaderRegistry, extract_text, validate_document
from handbook_chat.documents.types import Document, parse_data_uri
from handbook_chat.utils.hashing import fingerprint


def test_data_uri_round_trip() -> None:
    document = Document(content="Grüße aus dem Handbuch.".encode("utf-8"), mime="text/plain", origin="upload")
    uri = document.to_data_uri()
    assert uri.startswith("data:text/plain;base64,")
    restored = Document.from_data_uri(uri)
    assert restored.content == document.content
    assert restored.origin == "upload"


def test_data_uri_with_charset_parameter() -> None:
    payload = base64.b64encode(b"Hello.").decode("ascii")
    mime, content = parse_data_uri(f"data:text/plain;charset=utf-8;base64,{payload}")
    assert (mime, content) == ("text/plain", b"Hello.")


@pytest.mark.parametrize(
    "uri",
    [
        "not a data uri",
        "data:text/plain,plain-text-not-base64",
        "data:text/plain;base64,@@@not-base64@@@",
    ],
)
def test_malformed_data_uri_rejected(uri: str) -> None:
    with pytest.raises(InvalidInputError):
        Document.from_data_uri(uri)


def test_unsupported_or_empty_documents_rejected() -> None:
    with pytest.raises(InvalidInputError):
        Document(content=b"GIF89a", mime="image/gif")
    with pytest.raises(InvalidInputError):
        Document(content=b"", mime="text/plain")


def test_from_path_guesses_mime(tmp_path: Path) -> None:
    path = tmp_path / "handbook.md"
    path.write_text("# Title\n\nFirst paragraph.", encoding="utf-8")
    document = Document.from_path(path)
    assert document.mime == "text/markdown"
    assert document.name == "handbook.md"
    assert document.origin == "asset"


def test_plain_text_is_decoded_verbatim() -> None:
    text = "Line one.\n\nLine two."
    assert extract_text(Document(content=text.encode("utf-8"), mime="text/plain")) == text


def test_invalid_utf8_rejected() -> None:
    with pytest.raises(InvalidInputError):
        extract_text(Document(content=b"\xff\xfe\xfa", mime="text/plain"))


def test_markdown_is_flattened_to_blocks() -> None:
    document = Document(content=b"# Safety\n\nGround the aircraft.\n\n- Check extinguishers.", mime="text/markdown")
    text = extract_text(document)
    assert "Safety" in text
    assert "Ground the aircraft." in text
    assert "#" not in text


def test_pdf_text_extraction() -> None:
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), "Refuelling requires grounding.")
    content = pdf.tobytes()
    pdf.close()

    text = LoaderRegistry().extract_text(Document(content=content, mime="application/pdf"))
    assert "Refuelling requires grounding." in text


def test_corrupt_pdf_rejected() -> None:
    with pytest.raises(InvalidInputError):
        extract_text(Document(content=b"definitely not a pdf", mime="application/pdf"))


def test_digest_helpers() -> None:
    document = Document(content=b"Hello.", mime="text/plain")
    assert len(document.sha256) == 64
    assert fingerprint(document.content) == document.sha256[:12]


def test_validate_document_checks_payload() -> None:
    text = Document(content=b"Hello.", mime="text/plain")
    assert validate_document(text) is text
    with pytest.raises(InvalidInputError):
        validate_document(Document(content=b"\xff\xfe not utf8", mime="text/plain"))
    with pytest.raises(InvalidInputError):
        validate_document(Document(content=b"not a pdf at all", mime="application/pdf"))


def test_validate_accepts_real_pdf() -> None:
    pdf = fitz.open()
    pdf.new_page()
    content = pdf.tobytes()
    pdf.close()
    validate_document(Document(content=content, mime="application/pdf"))
