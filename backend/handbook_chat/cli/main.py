"""CLI entrypoint for Handbook Chat."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from handbook_chat.documents.loaders import extract_text
from handbook_chat.documents.types import Document
from handbook_chat.ingest.chunker import DEFAULT_MAX_CHUNK_LENGTH, build_chunks, chunk_text

app = typer.Typer(name="hbchat", help="Handbook Chat command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("HBCHAT_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _headers(admin_token: Optional[str]) -> dict[str, str]:
    token = admin_token or os.environ.get("HBCHAT_ADMIN_TOKEN")
    return {"X-Admin-Token": token} if token else {}


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=300, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def reindex(
    path: Optional[Path] = typer.Option(None, "--path", help="Index this document instead of the configured handbook"),
    upload: bool = typer.Option(False, "--upload", help="Send the document contents instead of its server-side path"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
    admin_token: Optional[str] = typer.Option(None, "--admin-token", help="Admin token for index routes"),
) -> None:
    """Rebuild the handbook index collection."""
    body: dict[str, object] = {}
    if path and upload:
        body["data_uri"] = Document.from_path(path, origin="upload").to_data_uri()
    elif path:
        body["path"] = str(path.expanduser())
    resp = _request("POST", "/index/rebuild", host=host, json=body, headers=_headers(admin_token))
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def stats(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
    admin_token: Optional[str] = typer.Option(None, "--admin-token", help="Admin token for index routes"),
) -> None:
    """Show index collection statistics."""
    resp = _request("GET", "/index/stats", host=host, headers=_headers(admin_token))
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def chunk(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to split"),
    max_chunk_length: int = typer.Option(DEFAULT_MAX_CHUNK_LENGTH, "--max-length", help="Packing threshold in characters"),
) -> None:
    """Preview chunk boundaries locally without embedding anything."""
    chunks = build_chunks(chunk_text(extract_text(Document.from_path(path)), max_chunk_length))
    payload = [{"ordinal": c.ordinal, "length": len(c.text), "text": c.text} for c in chunks]
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
