"""Proof retrieval from content-addressed storage and text extraction."""

from __future__ import annotations

import json
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs"
DEFAULT_TIMEOUT = 30.0

# Fields checked, in order, when the proof payload is a JSON object
_TEXT_FIELDS = ("proof", "content", "description")


class ProofFetchError(Exception):
    """The proof reference could not be resolved or retrieved."""


def resolve_proof_url(reference: str, gateway_url: str = DEFAULT_GATEWAY_URL) -> str:
    """Turn a CID, ``ipfs://`` URI or HTTP URL into a fetchable URL."""
    ref = reference.strip()
    gateway = gateway_url.rstrip("/")
    if ref.startswith("ipfs://"):
        return f"{gateway}/{ref[len('ipfs://'):].lstrip('/')}"
    if ref.startswith("Qm") or ref.startswith("bafy"):
        return f"{gateway}/{ref}"
    if ref.startswith("http://") or ref.startswith("https://"):
        return ref
    raise ProofFetchError(f"Invalid proof reference: {reference!r}")


def fetch_proof(
    reference: str,
    *,
    client: httpx.Client | None = None,
    gateway_url: str = DEFAULT_GATEWAY_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Fetch the raw proof payload, bounded by *timeout* seconds."""
    url = resolve_proof_url(reference, gateway_url)
    owns_client = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        return response.text
    except httpx.HTTPError as exc:
        raise ProofFetchError(f"Failed to fetch proof from {url}: {exc}") from exc
    finally:
        if owns_client:
            http.close()


def parse_proof_content(content: str) -> str:
    """Extract the proof text from a payload.

    A JSON object yields its ``proof`` field, else ``content``, else
    ``description``, else the object re-serialized. Anything that is not
    JSON is returned as-is.
    """
    try:
        parsed = json.loads(content)
    except ValueError:
        return content

    if isinstance(parsed, dict):
        for key in _TEXT_FIELDS:
            value = parsed.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
    return json.dumps(parsed)
