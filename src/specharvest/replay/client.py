#!/usr/bin/env python3
"""
SPECHARVEST REPLAY CLIENT
-------------------------
Turns extracted requests into HTTP calls through `httpx`.

The target is either a base URL, or an in-process handler called with an
`httpx.Request` and returning an `httpx.Response` (wired through
`httpx.MockTransport`).

Author: SpecHarvest Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

import httpx

from specharvest.core.models import Header, RequestSpec

Handler = Callable[[httpx.Request], httpx.Response]
Target = Union[str, Handler]

IN_PROCESS_BASE = "http://localhost"
BODYLESS_METHODS = ("GET", "HEAD")


@dataclass
class PreparedRequest:
    method: str
    path: str
    headers: List[Header] = field(default_factory=list)
    content: Optional[str] = None


def normalize_path(path: str) -> str:
    """Leading slash, and literal `#` escaped so it is sent rather than dropped as a fragment."""
    if not path.startswith("/"):
        path = "/" + path
    return path.replace("#", "%23")


def build_request(request: RequestSpec) -> PreparedRequest:
    headers = list(request.headers)
    content = None

    if request.body is not None and request.method not in BODYLESS_METHODS:
        content = request.body
        if not any(name.lower() == "content-type" for name, _ in headers):
            headers.append(("Content-Type", "application/json"))

    return PreparedRequest(
        method=request.method,
        path=normalize_path(request.path),
        headers=headers,
        content=content,
    )


def build_client(target: Target, timeout: float = 10.0) -> httpx.Client:
    """Creates an `httpx.Client` bound to the target, with redirects left unfollowed."""
    if callable(target):
        return httpx.Client(
            base_url=IN_PROCESS_BASE,
            transport=httpx.MockTransport(target),
            timeout=httpx.Timeout(timeout),
        )
    return httpx.Client(
        base_url=target.rstrip("/"),
        timeout=httpx.Timeout(timeout),
        follow_redirects=False,
    )


def send(client: httpx.Client, request: RequestSpec) -> httpx.Response:
    prepared = build_request(request)
    return client.request(
        prepared.method,
        prepared.path,
        headers=prepared.headers,
        content=prepared.content,
    )
