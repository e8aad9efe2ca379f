"""Shared fixtures: settings overrides, a scripted chat model, tiny PDFs."""

import dataclasses
import itertools
from typing import Iterable, List, Sequence

import pytest

from src.agent.state import AI, Message, ToolCall
from src.utils.config import settings


@pytest.fixture
def test_settings():
    return dataclasses.replace(
        settings,
        environment="test",
        frontend_url="http://localhost:3000",
        allowed_origins=["http://localhost:3000"],
        jwt_secret="test-secret",
        session_secret="test-session-secret",
        session_secure=False,
        auth_required=True,
        auth_token_in_redirect=True,
        auth0_domain="example.auth0.com",
        auth0_client_id="client-id",
        auth0_client_secret="client-secret",
        webhook_api_key="hook-key",
        domain_restrictions_enabled=False,
        universal_fallback=False,
    )


class ScriptedModel:
    """Chat model double that replays canned responses and records every call."""

    def __init__(self, responses: Iterable[Message]):
        self._responses = iter(responses)
        self.calls: List[dict] = []

    async def complete(self, messages: Sequence[Message], tools=()) -> Message:
        self.calls.append({"messages": list(messages), "tools": [t.name.value for t in tools]})
        return next(self._responses)


_ids = itertools.count(1)


def tool_call(name: str, **arguments) -> ToolCall:
    return ToolCall(id=f"call_{next(_ids)}", name=name, arguments=arguments)


def ai(content: str = "", *calls: ToolCall) -> Message:
    return Message(role=AI, content=content, tool_calls=tuple(calls))


@pytest.fixture
def scripted_model():
    return ScriptedModel


@pytest.fixture
def make_tool_call():
    return tool_call


@pytest.fixture
def make_ai():
    return ai


def build_pdf(pages: Sequence[str]) -> bytes:
    """Smallest valid PDF with one line of Helvetica text per page."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for pid, text in zip(page_ids, pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
            ).encode()
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def make_pdf():
    return build_pdf
