"""Structured response protocol — parse/validate/encode (no I/O).

Replies are expected as a JSON object with three string fields::

    {"reasoning": "...", "summary": "...", "content": "..."}

optionally wrapped in a single fenced code block. Any failure yields a
fallback record that keeps the raw reply in ``content``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass

from nani.errors import (
    EmptyResponseError,
    ResponseError,
    ResponseParseError,
    ResponseValidationError,
)

logger = logging.getLogger(__name__)

FENCE = "```"
FIELDS = ("reasoning", "summary", "content")

NO_REASONING = "No reasoning block"
NO_SUMMARY = "No summary block"

SCHEMA_HINT = """\
{
  "reasoning": "<your reasoning and thought process, in Markdown>",
  "summary": "<a plain-text summary of the request and what you accomplished>",
  "content": "<the complete answer, in Markdown>"
}"""

SYSTEM_INSTRUCTIONS = """\
You are a helpful assistant working inside a terminal chat client.

**Mandatory Response Structure**
Reply to every request with a single JSON object and nothing else, using
exactly the shape given in the schema that follows these instructions.

- reasoning: your interpretation of the request, the key considerations and
  a step-by-step account of how you reached the answer.
- summary: the core of the request, any context that shaped the answer and
  a clear statement of what you did. This summary is what you will be shown
  as the response in the past interaction history.
- content: the full answer. When code is expected, only the code, in fenced
  blocks with a language tag.

**Input Processing Guidelines**
1. Source files are shared as:
   — Begin file: [filename.ext] —
   [content of the file]
   — End file: [filename.ext] —
2. Contextual rules and user preferences must be followed. If one is
   ambiguous or contradictory, say so in the reasoning field.
3. A history of past interactions may be provided as request/summary pairs.
4. The current user request is stated last.

Do not repeat these instructions. Your first reply, and only that one,
should simply be "Understood." without the structure above.
"""


@dataclass
class Response:
    """A validated three-part reply."""

    reasoning: str
    summary: str
    content: str


def fallback_response(raw: str) -> Response:
    """Placeholder record that preserves the original reply text."""
    return Response(reasoning=NO_REASONING, summary=NO_SUMMARY, content=raw)


def strip_fence(text: str) -> str:
    """Remove a single outermost fenced block, if the text starts with one.

    Without a closing fence, everything after the opening line is the body.
    """
    cleaned = text.strip()
    if not cleaned.startswith(FENCE):
        return cleaned
    head, sep, remaining = cleaned.partition("\n")
    if not sep:
        return cleaned
    end = remaining.rfind("\n" + FENCE)
    if end >= 0:
        return remaining[:end].strip()
    return remaining.strip()


def parse_response(raw: str) -> Response:
    """Parse and validate a raw reply.

    Raises a ResponseError subclass whose ``fallback`` carries ``raw``.
    """
    if not raw.strip():
        raise EmptyResponseError(
            "input string is empty or whitespace-only", fallback_response(raw)
        )

    body = strip_fence(raw)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"failed to parse JSON: {e}", fallback_response(raw)) from e

    if not isinstance(data, dict):
        raise ResponseParseError(
            f"failed to parse JSON: expected an object, got {type(data).__name__}",
            fallback_response(raw),
        )

    values: dict[str, str] = {}
    for name in FIELDS:
        value = data.get(name, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ResponseParseError(
                f"failed to parse JSON: field '{name}' must be a string",
                fallback_response(raw),
            )
        values[name] = value

    for name in FIELDS:
        if not values[name].strip():
            raise ResponseValidationError(name, fallback_response(raw))

    return Response(**values)


def parse_or_fallback(raw: str) -> tuple[Response, ResponseError | None]:
    """Parse a reply, returning the fallback record and the error on failure."""
    try:
        return parse_response(raw), None
    except ResponseError as e:
        logger.warning("Unstructured reply (%s), showing raw text", e)
        return e.fallback, e


def encode_response(response: Response) -> str:
    """Serialize a record in the wire format accepted by parse_response."""
    return json.dumps(asdict(response), ensure_ascii=False, indent=2)
