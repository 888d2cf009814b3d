"""JSONL record parsing and searchable-text extraction."""

import json
import logging
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from cc_grep.errors import FileReadError, MalformedRecord
from cc_grep.models import (
    ContentBlock,
    Record,
    RecordKind,
    TextBlock,
    ThinkingBlock,
    ToolCall,
    ToolResult,
)

logger = logging.getLogger(__name__)

READ_BUFFER_SIZE = 256 * 1024


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp (with optional trailing Z)."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise MalformedRecord(f"timestamp is not a string: {value!r}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise MalformedRecord(f"invalid timestamp: {value!r}") from None


def parse_blocks(content: Any) -> tuple[ContentBlock, ...]:
    """Convert message content (string or list of blocks) to typed blocks."""
    if isinstance(content, str):
        return (TextBlock(content),) if content else ()
    if not isinstance(content, list):
        return ()

    blocks: list[ContentBlock] = []
    for block in content:
        if isinstance(block, str):
            blocks.append(TextBlock(block))
            continue
        if not isinstance(block, dict):
            continue

        block_type = block.get("type")
        if block_type == "text":
            blocks.append(TextBlock(str(block.get("text") or "")))
        elif block_type == "thinking":
            blocks.append(ThinkingBlock(str(block.get("thinking") or "")))
        elif block_type == "tool_use":
            blocks.append(ToolCall(str(block.get("name") or "unknown"), block.get("input")))
        elif block_type == "tool_result":
            blocks.append(ToolResult(block.get("content")))
        # images, documents and future block types carry no searchable text

    return tuple(blocks)


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def parse_record(line: str | bytes) -> Record:
    """Decode one JSONL line into a Record.

    Raises MalformedRecord if the line cannot be used; callers skip it.
    """
    try:
        data = json.loads(line)
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise MalformedRecord(f"invalid JSON: {e}") from None
    except RecursionError:
        raise MalformedRecord("invalid JSON: nested too deeply") from None

    if not isinstance(data, dict):
        raise MalformedRecord("record is not a JSON object")

    record_type = data.get("type")
    if not isinstance(record_type, str):
        raise MalformedRecord("missing 'type' field")

    kind = RecordKind.from_type(record_type)
    timestamp = parse_timestamp(data.get("timestamp"))
    branch = data.get("gitBranch") or None

    role = None
    content: tuple[ContentBlock, ...] = ()
    if kind in (RecordKind.USER, RecordKind.ASSISTANT, RecordKind.SYSTEM):
        message = data.get("message")
        if isinstance(message, dict):
            role = message.get("role") or kind.value
            if not isinstance(role, str):
                raise MalformedRecord(f"role is not a string: {role!r}")
            content = parse_blocks(message.get("content"))
        elif kind == RecordKind.SYSTEM:
            # System notices keep their text at the top level
            role = kind.value
            content = parse_blocks(data.get("content"))
        else:
            raise MalformedRecord(f"{record_type} record without a message object")

    return Record(
        kind=kind,
        timestamp=timestamp,
        role=role,
        content=content,
        uuid=_optional_str(data.get("uuid")),
        git_branch=_optional_str(branch),
        cwd=_optional_str(data.get("cwd")),
    )


def payload_text(payload: Any) -> str:
    """Flatten a tool-result payload to text."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, list):
        parts = []
        for item in payload:
            if isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text") or ""))
            elif isinstance(item, str):
                parts.append(item)
            else:
                parts.append(json.dumps(item, ensure_ascii=False))
        return "\n".join(parts)
    return json.dumps(payload, ensure_ascii=False)


def arguments_text(arguments: Any) -> str:
    if arguments is None:
        return ""
    return json.dumps(arguments, ensure_ascii=False)


def searchable_text(record: Record) -> str:
    """Text the matcher scans for a record.

    Order is fixed: text and thinking blocks, then tool calls, then tool results.
    """
    prose: list[str] = []
    calls: list[str] = []
    results: list[str] = []

    for block in record.content:
        if isinstance(block, TextBlock):
            prose.append(block.text)
        elif isinstance(block, ThinkingBlock):
            prose.append(block.thinking)
        elif isinstance(block, ToolCall):
            calls.append(f"[tool: {block.name}] {arguments_text(block.arguments)}")
        elif isinstance(block, ToolResult):
            text = payload_text(block.payload)
            if text:
                results.append(f"[result] {text}")

    return "\n".join(prose + calls + results)


def display_text(record: Record, thinking: bool = True) -> str:
    """Text for rendering a record, in block order."""
    parts: list[str] = []
    for block in record.content:
        if isinstance(block, TextBlock):
            parts.append(block.text)
        elif isinstance(block, ThinkingBlock):
            if thinking:
                parts.append(f"[thinking] {block.thinking}")
        elif isinstance(block, ToolCall):
            parts.append(f"[tool: {block.name}] {arguments_text(block.arguments)}")
        elif isinstance(block, ToolResult):
            text = payload_text(block.payload)
            if text:
                parts.append(f"[result] {text}")
    return "\n".join(parts)


def tool_calls(record: Record) -> list[ToolCall]:
    return [block for block in record.content if isinstance(block, ToolCall)]


def tool_names(record: Record) -> list[str]:
    return [call.name for call in tool_calls(record)]


def iter_lines(path: Path) -> Iterator[tuple[int, Record | MalformedRecord]]:
    """Yield (line_number, record) for each non-blank line of a session file.

    Undecodable lines are yielded as MalformedRecord instances rather than raised,
    so one bad line never stops the file. I/O failures raise FileReadError.
    """
    try:
        with open(path, "rb", buffering=READ_BUFFER_SIZE) as f:
            for line_number, raw in enumerate(f, 1):
                if not raw.strip():
                    continue
                try:
                    yield line_number, parse_record(raw)
                except MalformedRecord as e:
                    e.line_number = line_number
                    yield line_number, e
    except OSError as e:
        raise FileReadError(path, e.strerror or str(e)) from e


def read_records(path: Path) -> list[tuple[int, Record]]:
    """Read every parsable record of a file, logging skipped lines."""
    records: list[tuple[int, Record]] = []
    for line_number, item in iter_lines(path):
        if isinstance(item, MalformedRecord):
            logger.debug("Skipping %s:%d: %s", path, line_number, item.reason)
            continue
        records.append((line_number, item))
    return records
