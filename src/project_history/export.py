"""Export a project history to JSON-ready dicts and Markdown."""

import json

from .core import Conversation, HistoryResult, Message


def message_to_dict(msg: Message) -> dict:
    """Convert a Message to the camelCase shape served over HTTP."""
    return {
        "id": msg.id,
        "timestamp": msg.timestamp.isoformat(),
        "role": msg.role,
        "content": msg.content,
        "source": msg.source,
        "projectPath": msg.project_path,
        "conversationId": msg.conversation_id,
        "model": msg.model,
        "toolCalls": [
            {"name": call.name, "arguments": call.arguments}
            for call in msg.tool_calls
        ] if msg.tool_calls else None,
        "relatedFiles": sorted(msg.related_files),
        "thinking": msg.thinking,
    }


def conversation_to_dict(conv: Conversation) -> dict:
    return {
        "id": conv.id,
        "title": conv.title,
        "messageCount": conv.message_count,
        "startTime": conv.start_time.isoformat(),
        "endTime": conv.end_time.isoformat(),
        "source": conv.source,
    }


def history_to_dict(history: HistoryResult) -> dict:
    """Convert a HistoryResult to a JSON-serializable dict."""
    date_range = None
    if history.date_range:
        date_range = {
            "start": history.date_range.start.isoformat(),
            "end": history.date_range.end.isoformat(),
        }
    return {
        "messages": [message_to_dict(m) for m in history.messages],
        "conversations": [conversation_to_dict(c) for c in history.conversations],
        "totalMessages": history.total_messages,
        "sources": list(history.sources),
        "dateRange": date_range,
    }


def history_to_json(history: HistoryResult) -> str:
    """Export a history as structured JSON."""
    return json.dumps(history_to_dict(history), indent=2, ensure_ascii=False)


def history_to_markdown(history: HistoryResult, project_path: str = "") -> str:
    """Export a history as a readable Markdown timeline."""
    title = f"# History: {project_path}" if project_path else "# History"
    lines = [title, ""]

    lines.append(f"**Sources:** {', '.join(history.sources) or 'none'}")
    lines.append(f"**Messages:** {history.total_messages}")
    lines.append(f"**Conversations:** {len(history.conversations)}")
    if history.date_range:
        lines.append(
            f"**Range:** {history.date_range.start.isoformat()} - {history.date_range.end.isoformat()}"
        )
    lines.extend(["", "---", ""])

    for msg in history.messages:
        role_label = msg.role.capitalize()
        ts = msg.timestamp.strftime("%Y-%m-%d %H:%M")
        lines.append(f"## {role_label} ({ts}) [{msg.source}]")
        lines.append("")
        lines.append(msg.content)
        if msg.tool_calls:
            lines.append("")
            for call in msg.tool_calls:
                args = ", ".join(f"{k}={v}" for k, v in (call.arguments or {}).items())
                lines.append(f"- `{call.name}`" + (f" ({args})" if args else ""))
        if msg.related_files:
            lines.append("")
            lines.append("**Files:** " + ", ".join(sorted(msg.related_files)))
        lines.extend(["", "---", ""])

    return "\n".join(lines)
