"""
Forwarding Log - JSONL record of every smart forwarding run.
One file per session: what came in, what the summary said, which rule
matched and which actions were produced.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .router.models import ForwardingResult

DEFAULT_LOG_DIR = Path("logs")


@dataclass
class ForwardLogEntry:
    """A single forwarding run."""
    timestamp: str
    content_preview: str  # First 500 chars
    summary: str
    keywords: list
    matched_rule: Optional[str]
    destination: Optional[str]
    actions: list
    success: bool
    message: str
    processing_time_ms: int = 0


class ForwardingLog:
    """Append-only session log of forwarding results."""

    def __init__(self, log_dir: str = None, session_id: str = None):
        self.log_dir = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.session_id = session_id or datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self.log_file = self.log_dir / f"forward_log_{self.session_id}.jsonl"

    def record(self, content: str, result: ForwardingResult, processing_time_ms: int = 0) -> ForwardLogEntry:
        """Append one forwarding result to the session file."""
        data = result.to_dict()
        entry = ForwardLogEntry(
            timestamp=datetime.now().isoformat(),
            content_preview=content[:500] if content else "",
            summary=data["summary"],
            keywords=data["extracted_keywords"],
            matched_rule=data["matched_rule"],
            destination=data["destination"],
            actions=data["actions"],
            success=data["success"],
            message=data["message"],
            processing_time_ms=processing_time_ms,
        )

        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry), ensure_ascii=False) + "\n")

        return entry

    def list_sessions(self) -> list:
        """List all available log sessions, newest first."""
        sessions = []
        for f in sorted(self.log_dir.glob("forward_log_*.jsonl"), reverse=True):
            sessions.append({
                "session_id": f.stem.replace("forward_log_", ""),
                "file": str(f),
                "size": f.stat().st_size,
                "modified": datetime.fromtimestamp(f.stat().st_mtime).isoformat(),
            })
        return sessions

    def get_logs(self, session_id: str = None, limit: int = 100) -> list:
        """Get log entries for a session (default: the current one)."""
        log_file = self.log_file if session_id is None else self.log_dir / f"forward_log_{session_id}.jsonl"
        if not log_file.exists():
            return []

        entries = []
        with open(log_file, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    entries.append(json.loads(line))

        return entries[-limit:]

    def get_stats(self, session_id: str = None) -> dict:
        """Processing statistics for a session."""
        logs = self.get_logs(session_id, limit=10000)

        stats = {
            "total": len(logs),
            "forwarded": 0,
            "unrouted": 0,
            "actions": 0,
            "by_rule": {},
            "by_platform": {},
        }

        for log in logs:
            if log.get("success"):
                stats["forwarded"] += 1
            else:
                stats["unrouted"] += 1

            rule = log.get("matched_rule") or "(default)"
            if log.get("destination"):
                stats["by_rule"][rule] = stats["by_rule"].get(rule, 0) + 1

            for action in log.get("actions", []):
                stats["actions"] += 1
                platform = action.get("platform", "unknown")
                stats["by_platform"][platform] = stats["by_platform"].get(platform, 0) + 1

        return stats
