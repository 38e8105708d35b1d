"""Run the CLI with ``python -m ui_vispro``, mirroring warnings to stderr as JSON lines."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from ui_vispro.cli import app
from ui_vispro.logging_utils import use_console_formatter


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record, for log shippers reading stderr."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        entry: dict[str, str] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def main() -> None:
    use_console_formatter(JsonLogFormatter())
    app(prog_name="vispro")


if __name__ == "__main__":
    main()
