import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict

FILE_NAME_SPECIAL_CHARS = '\\/:*?"<>|'


def get_logger(name: str) -> logging.Logger:
    # Only the top-level logger gets a handler; children propagate to it.
    base = logging.getLogger(name.split('.', 1)[0])
    if not base.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(levelname)s %(message)s')
        handler.setFormatter(formatter)
        base.addHandler(handler)
    if os.getenv("PANCLOUD_DEBUG", "0") in ("1", "true", "TRUE"):
        base.setLevel(logging.DEBUG)
    else:
        base.setLevel(logging.INFO)
    return logging.getLogger(name)


def redacted_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    redacted = {}
    for k, v in headers.items():
        if k.lower() in ('authorization', 'cookie', 'sessionkey', 'signature', 'accesstoken'):
            redacted[k] = '[REDACTED]'
        else:
            redacted[k] = v
    return redacted


def redact_payload(payload: Any) -> Any:
    if not isinstance(payload, (dict, list)):
        return payload
    secret_keys = (
        "sessionkey",
        "sessionsecret",
        "session_key",
        "session_secret",
        "accesstoken",
        "access_token",
        "token",
        "cookie",
        "password",
    )
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        key_l = str(key).lower()
        if any(k in key_l for k in secret_keys):
            redacted[key] = "***"
        else:
            redacted[key] = redact_payload(value)
    return redacted


def append_log_line(path: str, line: str) -> None:
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    safe_line = line.rstrip("\n")
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"[{timestamp}] {safe_line}\n")


def truncate_text(text: str, limit: int = 2000) -> str:
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...[truncated {len(text) - limit} chars]"


def executable_dir() -> str:
    # Directory of the running entry point (the installed console script or
    # the module path when run with -m).
    return os.path.dirname(os.path.realpath(sys.argv[0] or sys.executable))


def executable_path_join(*parts: str) -> str:
    return os.path.join(executable_dir(), *parts)


def check_file_name_valid(name: str) -> bool:
    return not any(ch in FILE_NAME_SPECIAL_CHARS for ch in name)
