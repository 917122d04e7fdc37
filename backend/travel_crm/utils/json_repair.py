# backend/travel_crm/utils/json_repair.py

import json
import re
from typing import Any, Dict


_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*\n?|\n?```\s*$", re.MULTILINE)


class JSONRepairError(ValueError):
    pass


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content.strip()).strip()


def extract_json_object(content: str) -> str:
    """
    Slice from the first '{' to the last '}'. If the model was cut off there
    may be no closing brace at all, in which case everything from the first
    '{' is kept for close_truncated_json.
    """
    start = content.find("{")
    if start == -1:
        raise JSONRepairError("No JSON object found in model output")

    end = content.rfind("}")
    if end > start:
        return content[start:end + 1]
    return content[start:]


def close_truncated_json(content: str) -> str:
    """Append whatever closers are missing, ignoring brackets inside strings."""
    stack = []
    in_string = False
    escaped = False

    for ch in content:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]":
            if stack and ((ch == "}" and stack[-1] == "{") or (ch == "]" and stack[-1] == "[")):
                stack.pop()

    if in_string:
        content += '"'
    else:
        content = content.rstrip()
        if content.endswith(","):
            content = content[:-1]
        elif content.endswith(":"):
            content += " null"

    closers = "".join("}" if opener == "{" else "]" for opener in reversed(stack))
    return content + closers


def parse_model_json(content: str) -> Dict[str, Any]:
    if not content or not content.strip():
        raise JSONRepairError("Empty model output")

    cleaned = extract_json_object(strip_code_fences(content))

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(close_truncated_json(cleaned))
        except json.JSONDecodeError as e:
            raise JSONRepairError(f"Failed to parse model output: {e}") from e

    if not isinstance(parsed, dict):
        raise JSONRepairError("Model output is not a JSON object")
    return parsed
