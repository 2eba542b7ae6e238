"""
Resilient JSON extraction from model responses.

The provider is not bound to emit valid JSON, so every parse degrades to a
caller-supplied fallback instead of raising.
"""

import json
import re
from typing import Any, List, Optional

from utils.logger import setup_logger
from utils.config import config

logger = setup_logger(__name__, level=config.log_level, component="PARSER")

_LEADING_FENCE = re.compile(r"^\s*```[\w+-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```\s*$")
_FENCED_BLOCK = re.compile(r"```[\w+-]*[ \t]*\r?\n?([\s\S]*?)```")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_PYTHON_LITERALS = {"True": "true", "False": "false", "None": "null"}
_JSON_LITERALS = {"true", "false", "null"}
_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove leading/trailing markdown fences, tagged or not."""
    text = _LEADING_FENCE.sub("", text.strip(), count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _isolate_json(text: str) -> str:
    """
    Cut the first JSON object or array out of surrounding prose.

    The end is found by bracket balance (ignoring brackets inside strings),
    so braces in trailing notes are not pulled in. Output that never closes
    keeps its tail for bracket repair.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        raise ValueError("no JSON object or array in text")
    start = min(starts)

    stack: List[str] = []
    quote = None
    escape_next = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
        elif quote:
            if ch == "\\":
                escape_next = True
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return text[start:i + 1]
    return text[start:]


def _normalize_tokens(text: str) -> str:
    """
    Single pass over the text outside of strings:
    single quotes become double quotes, bare keys and bare words are
    quoted, Python literals become JSON literals.
    """
    out: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if ch in "\"'":
            quote = ch
            j = i + 1
            buf = []
            while j < n and text[j] != quote:
                if text[j] == "\\" and j + 1 < n:
                    buf.append(text[j:j + 2])
                    j += 2
                    continue
                if quote == "'" and text[j] == '"':
                    buf.append('\\"')
                else:
                    buf.append(text[j])
                j += 1
            out.append('"' + "".join(buf) + ('"' if j < n else ""))
            i = j + 1
            continue

        if (ch.isalpha() or ch == "_") and not (i and (text[i - 1].isalnum() or text[i - 1] == ".")):
            j = i
            while j < n and (text[j].isalnum() or text[j] in "_-"):
                j += 1
            word = text[i:j]
            rest = text[j:].lstrip()
            if rest.startswith(":"):
                out.append(f'"{word}"')
            elif word in _JSON_LITERALS:
                out.append(word)
            elif word in _PYTHON_LITERALS:
                out.append(_PYTHON_LITERALS[word])
            else:
                out.append(f'"{word}"')
            i = j
            continue

        out.append(ch)
        i += 1
    return "".join(out)


def _close_brackets(text: str) -> str:
    """Append closers for any brackets (and a string) left open."""
    stack: List[str] = []
    in_string = False
    escape_next = False
    for ch in text:
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]" and stack and stack[-1] == ch:
            stack.pop()

    if in_string:
        text += '"'
    text = text.rstrip()
    if text.endswith(":"):
        text += " null"
    return text + "".join(reversed(stack))


def repair_json(text: str) -> str:
    """
    Best-effort structural repair of almost-JSON.

    Handles surrounding prose, single quotes, unquoted keys, Python
    literals, trailing commas and unbalanced brackets.
    """
    text = _isolate_json(text)
    text = _normalize_tokens(text)
    text = _close_brackets(text)
    return _TRAILING_COMMA.sub(r"\1", text).rstrip().rstrip(",")


def _shaped(result: Any, fallback: Any) -> Any:
    """Keep the fallback when the parsed value has a different container type."""
    if fallback is not None and not isinstance(result, type(fallback)):
        logger.warning(
            f"Model output parsed to {type(result).__name__}, expected {type(fallback).__name__}"
        )
        return fallback
    return result


def _load(text: str, fallback: Any) -> Any:
    """json.loads, then structural repair; raises when both fail."""
    try:
        return _shaped(json.loads(text), fallback)
    except (json.JSONDecodeError, RecursionError):
        pass
    result = json.loads(repair_json(text))
    logger.debug("Parsed model output after structural repair")
    return _shaped(result, fallback)


def extract(raw: Any, fallback: Any = None) -> Any:
    """
    Parse model output as JSON, never raising.

    The content of each fenced block is tried first, then the whole text
    with fences stripped.

    Args:
        raw: Raw model text
        fallback: Value returned when nothing parseable is found

    Returns:
        Parsed JSON value, or fallback
    """
    if not isinstance(raw, str) or not raw.strip():
        return fallback

    candidates = [block.strip() for block in _FENCED_BLOCK.findall(raw) if block.strip()]
    candidates.append(strip_code_fences(raw))

    last_error: Optional[Exception] = None
    for text in candidates:
        try:
            result = _load(text, fallback)
        except (json.JSONDecodeError, RecursionError, ValueError) as e:
            last_error = e
            continue
        if result is not fallback:
            return result

    if last_error is not None:
        logger.warning(f"Unparseable model output, using fallback: {last_error}")
        logger.debug(f"Raw text (first 500 chars): {raw[:500]}")
    return fallback
