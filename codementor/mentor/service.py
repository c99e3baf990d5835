"""
Mentor chat pipeline: normalize the message, classify it, build a prompt,
call the model and tidy up what comes back.
"""

import logging
import re
from typing import Optional

from codementor.mentor.ai_client import MentorClient
from codementor.mentor.prompts import detect_query_type, determine_skill_level, generate_prompt

logger = logging.getLogger(__name__)

MAX_LINES = 300
MAX_CHARS = 10000
CHAR_MARKER_ALLOWANCE = 50

FALLBACK_RESPONSE = (
    "I apologize, but I couldn't generate a proper response. "
    "Please try rephrasing your question or ask something more specific."
)

# First match wins
LANGUAGE_HINTS = [
    ("python", re.compile(r"python|django|flask|numpy|pandas|scipy", re.I)),
    ("javascript", re.compile(r"javascript|js|node|react|vue|angular", re.I)),
    ("typescript", re.compile(r"typescript|ts|angular|react|vue", re.I)),
    ("java", re.compile(r"java|spring|hibernate|android", re.I)),
    ("ruby", re.compile(r"ruby|rails", re.I)),
    ("csharp", re.compile(r"c#|csharp|\.net|asp\.net", re.I)),
    ("php", re.compile(r"php|laravel|symfony", re.I)),
    ("go", re.compile(r"golang|go lang", re.I)),
    ("rust", re.compile(r"rust|cargo", re.I)),
    ("swift", re.compile(r"swift|ios|xcode", re.I)),
    ("kotlin", re.compile(r"kotlin|android", re.I)),
    ("html", re.compile(r"html|markup", re.I)),
    ("css", re.compile(r"css|scss|sass|style", re.I)),
    ("sql", re.compile(r"sql|database|query", re.I)),
]

ROLE_PREFIX = re.compile(r"^(Assistant:|Human:|System:)\s*")
EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


def normalize_message(message: str) -> str:
    """
    Trim very long input, keeping roughly the first two thirds and the last
    third with a marker saying how much was left out.
    """
    line_count = message.count("\n") + 1
    if line_count > MAX_LINES:
        logger.info(f"Message too long ({line_count} lines), trimming to {MAX_LINES}")
        lines = message.split("\n")
        keep_start = int(MAX_LINES * 0.67)
        keep_end = MAX_LINES - keep_start
        message = "\n".join(
            lines[:keep_start]
            + [f"\n[... {line_count - MAX_LINES} more lines omitted for length ...]\n"]
            + lines[-keep_end:]
        )

    if len(message) > MAX_CHARS:
        logger.info(f"Message too long ({len(message)} chars), trimming to {MAX_CHARS}")
        keep_start = int(MAX_CHARS * 0.67)
        keep_end = MAX_CHARS - keep_start - CHAR_MARKER_ALLOWANCE
        message = (
            message[:keep_start]
            + f"\n[... {len(message) - MAX_CHARS} characters omitted for length ...]\n"
            + message[-keep_end:]
        )

    return message


def detect_language(*texts: Optional[str]) -> str:
    for language, pattern in LANGUAGE_HINTS:
        if any(text and pattern.search(text) for text in texts):
            return language
    return "code"


def tag_code_fences(text: str, language: str) -> str:
    """Give opening ``` fences without a language the detected one"""
    lines = text.split("\n")
    inside = False
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped.startswith("```"):
            continue
        if not inside and stripped == "```":
            lines[index] = line.replace("```", f"```{language}", 1)
        inside = not inside
    return "\n".join(lines)


def clean_response(text: str, prompt: str, message: str, context: Optional[str]) -> str:
    text = (text or "").replace(prompt, "")
    text = ROLE_PREFIX.sub("", text.lstrip())
    text = EXTRA_BLANK_LINES.sub("\n\n", text).strip()
    text = tag_code_fences(text, detect_language(message, context))

    if len(text) < 10:
        return FALLBACK_RESPONSE
    return text


async def generate_mentor_response(
    message: str,
    context: Optional[str] = None,
    client: Optional[MentorClient] = None
) -> str:
    """Answer a learner's message, calling the model only for real coding questions"""
    message = normalize_message(message)
    query_type = detect_query_type(message)
    logger.info(f"Mentor query type: {query_type.name}")

    if not query_type.needs_model:
        return query_type.response

    skill_level = determine_skill_level(context)
    prompt = generate_prompt(message, skill_level, query_type)

    client = client or MentorClient()
    text = await client.complete(prompt)
    return clean_response(text, prompt, message, context)
