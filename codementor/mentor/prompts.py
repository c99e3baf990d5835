"""
Mentor prompt building: query classification, skill level and the prompt text.
Greetings, unclear input and small talk get a canned reply without a model call.
"""

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class QueryType:
    name: str
    # Set for canned replies; None means the model is asked
    response: Optional[str] = None

    @property
    def needs_model(self) -> bool:
        return self.response is None


GREETING_RESPONSE = (
    "I can assist you with:\n\n"
    "• Code explanations and concepts\n"
    "• Debugging and troubleshooting\n"
    "• Best practices and design patterns\n"
    "• Learning paths and resources\n"
    "• Project architecture and implementation\n\n"
    "What would you like to learn about today?"
)

UNCLEAR_RESPONSE = (
    "I'm not sure I understand your question. Could you please rephrase it? I can help with:\n\n"
    "• Programming concepts and languages\n"
    "• Code debugging and optimization\n"
    "• Software architecture and design\n"
    "• Learning resources and tutorials\n"
    "• Best practices and coding standards"
)

NON_CODING_RESPONSE = (
    "I'm CodeMentor, your programming assistant focused on helping with code-related "
    "questions rather than general conversation. I can assist with:\n\n"
    "• Programming languages and frameworks\n"
    "• Debugging and troubleshooting\n"
    "• Design patterns and best practices\n"
    "• Learning resources for developers\n"
    "• Software architecture and implementation"
)

EMPTY_MESSAGE_RESPONSE = "I'm not sure I understand your question. Could you please provide more details?"

GREETING = QueryType("greeting", GREETING_RESPONSE)
UNCLEAR = QueryType("unclear", UNCLEAR_RESPONSE)
NON_CODING = QueryType("nonCoding", NON_CODING_RESPONSE)

GREETING_EXACT = re.compile(r"^(hi|hey|hello)( there)?$")
GREETING_START = re.compile(r"^(hi|hey|hello|greetings)\s")
UNCLEAR_PATTERNS = [
    re.compile(r"^[^a-zA-Z0-9\s]+$"),
    re.compile(r"^\?+$"),
    re.compile(r"^[a-zA-Z]{1,3}$"),
]
CODING_WORDS = ("code", "program", "function", "write", "create", "implement", "develop")
SMALL_TALK = ("joke", "name", "who are you", "tell me about yourself", "how are you")

# (query type, keywords, weight)
CATEGORIES = [
    ("explanation", ("what is", "explain", "how does", "tell me about", "meaning of",
                     "concept of", "understand"), 1.5),
    ("debugging", ("error", "bug", "not working", "undefined", "failed", "exception",
                   "fix", "problem", "issue", "debug", "troubleshoot"), 2.0),
    ("generation", ("generate", "create", "write", "make", "build", "show me",
                    "implement", "code", "develop", "how to"), 1.8),
    ("guidance", ("structure", "architecture", "design", "best practice", "recommend",
                  "organize", "pattern", "approach"), 1.3),
    ("career", ("learn", "career", "path", "roadmap", "portfolio", "interview",
                "job", "skill", "study"), 1.0),
]

# Phrases that push a category further once they appear
BOOSTS = [
    ("generation", ("write", "create", "implement"), 2.0),
    ("explanation", ("explain", "what is"), 1.5),
    ("debugging", ("fix", "error", "bug"), 2.0),
]

SKILL_INDICATORS = [
    ("beginner", ("basic", "simple", "explain", "what is", "how do i", "start", "beginner",
                  "new to", "learning", "fundamentals"), 1.0),
    ("intermediate", ("optimize", "improve", "better", "alternative", "best practice",
                      "efficient", "refactor", "pattern", "clean code"), 1.2),
    ("advanced", ("advanced", "complex", "performance", "architecture", "scaling",
                  "production", "enterprise", "security", "concurrency", "optimization"), 1.5),
]

QUERY_GUIDELINES = {
    "explanation": "Provide brief, clear explanations with minimal examples. Focus only on essential concepts.",
    "debugging": "Identify key issues and suggest fixes with minimal explanation. Be direct and to the point.",
    "generation": ("Write clean, minimal code that solves the request. Include only essential comments. "
                   "Do not explain how to run the code unless specifically asked. "
                   "Provide only the code with minimal surrounding text."),
    "guidance": "Provide concise, actionable advice focusing on crucial points. Avoid lengthy explanations.",
    "career": "Give direct, practical advice without unnecessary elaboration.",
}

SKILL_GUIDELINES = {
    "beginner": "Keep explanations simple and minimal. Avoid unnecessary details.",
    "intermediate": "Skip basic explanations. Focus on the core solution.",
    "advanced": "Provide expert-level solutions with minimal explanation.",
}

PROMPT_TEMPLATE = """You are a professional coding mentor. Provide concise, helpful responses.

Question: {message}

Key requirements:
- {query_guideline}
- {skill_guideline}
- Use code blocks with appropriate language specification
- BE CONCISE. Avoid detailed explanations about running the code or how it works unless explicitly asked
- For code generation, provide ONLY the code solution with minimal introduction
- Minimize code comments to only what's absolutely necessary
- No need to explain the obvious parts of the code
- Skip explanations about compiling, running, or installing unless specifically asked

Response:"""


def _keyword_hits(text: str, keywords) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def detect_query_type(message: str) -> QueryType:
    if not message or not message.strip():
        return QueryType("unclear", EMPTY_MESSAGE_RESPONSE)

    text = message.lower().strip()

    if GREETING_EXACT.match(text):
        return GREETING
    if GREETING_START.match(text) and not any(word in text for word in CODING_WORDS):
        return GREETING

    if any(pattern.match(text) for pattern in UNCLEAR_PATTERNS):
        return UNCLEAR

    if any(phrase in text for phrase in SMALL_TALK) and "code" not in text and "program" not in text:
        return NON_CODING

    scores = {name: _keyword_hits(text, keywords) * weight for name, keywords, weight in CATEGORIES}
    for name, triggers, bonus in BOOSTS:
        if any(trigger in text for trigger in triggers):
            scores[name] += bonus

    best, best_score = "explanation", 0
    for name, _, _ in CATEGORIES:
        if scores[name] > best_score:
            best, best_score = name, scores[name]

    return QueryType(best)


def determine_skill_level(context: Optional[str]) -> str:
    if not context or not context.strip():
        return "beginner"

    text = context.lower()
    best, best_score = "beginner", 0
    for level, keywords, weight in SKILL_INDICATORS:
        score = _keyword_hits(text, keywords) * weight
        if score > best_score:
            best, best_score = level, score
    return best


def generate_prompt(message: str, skill_level: str, query_type: QueryType) -> str:
    if not query_type.needs_model:
        return query_type.response

    return PROMPT_TEMPLATE.format(
        message=message,
        query_guideline=QUERY_GUIDELINES[query_type.name],
        skill_guideline=SKILL_GUIDELINES[skill_level]
    )
