import re
import time
import logging
from typing import Callable, List, Optional, Pattern, Sequence, Tuple

import httpx

from recruitflow import config
from recruitflow.ai_client import AIParseFailure, request_ai_parse
from recruitflow.errors import ResumeValidationError
from recruitflow.models import ParsedResumeData, ParseOutcome

logger = logging.getLogger(__name__)

Strategy = Tuple[Pattern[str], Callable[[re.Match], Optional[object]]]

BASE_CONFIDENCE = 0.3
CONFIDENCE_PER_FIELD = 0.1
MAX_FALLBACK_CONFIDENCE = 0.85

MAX_SKILLS = 15
SUMMARY_MAX_CHARS = 400
FALLBACK_SUMMARY_MAX_CHARS = 300
EXPERIENCE_MAX_CHARS = 400
EDUCATION_MAX_CHARS = 300


def _first_match(strategies: Sequence[Strategy], text: str):
    """Try (pattern, extractor) pairs in order; the first non-empty extraction wins."""
    for pattern, extract in strategies:
        match = pattern.search(text)
        if match is None:
            continue
        value = extract(match)
        if value:
            return value
    return None


def _collapse(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


SECTION_PREFIX = r"(?:professional|work|technical|career|core|key|personal|academic|executive)"


def _section_pattern(labels: str, max_lines: int) -> Pattern[str]:
    # optional prefix word and label at the start of a line, then a colon or end of line
    return re.compile(
        rf"^[ \t]*(?:{SECTION_PREFIX}[ \t]+)?(?:{labels})[ \t]*(?::|$)[ \t]*\n?"
        rf"(?P<body>(?:[^\n]*(?:\n|$)){{1,{max_lines}}})",
        re.IGNORECASE | re.MULTILINE,
    )


SECTION_HEADING_RE = re.compile(
    rf"^{SECTION_PREFIX}?[ \t]*"
    r"(?:summary|objective|profile|about me|about|overview|experience|employment history|"
    r"work history|employment|education|skills|technologies|competencies|expertise|"
    r"proficiencies|programming languages|projects|certifications|languages|references|"
    r"awards|interests|publications|statement|qualifications|background)[ \t]*:?$",
    re.IGNORECASE,
)


def _section_lines(body: str) -> List[str]:
    """Lines of a captured section, stopping at a blank line or the next heading."""
    lines = []
    for raw in body.split("\n"):
        line = raw.strip()
        if not line:
            if lines:
                break
            continue
        if SECTION_HEADING_RE.match(line):
            break
        lines.append(line)
    return lines


def _section_text(max_chars: int) -> Callable[[re.Match], Optional[str]]:
    def extract(match: re.Match) -> Optional[str]:
        lines = _section_lines(match.group("body"))
        if not lines:
            return None
        return _collapse(" ".join(lines))[:max_chars]
    return extract


# ---- email ----

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}", re.IGNORECASE)


def extract_email(clean: str) -> Optional[str]:
    match = EMAIL_RE.search(clean)
    return match.group(0) if match else None


# ---- phone ----

PHONE_STRATEGIES: List[Strategy] = [
    (re.compile(r"\b(?:phone|tel|mobile|call)\b\.?[ \t]*(?:no\.?|number|#)?[ \t]*[:\-]?[ \t]*"
                r"([+(]?\d[\d \t().\-]{8,}\d)", re.IGNORECASE),
     lambda m: _collapse(m.group(1))),
    (re.compile(r"(?:\+1[ \t.\-]?)?\(\d{3}\)[ \t]?\d{3}[ \t.\-]\d{4}"),
     lambda m: _collapse(m.group(0))),
    (re.compile(r"(?<!\d)\+?\d{1,3}[ \t.\-]\d{3,4}[ \t.\-]\d{3,4}[ \t.\-]\d{3,4}(?!\d)"),
     lambda m: _collapse(m.group(0))),
]


def extract_phone(text: str) -> Optional[str]:
    # numbers never span lines
    return _first_match(PHONE_STRATEGIES, text)


# ---- name ----

NAME_CHARS_RE = re.compile(r"^(?:[^\W\d_]|[\s\-'.])+$")
NAME_STOPWORDS_RE = re.compile(r"\b(?:resume|cv|phone|tel|www)\b", re.IGNORECASE)
NAME_LABEL_RE = re.compile(r"\b(?:full[ \t]+name|name)[ \t]*:[ \t]*([A-Za-z][A-Za-z \t]*)", re.IGNORECASE)


def _split_name(candidate: str) -> Optional[Tuple[str, str]]:
    parts = candidate.split()
    if len(parts) < 2:
        return None
    return parts[0], " ".join(parts[1:])


def _name_from_leading_lines(lines: List[str]) -> Optional[Tuple[str, str]]:
    for line in lines[:3]:
        if len(line) >= 60 or "@" in line or line[0].isdigit():
            continue
        if NAME_STOPWORDS_RE.search(line) or SECTION_HEADING_RE.match(line):
            continue
        if not NAME_CHARS_RE.match(line):
            continue
        name = _split_name(line)
        if name:
            return name
    return None


def _name_from_label(text: str) -> Optional[Tuple[str, str]]:
    match = NAME_LABEL_RE.search(text)
    return _split_name(match.group(1)) if match else None


def extract_name(lines: List[str], text: str) -> Optional[Tuple[str, str]]:
    """First and last name from the resume header, else from a "Name:" label."""
    return _name_from_leading_lines(lines) or _name_from_label(text)


# ---- location ----

_STREET_SUFFIX = (r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|"
                  r"Court|Ct|Way|Place|Pl|Parkway|Pkwy)")
_CITY = r"[A-Z][a-zA-Z.'\-]+(?:[ \t][A-Z][a-zA-Z.'\-]+){0,2}"

MAJOR_US_CITIES = [
    "New York", "Los Angeles", "Chicago", "Houston", "Phoenix", "Philadelphia",
    "San Antonio", "San Diego", "Dallas", "San Jose", "Austin", "Jacksonville",
    "Fort Worth", "Columbus", "Charlotte", "San Francisco", "Indianapolis",
    "Seattle", "Denver", "Washington", "Boston", "El Paso", "Nashville",
    "Detroit", "Oklahoma City", "Portland", "Las Vegas", "Memphis", "Louisville",
    "Baltimore", "Milwaukee", "Albuquerque", "Tucson", "Fresno", "Sacramento",
    "Kansas City", "Mesa", "Atlanta", "Omaha", "Colorado Springs", "Raleigh",
    "Miami", "Minneapolis", "Tampa", "New Orleans", "Cleveland", "Pittsburgh",
    "Salt Lake City",
]

LOCATION_STRATEGIES: List[Strategy] = [
    # labeled street address
    (re.compile(rf"(?i:address|location)[ \t]*:?[ \t]*"
                rf"(\d+[ \t][^\n,]*?\b{_STREET_SUFFIX}\b\.?(?:,[ \t]*[^\n,]+){{0,3}})"),
     lambda m: _collapse(m.group(1))),
    # City, ST 12345
    (re.compile(rf"\b({_CITY},[ \t]*[A-Z]{{2}}[ \t]+\d{{5}}(?:-\d{{4}})?)\b"),
     lambda m: _collapse(m.group(1))),
    # City, ST
    (re.compile(rf"\b({_CITY},[ \t]*[A-Z]{{2}})\b"),
     lambda m: _collapse(m.group(1))),
    (re.compile(r"\b([A-Z][a-zA-Z]+(?:[ \t][A-Z][a-zA-Z]+)?[ \t]+(?:City|State|Province|Country))\b"),
     lambda m: _collapse(m.group(1))),
    (re.compile(r"\b(" + "|".join(re.escape(city) for city in MAJOR_US_CITIES) + r")(?:,[ \t]*|[ \t]+)([A-Z]{2})\b"),
     lambda m: f"{m.group(1)}, {m.group(2)}"),
]


def extract_location(text: str) -> Optional[str]:
    return _first_match(LOCATION_STRATEGIES, text)


# ---- skills ----

SKILL_SPLIT_RE = re.compile(r"[\s,|•·▪●◦–—\-]+")
NUMERIC_RE = re.compile(r"^[\d.]+$")


def _skill_tokens(match: re.Match) -> List[str]:
    block = "\n".join(_section_lines(match.group("body")))
    skills = []
    for token in SKILL_SPLIT_RE.split(block):
        token = token.strip(" \t;:()*").rstrip(".")
        if 2 <= len(token) <= 29 and not NUMERIC_RE.match(token):
            skills.append(token)
        if len(skills) == MAX_SKILLS:
            break
    return skills


SKILL_STRATEGIES: List[Strategy] = [
    (_section_pattern(r"technical skills|skills|technologies|programming languages|"
                      r"competencies|expertise|proficiencies", 8),
     _skill_tokens),
    (re.compile(r"\b(?:proficient in|experienced with|knowledge of)\b[ \t]*:?[ \t]*"
                r"(?P<body>(?:[^\n]*(?:\n|$)){1,3})", re.IGNORECASE),
     _skill_tokens),
]


def extract_skills(text: str) -> List[str]:
    return _first_match(SKILL_STRATEGIES, text) or []


# ---- summary ----

SUMMARY_STRATEGIES: List[Strategy] = [
    (_section_pattern(r"summary|objective|profile|about me|about|overview", 6),
     _section_text(SUMMARY_MAX_CHARS)),
    (_section_pattern(r"professional summary|career objective|personal statement", 6),
     _section_text(SUMMARY_MAX_CHARS)),
]

_SUMMARY_EXCLUDED = ("@", "phone", "address", "resume")


def _summary_from_paragraph(lines: List[str]) -> Optional[str]:
    for line in lines[1:10]:
        lowered = line.lower()
        if 50 <= len(line) <= 500 and not any(word in lowered for word in _SUMMARY_EXCLUDED):
            return line[:FALLBACK_SUMMARY_MAX_CHARS]
    return None


def extract_summary(lines: List[str], text: str) -> Optional[str]:
    return _first_match(SUMMARY_STRATEGIES, text) or _summary_from_paragraph(lines)


# ---- experience / education ----

EXPERIENCE_STRATEGIES: List[Strategy] = [
    (_section_pattern(r"work experience|professional experience|experience|"
                      r"employment history|work history", 6),
     _section_text(EXPERIENCE_MAX_CHARS)),
]

EDUCATION_STRATEGIES: List[Strategy] = [
    (_section_pattern(r"education|academic background|academic qualifications", 4),
     _section_text(EDUCATION_MAX_CHARS)),
]


def extract_experience(text: str) -> Optional[str]:
    return _first_match(EXPERIENCE_STRATEGIES, text)


def extract_education(text: str) -> Optional[str]:
    return _first_match(EDUCATION_STRATEGIES, text)


# ---- confidence ----

def score_confidence(fields_found: int) -> float:
    """Heuristic completeness score used for locally extracted results."""
    return round(min(MAX_FALLBACK_CONFIDENCE, BASE_CONFIDENCE + CONFIDENCE_PER_FIELD * fields_found), 2)


def extract_resume_fields(text: str) -> ParsedResumeData:
    """Rule-based extraction used when the AI service is unavailable.

    Pure function of its input. Fields that cannot be found keep their
    placeholder values and lower the confidence score.
    """
    raw = text.replace("\r\n", "\n").replace("\r", "\n")
    clean = _collapse(raw)
    lines = [ln.strip() for ln in raw.split("\n") if ln.strip()]

    name = extract_name(lines, raw)
    extracted = {
        "email": extract_email(clean),
        "phone": extract_phone(raw),
        "location": extract_location(raw),
        "skills": extract_skills(raw),
        "summary": extract_summary(lines, raw),
        "experience": extract_experience(raw),
        "education": extract_education(raw),
    }

    fields = {key: value for key, value in extracted.items() if value}
    found = len(fields) + (1 if name else 0)
    if name:
        fields["first_name"], fields["last_name"] = name
    fields["confidence"] = score_confidence(found)

    logger.debug("Rule-based extraction found %d field(s): %s", found, sorted(fields))
    return ParsedResumeData(**fields)


# ---- pipeline ----

def validate_resume_text(text: Optional[str]) -> str:
    """Reject empty or too-short text before any parsing work."""
    if text is None or not text.strip():
        raise ResumeValidationError("Resume text is empty")
    if len(text.strip()) < config.MIN_RESUME_TEXT_LENGTH:
        raise ResumeValidationError(
            f"Resume text is too short (minimum {config.MIN_RESUME_TEXT_LENGTH} characters)"
        )
    return text


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def parse_resume_text(
    text: str,
    model: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ParseOutcome:
    """Parse resume text with the AI service, falling back to rule-based extraction."""
    validate_resume_text(text)
    started = time.perf_counter()

    result = await request_ai_parse(text, model=model, client=client)
    if isinstance(result, AIParseFailure):
        logger.warning("AI parsing failed, falling back to rule-based parser: %s", result.error)
        data = extract_resume_fields(text)
        return ParseOutcome(
            data=data,
            source="fallback",
            ai_error=result.error,
            processing_time_ms=_elapsed_ms(started),
        )

    return ParseOutcome(
        data=result.data,
        source="ai",
        ai_model=result.model,
        processing_time_ms=_elapsed_ms(started),
    )
