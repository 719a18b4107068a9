import asyncio

import httpx
import pytest

from recruitflow import config

AI_URL = "http://ai.test/api/ai/parse-resume"

SAMPLE_RESUME = """John Smith
john.smith@email.com
(555) 123-4567
New York, NY

PROFESSIONAL SUMMARY
Experienced software engineer with 5+ years in full-stack development.
Proficient in React, Node.js, and cloud technologies with strong problem-solving skills.

SKILLS
JavaScript, React, Node.js, TypeScript, Python, AWS, Docker, MongoDB, PostgreSQL, Git

EXPERIENCE
Senior Software Engineer at TechCorp (2020-Present)
- Led development of scalable web applications
- Managed team of 3 developers

EDUCATION
BS Computer Science, MIT (2018)
"""

AI_DATA = {
    "firstName": "Sarah",
    "lastName": "Johnson",
    "email": "sarah.johnson@email.com",
    "phone": "+1 (555) 123-4567",
    "location": "San Francisco, CA",
    "summary": "Experienced software engineer with 5+ years in full-stack development.",
    "skills": ["JavaScript", "React", "Node.js"],
    "experience": "Senior Software Engineer at TechCorp (2021-Present)",
    "education": "BS Computer Science, Stanford University (2019)",
    "confidence": 0.94,
}


@pytest.fixture
def ai_endpoint(monkeypatch):
    monkeypatch.setattr(config, "AI_PARSE_ENDPOINT", AI_URL)
    return AI_URL


@pytest.fixture
def run_with_ai():
    """Run `coro_fn(client)` against a mocked AI backend served by `handler`."""
    def run(handler, coro_fn):
        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await coro_fn(client)
        return asyncio.run(_run())
    return run
