# ai_analysis.py — Structured investor analysis of a submission via the Anthropic Messages API
# Returns None when no API key is configured or the call/parse fails; never raises.
import os
import re
import json
import logging
from typing import Any, Dict, Optional

import httpx

from models import Submission
from telemetry import span

logger = logging.getLogger("partner.ai")

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-sonnet-4-20250514"

SYSTEM_PROMPT = """You are an experienced venture capital analyst. Given a startup submission, produce a structured JSON analysis. Be specific, data-driven, and honest. Do not sugarcoat red flags.

Respond ONLY with valid JSON, no markdown backticks, no preamble. Use this exact structure:

{
  "summary": "2-3 sentence executive summary of the startup",
  "readiness_score": 7.5,
  "strengths": [{"title": "Short title", "detail": "1-2 sentence explanation"}],
  "red_flags": [{"title": "Short title", "detail": "1-2 sentence explanation"}],
  "market_size": "Brief market size context with any known data points",
  "comparables": [{"name": "Company Name (region/type)", "context": "Brief relevance note"}],
  "suggested_questions": ["Question an investor should ask the founder"]
}

Rules:
- readiness_score: 1-10 scale. Most pre-seed startups are 4-6. Only score 8+ if traction is exceptional.
- strengths: 3-5 items
- red_flags: 2-4 items. Always find at least 2.
- comparables: 2-4 companies, both positive comparisons and cautionary tales.
- suggested_questions: 4-6 questions focused on what is missing from the submission."""

REQUIRED_KEYS = ("summary", "readiness_score", "strengths")

_FENCE_RE = re.compile(r"```(?:json)?")


def is_enabled() -> bool:
    return bool(os.getenv("ANTHROPIC_API_KEY"))


def build_prompt(sub: Submission) -> str:
    looking_for = ", ".join(sub.looking_for or [])
    return f"""Analyze this startup submission:

Company: {sub.company_name}
One-liner: {sub.one_liner}
Industry: {sub.industry}
Stage: {sub.stage}
Team Size: {sub.team_size or "Not specified"}
Website: {sub.website or "Not provided"}
Funding Target: {sub.funding_target or "Not specified"}

PROBLEM:
{sub.problem}

SOLUTION:
{sub.solution}

TRACTION:
{sub.traction}

LOOKING FOR:
{looking_for}

ADDITIONAL NOTES:
{sub.additional_notes or "None"}"""


def parse_analysis(text: str) -> Optional[Dict[str, Any]]:
    try:
        analysis = json.loads(_FENCE_RE.sub("", text).strip())
    except (TypeError, ValueError):
        logger.error("[AI] Response was not valid JSON")
        return None
    if not isinstance(analysis, dict) or not all(analysis.get(k) for k in REQUIRED_KEYS):
        logger.error("[AI] Invalid analysis structure")
        return None
    return analysis


async def analyze_submission(sub: Submission) -> Optional[Dict[str, Any]]:
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        logger.info("[AI] Skipped: no API key configured")
        return None

    logger.info(f"[AI] Analyzing submission {sub.id}")
    try:
        with span("ai.analyze_submission", submission_id=sub.id):
            async with httpx.AsyncClient(timeout=60) as client:
                resp = await client.post(
                    ANTHROPIC_URL,
                    headers={
                        "x-api-key": api_key,
                        "anthropic-version": "2023-06-01",
                        "content-type": "application/json",
                    },
                    json={
                        "model": os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL),
                        "max_tokens": 1500,
                        "system": SYSTEM_PROMPT,
                        "messages": [{"role": "user", "content": build_prompt(sub)}],
                    },
                )
    except httpx.HTTPError as e:
        logger.warning(f"[AI] Request failed: {e}")
        return None

    if resp.status_code != 200:
        logger.error(f"[AI] API error {resp.status_code}: {resp.text[:200]}")
        return None

    try:
        blocks = resp.json().get("content", [])
    except ValueError:
        logger.error("[AI] API returned a non-JSON body")
        return None
    text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
    analysis = parse_analysis(text)
    if analysis:
        logger.info(f"[AI] Analysis complete for {sub.id}: score {analysis['readiness_score']}/10")
    return analysis
