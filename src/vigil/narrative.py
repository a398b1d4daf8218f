"""AI-generated risk narrative for Vigil scan results.

The narrative is purely additive: it is requested after the final verdict
is fixed, receives that verdict as input, and any failure degrades to an
error field on the result instead of failing the scan.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from vigil.config import get_api_key
from vigil.models import NarrativeResult, ProviderResult, Verdict

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "AI analysis is not configured (missing API key)."
EMPTY_RESPONSE_MESSAGE = "The AI service returned an empty response."

SUPPORT_MESSAGE = (
    "If accessing this kind of content is causing you discomfort or "
    "problems in your life, know that support is available. Talking to a "
    "mental health professional, such as a psychologist, can be a "
    "positive step."
)
ADULT_CONTENT_NOTE = f"**Additional Note:** {SUPPORT_MESSAGE}"

# Category labels (as reported by URL categorisation vendors) that mark a
# site as adult content.
_ADULT_KEYWORDS = ("adult", "porn", "sex", "nudity", "mature")


def is_adult_content(categories: list[str]) -> bool:
    """Return True if any category label looks like adult content."""
    return any(
        keyword in category.lower()
        for category in categories
        for keyword in _ADULT_KEYWORDS
    )


def detection_ratio(evidence: ProviderResult | None) -> str:
    """Describe the detection counts in plain words, or "" without evidence."""
    if evidence is None or evidence.detection_count is None or evidence.total_engines is None:
        return ""
    return (
        f"On {evidence.provider_id}, {evidence.detection_count} of "
        f"{evidence.total_engines} engines flagged it as malicious."
    )


def build_prompt(
    verdict: Verdict,
    display_name: str,
    evidence: ProviderResult | None,
    target_kind: str = "file",
) -> str:
    """Build the single prompt sent to the language model.

    Args:
        verdict: The final, already aggregated verdict.
        display_name: File name or URL shown to the user.
        evidence: Provider result with detection counts, if any.
        target_kind: ``"file"`` or ``"url"``.

    Returns:
        The prompt text.
    """
    subject = "URL" if target_kind == "url" else "file"
    details = f'The analyzed {subject} is "{display_name}" with a final verdict of "{verdict.value}".'
    ratio = detection_ratio(evidence)
    if ratio:
        details += f" {ratio}"

    prompt = (
        f"You are a cybersecurity professional. Analyze the following information: {details}\n\n"
        "Provide professional, detailed guidance in Markdown using this structure:\n"
        "1. **Risk Level:** (Low 🟢, Medium 🟡, High 🔴, Critical ⚫).\n"
        "2. **Risk Explanation:** Describe the potential impact and why the verdict was reached.\n"
        "3. **Recommendation:** A clear action for the user to take "
        '(e.g. "Delete this file immediately").\n'
        "4. **Prevention Tips:** 2 tips to avoid future threats."
    )

    if target_kind == "url":
        if evidence is not None and is_adult_content(evidence.categories):
            prompt += "\n\nURL categorisation services classify this site as adult content."
        prompt += (
            "\n\n**ATTENTION (Adult Content):** If the URL analysis indicates an adult "
            "content site, in addition to the security analysis add a special section "
            'called "Additional Note" with the following message: '
            f'"{SUPPORT_MESSAGE}"'
        )

    return prompt


class NarrativeGenerator:
    """Request a risk narrative from an OpenAI-compatible chat endpoint."""

    def __init__(self, config: dict[str, Any]) -> None:
        ai_cfg = config.get("ai", {})
        self.api_key = get_api_key(config, "ai")
        self.api_url = ai_cfg.get("api_url", "https://api.openai.com/v1/chat/completions")
        self.model = ai_cfg.get("model", "gpt-3.5-turbo")
        self.timeout = ai_cfg.get("timeout", 30)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate(
        self,
        verdict: Verdict,
        display_name: str,
        evidence: ProviderResult | None = None,
        target_kind: str = "file",
    ) -> NarrativeResult:
        """Generate guidance text for an already-final verdict.

        Args:
            verdict: The final verdict.
            display_name: File name or URL.
            evidence: Provider result with detection counts, if any.
            target_kind: ``"file"`` or ``"url"``.

        Returns:
            NarrativeResult with ``explanation`` or ``error``; never raises.
        """
        if not self.configured:
            return NarrativeResult(explanation=NOT_CONFIGURED_MESSAGE)

        prompt = build_prompt(verdict, display_name, evidence, target_kind)

        try:
            response = requests.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                },
                timeout=self.timeout,
            )
            if response.status_code != 200:
                logger.warning("AI API returned status %s", response.status_code)
                return NarrativeResult(error=f"AI API returned status {response.status_code}")

            choices = response.json().get("choices") or []
            if not choices:
                return NarrativeResult(explanation=EMPTY_RESPONSE_MESSAGE)
            explanation = choices[0]["message"]["content"]
        except requests.exceptions.RequestException as e:
            logger.warning("AI request failed: %s", e)
            return NarrativeResult(error="Failed to communicate with the AI service.")
        except (ValueError, KeyError, TypeError, AttributeError, IndexError) as e:
            logger.warning("AI response could not be parsed: %s", e)
            return NarrativeResult(error="The AI service returned an unreadable response.")

        if (
            target_kind == "url"
            and evidence is not None
            and is_adult_content(evidence.categories)
            and "Additional Note" not in explanation
        ):
            explanation = f"{explanation}\n\n{ADULT_CONTENT_NOTE}"

        return NarrativeResult(explanation=explanation)
