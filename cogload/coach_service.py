"""
Optional text-generation override for the coaching narrative.

The default generator talks to a locally hosted Ollama-style server
(POST {base_url}/api/generate). Every failure mode, whether network error,
timeout, non-2xx status, bad JSON, or unusable text, is absorbed here
and reported as None so callers can fall back to the rule-based advice.
"""

import logging
import os
import re
from typing import Dict, Optional, Protocol

import requests

from cogload.config import CogloadConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


COACH_PROMPT = """You are a cognitive intelligence coach. You are systemic, calm, intelligent, and slightly mysterious. You provide grounded, analytical insights, never robotic. Respond with exactly 4 sections, each on a new line prefixed with the label:

INSIGHT: (2-3 sentences about the user's current cognitive state)
PROTECTION: (1 concrete strategy to protect cognitive capacity)
OPTIMIZATION: (1 performance optimization recommendation)
RISK: (1 risk warning if applicable, or "none" if no risk detected)

{context}"""

DEFAULT_PROTECTION = "Maintain current protective patterns."
DEFAULT_OPTIMIZATION = "Continue current optimization approach."


class CoachTextGenerator(Protocol):
    """Anything that can turn a cognitive-context summary into advice."""

    def try_generate(self, context: str) -> Optional[Dict[str, Optional[str]]]:
        ...


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _extract(label: str, text: str) -> str:
    match = re.search(rf"{label}:\s*(.+?)(?=\n[A-Z]+:|$)", text, re.DOTALL)
    return match.group(1).strip() if match else ""


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_advice(advice) -> Optional[Dict[str, Optional[str]]]:
    """
    Coerce generator output into the four advice slots.

    Anything without a non-empty insight is unusable and yields None.
    Missing protection / optimization slots get the defaults; a risk of
    "none" means no warning.
    """
    if not isinstance(advice, dict):
        return None
    insight = _text(advice.get("insight"))
    if not insight:
        return None

    risk = _text(advice.get("risk_warning"))
    return {
        "insight": insight,
        "protection_strategy": _text(advice.get("protection_strategy")) or DEFAULT_PROTECTION,
        "optimization": _text(advice.get("optimization")) or DEFAULT_OPTIMIZATION,
        "risk_warning": risk if risk and risk.lower() != "none" else None,
    }


def parse_coach_response(text: str) -> Optional[Dict[str, Optional[str]]]:
    """Pull the four labelled sections out of generated text."""
    text = text or ""
    return normalize_advice({
        "insight": _extract("INSIGHT", text),
        "protection_strategy": _extract("PROTECTION", text),
        "optimization": _extract("OPTIMIZATION", text),
        "risk_warning": _extract("RISK", text),
    })


# ---------------------------------------------------------------------------
# Ollama client
# ---------------------------------------------------------------------------

class OllamaCoachGenerator:
    """Blocking client for an Ollama-compatible /api/generate endpoint."""

    def __init__(self, base_url: str, model: str, timeout: float = 8.0):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: CogloadConfig | None = None) -> "OllamaCoachGenerator":
        """Build from CoachServiceParams; COGLOAD_LLM_URL / COGLOAD_LLM_MODEL win."""
        if cfg is None:
            cfg = DEFAULT_CONFIG
        params = cfg.coach_service
        return cls(
            base_url=os.getenv("COGLOAD_LLM_URL", params.base_url),
            model=os.getenv("COGLOAD_LLM_MODEL", params.model),
            timeout=params.timeout_seconds,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/generate"

    def try_generate(self, context: str) -> Optional[Dict[str, Optional[str]]]:
        payload = {
            "model": self.model,
            "prompt": COACH_PROMPT.format(context=context),
            "stream": False,
        }
        try:
            response = requests.post(self.endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.Timeout:
            logger.warning(f"Coach generator timed out after {self.timeout}s")
            return None
        except requests.RequestException as e:
            logger.warning(f"Coach generator request failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Coach generator returned invalid JSON: {e}")
            return None

        text = data.get("response", "") if isinstance(data, dict) else ""
        advice = parse_coach_response(text)
        if advice is None:
            logger.debug("Coach generator response had no INSIGHT section")
        return advice
