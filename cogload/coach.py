"""
Coaching narrative.

The rule-based advice is always computed. When a text generator is
supplied (or enabled in config) it is tried first and its output wins only
if it produced a usable result; otherwise the rule-based advice is
returned unchanged.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable, Dict, Optional, Tuple

from cogload.coach_service import CoachTextGenerator, OllamaCoachGenerator, normalize_advice
from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import round_half_up
from cogload.signals import mean_or, recent_window

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule tables: (predicate(ctx, cfg), sentence), first match wins
# ---------------------------------------------------------------------------

Rule = Tuple[Callable[[Dict, CogloadConfig], bool], str]

INSIGHT_RULES: Tuple[Rule, ...] = (
    (lambda c, cfg: c["tier"] == "high",
     "Your system is under sustained pressure. The data suggests you're approaching "
     "a load threshold where recovery becomes disproportionately harder."),
    (lambda c, cfg: c["tier"] == "moderate",
     "You're operating in a productive but watchful zone. Your patterns show capacity "
     "for current demands, though buffer margins are narrowing."),
    (lambda c, cfg: True,
     "Your cognitive load is well-managed. This is an optimal window for challenging "
     "work or skill acquisition."),
)

PROTECTION_RULES: Tuple[Rule, ...] = (
    (lambda c, cfg: c["avg_sleep"] < cfg.coach.low_sleep,
     "Prioritize sleep recovery tonight. Even 30 additional minutes could measurably "
     "improve tomorrow's cognitive capacity."),
    (lambda c, cfg: c["avg_switching"] > cfg.coach.high_switching,
     "Batch similar tasks together today. Reducing context switches by even 2-3 "
     "instances can lower cognitive friction significantly."),
    (lambda c, cfg: c["tier"] == "high",
     "Create a 2-hour protected focus block with no notifications. Your system needs "
     "uninterrupted processing time."),
    (lambda c, cfg: True,
     "Maintain current patterns. They're serving you well."),
)

OPTIMIZATION_RULES: Tuple[Rule, ...] = (
    (lambda c, cfg: c["tier"] == "moderate",
     "Front-load your most demanding task within the next 90 minutes while cognitive "
     "reserves are freshest."),
    (lambda c, cfg: c["tier"] == "high",
     "Defer non-essential decisions to tomorrow. Your cognitive system processes "
     "better when load is reduced."),
    (lambda c, cfg: True,
     "Use this low-load period for strategic planning or creative work."),
)

RISK_RULES: Tuple[Rule, ...] = (
    (lambda c, cfg: c["load_index"] > cfg.coach.risk_load and c["stability_score"] < cfg.coach.risk_stability,
     "Pattern analysis indicates elevated burnout probability. Consider a deliberate "
     "recovery day within the next 48 hours."),
    (lambda c, cfg: c["avg_sleep"] < cfg.coach.critical_sleep,
     "Sleep deficit has reached a level where cognitive impairment compounds. "
     "Prioritize recovery."),
)


def _first_match(rules: Tuple[Rule, ...], ctx: Dict, cfg: CogloadConfig) -> Optional[str]:
    for predicate, text in rules:
        if predicate(ctx, cfg):
            return text
    return None


def _recent_averages(checkins: CheckInSequence, cfg: CogloadConfig) -> Dict[str, float]:
    c = cfg.coach
    recent = recent_window(to_frame(checkins), cfg.windows.coach)
    return {
        "avg_sleep": mean_or(recent["sleep_hours"], c.default_sleep),
        "avg_switching": mean_or(recent["task_switching"], c.default_switching),
        "avg_deadline": mean_or(recent["deadline_pressure"], 0.0),
        "entries": len(recent),
    }


def generate_coach_advice(
    checkins: CheckInSequence,
    load: Dict,
    stability: Dict,
    cfg: CogloadConfig | None = None,
) -> Dict[str, Optional[str]]:
    """
    Rule-based advice from the current load, stability and 7-day averages.

    Returns:
        {"insight", "protection_strategy", "optimization", "risk_warning"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    ctx = dict(_recent_averages(checkins, cfg))
    ctx.update(tier=load["tier"], load_index=load["load_index"], stability_score=stability["score"])

    return {
        "insight": _first_match(INSIGHT_RULES, ctx, cfg),
        "protection_strategy": _first_match(PROTECTION_RULES, ctx, cfg),
        "optimization": _first_match(OPTIMIZATION_RULES, ctx, cfg),
        "risk_warning": _first_match(RISK_RULES, ctx, cfg),
    }


def build_cognitive_context(
    checkins: CheckInSequence,
    load: Dict,
    stability: Dict,
    cfg: CogloadConfig | None = None,
) -> str:
    """Structured summary of the current state, used as generator input."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    df = to_frame(checkins)
    avg = _recent_averages(df, cfg)
    if avg["entries"]:
        sleep = f"{avg['avg_sleep']:.1f}"
        switching = round_half_up(avg["avg_switching"])
        deadline = round_half_up(avg["avg_deadline"])
    else:
        sleep, switching, deadline = "N/A", 0, 0
    factors = ", ".join(f"{f['name']} ({f['impact']})" for f in load["factors"])

    return "\n".join([
        "Cognitive System State:",
        f"- Load Index: {load['load_index']}/100 ({load['tier']} tier)",
        f"- Stability Score: {stability['score']}/100 ({stability['label']})",
        f"- Pattern: {stability['pattern_regularity']}",
        f"- Avg Sleep (7d): {sleep}h",
        f"- Avg Task Switching (7d): {switching}/100",
        f"- Avg Deadline Pressure (7d): {deadline}/100",
        f"- Check-ins: {len(df)} total",
        f"- Top Factors: {factors}",
    ])


def _resolve_generator(
    generator: Optional[CoachTextGenerator],
    cfg: CogloadConfig,
) -> Optional[CoachTextGenerator]:
    if generator is not None:
        return generator
    if cfg.coach_service.enabled:
        return OllamaCoachGenerator.from_config(cfg)
    return None


def _call_generator(generator: CoachTextGenerator, context: str) -> Optional[Dict]:
    try:
        generated = generator.try_generate(context)
    except Exception as e:
        logger.warning(f"Coach generator raised {type(e).__name__}: {e}")
        return None
    advice = normalize_advice(generated)
    if advice is None and generated is not None:
        logger.warning("Coach generator returned advice without an insight")
    return advice


def _coach_executor() -> ThreadPoolExecutor:
    # One worker per call; a stuck generator thread is abandoned, never joined
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="cogload-coach")


def get_coach_intelligence(
    checkins: CheckInSequence,
    load: Dict,
    stability: Dict,
    generator: Optional[CoachTextGenerator] = None,
    cfg: CogloadConfig | None = None,
) -> Dict[str, Optional[str]]:
    """
    Advice tagged with its source: "llm" when the generator produced a
    usable result within the configured timeout, "algorithmic" otherwise.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    fallback = dict(generate_coach_advice(checkins, load, stability, cfg), source="algorithmic")

    generator = _resolve_generator(generator, cfg)
    if generator is None:
        return fallback

    context = build_cognitive_context(checkins, load, stability, cfg)
    timeout = cfg.coach_service.timeout_seconds
    executor = _coach_executor()
    try:
        generated = executor.submit(_call_generator, generator, context).result(timeout=timeout)
    except FuturesTimeoutError:
        logger.warning(f"Coach generator exceeded {timeout}s")
        generated = None
    finally:
        executor.shutdown(wait=False)

    if generated is None:
        logger.info("Falling back to algorithmic coaching")
        return fallback
    return dict(generated, source="llm")


async def get_coach_intelligence_async(
    checkins: CheckInSequence,
    load: Dict,
    stability: Dict,
    generator: Optional[CoachTextGenerator] = None,
    cfg: CogloadConfig | None = None,
) -> Dict[str, Optional[str]]:
    """
    Event-loop friendly variant. The generator runs on its own worker
    thread, outside the loop's default executor, and is abandoned after
    the configured timeout.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    fallback = dict(generate_coach_advice(checkins, load, stability, cfg), source="algorithmic")

    generator = _resolve_generator(generator, cfg)
    if generator is None:
        return fallback

    context = build_cognitive_context(checkins, load, stability, cfg)
    timeout = cfg.coach_service.timeout_seconds
    loop = asyncio.get_running_loop()
    executor = _coach_executor()
    try:
        generated = await asyncio.wait_for(
            loop.run_in_executor(executor, _call_generator, generator, context),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Coach generator exceeded {timeout}s")
        generated = None
    finally:
        executor.shutdown(wait=False)

    if generated is None:
        return fallback
    return dict(generated, source="llm")
