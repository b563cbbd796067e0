"""Estimation pipeline tying the prompt readers to the pricing models.

The engine walks an ordered chain of estimators and returns the first
match. Every stage reports "not mine" as ``None``; only a malformed request
payload raises.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date
from typing import Any, Mapping

from ..cache import DatasetCache, get_dataset_cache
from ..datasets import Datasets
from ..utils_date import resolve_as_of
from .baselines import build_baseline_estimate
from .career import estimate_award_count, estimate_hall_of_fame, estimate_retirement
from .configuration import Calibration
from .consistency import (
    IMPOSSIBILITY_ASSUMPTION,
    IMPOSSIBILITY_LABEL,
    has_comeback_cue,
    is_hard_impossibility,
    repair,
)
from .intent import parse_intent
from .models import (
    Confidence,
    Estimate,
    Intent,
    PlayerProfile,
    RateModelResult,
    StatClaim,
    _coerce_optional_float,
    _coerce_str,
    _first,
    no_chance_estimate,
)
from .normalization import normalize
from .outcomes import OutcomeContext, PlayerOutlook, build_player_outcomes
from .rates import qualifying_seasons, rate
from .stat_claims import parse_season_stat_intent
from .tail import TailEstimate, evaluate_tail

logger = logging.getLogger(__name__)

REFUSAL_TITLE = "Not betting advice"
REFUSAL_MESSAGE = "This tool prices hypotheticals for fun; it does not recommend bets."
REFUSAL_HINT = "Try a hypothetical: wins MVP, throws 30 TDs, makes playoffs."


@dataclasses.dataclass(frozen=True, slots=True)
class EstimateRequest:
    """Boundary request: a prompt plus optional caller-supplied context."""

    prompt: str
    profile: PlayerProfile | None = None
    intent: Intent | None = None
    calibration: Calibration | None = None
    as_of_date: str | date | None = None
    team_super_bowl_pct: float | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "EstimateRequest":
        """Build a request from camelCase or snake_case keys.

        Raises:
            TypeError: if ``payload`` or a nested object is not a mapping.
            ValueError: if the prompt is missing or blank.
        """

        if not isinstance(payload, Mapping):
            raise TypeError(f"Expected mapping payload, got {type(payload).__name__}")
        prompt = _coerce_str(payload.get("prompt"))
        if not prompt:
            raise ValueError("Estimate request requires a non-empty prompt")

        profile_raw = payload.get("profile")
        if profile_raw is not None and not isinstance(profile_raw, Mapping):
            raise TypeError("profile must be an object")
        intent_raw = payload.get("intent")
        if intent_raw is not None and not isinstance(intent_raw, Mapping):
            raise TypeError("intent must be an object")
        calibration_raw = payload.get("calibration")

        return cls(
            prompt=prompt,
            profile=PlayerProfile.from_mapping(profile_raw) if profile_raw else None,
            intent=Intent.from_mapping(intent_raw) if intent_raw else None,
            calibration=Calibration.from_mapping(calibration_raw) if calibration_raw is not None else None,
            as_of_date=_coerce_str(_first(payload, "asOfDate", "as_of_date")) or None,
            team_super_bowl_pct=_coerce_optional_float(_first(payload, "teamSuperBowlPct", "team_super_bowl_pct")),
        )


def confidence_for(meta: RateModelResult) -> Confidence:
    if not meta.uses_history:
        return "Low"
    return "High" if meta.reliability >= 0.5 else "Medium"


class OddsEngine:
    """Synchronous estimator over shared, read-only datasets.

    Parameters
    ----------
    calibration:
        Default calibration; a request may carry its own.
    datasets:
        Explicit datasets. When omitted they are read through ``cache``
        (the process-wide :class:`DatasetCache` by default).
    """

    def __init__(
        self,
        calibration: Calibration | None = None,
        datasets: Datasets | None = None,
        cache: DatasetCache | None = None,
    ) -> None:
        self.calibration = calibration or Calibration()
        self._datasets = datasets
        self._cache = cache

    @property
    def datasets(self) -> Datasets:
        if self._datasets is not None:
            return self._datasets
        return (self._cache or get_dataset_cache()).datasets()

    # ----- public API -----------------------------------------------------

    def estimate_from_payload(self, payload: Mapping[str, Any]) -> Estimate | None:
        return self.estimate(EstimateRequest.from_mapping(payload))

    def estimate(self, request: EstimateRequest | str) -> Estimate | None:
        """Price ``request``; ``None`` means no estimator recognised it."""

        if isinstance(request, str):
            request = EstimateRequest(prompt=request)
        prompt = normalize(request.prompt)
        if not prompt:
            return None
        intent = request.intent or parse_intent(prompt)
        calibration = request.calibration or self.calibration
        as_of = resolve_as_of(request.as_of_date).isoformat()
        lower = prompt.lower()
        profile = request.profile

        if is_hard_impossibility(prompt):
            logger.info("Hard impossibility constraint applied to %r", prompt)
            return no_chance_estimate(
                IMPOSSIBILITY_ASSUMPTION,
                source_label=IMPOSSIBILITY_LABEL,
                summary_label=prompt[:42],
                as_of_date=as_of,
            )
        if intent.is_betting_advice:
            return Estimate(status="refused", title=REFUSAL_TITLE, message=REFUSAL_MESSAGE, hint=REFUSAL_HINT)
        if profile is not None and profile.status == "active" and has_comeback_cue(lower):
            return Estimate(
                status="snark",
                title="Nice try.",
                message=f"{profile.name} is currently active, so there's no retirement comeback to price.",
            )

        baseline = build_baseline_estimate(prompt, intent, as_of, calibration)
        if baseline is not None:
            return repair(prompt, intent, baseline.estimate, baseline.companion)

        estimate = self._stat_claim_estimate(prompt, intent, profile, calibration, as_of)
        if estimate is None:
            estimate = estimate_award_count(
                prompt,
                intent,
                profile,
                calibration=calibration,
                team_super_bowl_pct=request.team_super_bowl_pct,
                as_of_date=as_of,
            )
        if estimate is None:
            estimate = estimate_retirement(prompt, intent, profile, as_of_date=as_of)
        if estimate is None:
            estimate = estimate_hall_of_fame(prompt, intent, profile, calibration=calibration, as_of_date=as_of)
        if estimate is None:
            logger.debug("No estimator matched %r", prompt)
            return None
        return repair(prompt, intent, estimate)

    def outlook(
        self,
        profile: PlayerProfile,
        *,
        team_super_bowl_pct: float | None = None,
        as_of_date: str | date | None = None,
        calibration: Calibration | None = None,
    ) -> PlayerOutlook:
        """Career outlook (awards, team, performance, longevity) for ``profile``."""

        context = OutcomeContext(
            team_super_bowl_pct=team_super_bowl_pct,
            calibration=calibration or self.calibration,
            as_of_date=resolve_as_of(as_of_date).isoformat(),
        )
        return build_player_outcomes(profile, context)

    # ----- stat claims ----------------------------------------------------

    def _stat_claim_estimate(
        self,
        prompt: str,
        intent: Intent,
        profile: PlayerProfile | None,
        calibration: Calibration,
        as_of: str,
    ) -> Estimate | None:
        if profile is None or not profile.name:
            return None
        claim = parse_season_stat_intent(prompt)
        if claim is None:
            return None
        datasets = self.datasets
        meta = rate(profile, claim.metric, calibration, as_of, datasets)
        history = qualifying_seasons(profile, claim.metric, calibration, datasets)
        tail = evaluate_tail(
            meta.lam,
            claim.metric,
            claim.threshold,
            claim.scope,
            meta,
            history,
            position=profile.position or None,
            calibration=calibration,
        )
        return self._stat_claim_result(prompt, profile, claim, meta, tail, as_of)

    @staticmethod
    def _stat_claim_result(
        prompt: str,
        profile: PlayerProfile,
        claim: StatClaim,
        meta: RateModelResult,
        tail: TailEstimate,
        as_of: str,
    ) -> Estimate:
        if tail.family == "fixed":
            assumptions = (f"{profile.name} is not a quarterback; passing totals are a near-impossible role change.",)
            confidence: Confidence = "Medium"
        else:
            scope_text = "single-game" if claim.scope == "game" else "season"
            assumptions = (
                f"Expected {claim.metric.replace('_', ' ')} per season: {meta.lam:.1f} ({meta.model_type}).",
                f"{scope_text.capitalize()} tail priced with a {tail.family.replace('_', ' ')} model.",
            ) + tuple(note.capitalize() + "." for note in tail.notes)
            if not meta.uses_history:
                assumptions += ("No qualifying player history on file; positional prior used.",)
            confidence = confidence_for(meta)
        trace = {
            "metric": claim.metric,
            "threshold": claim.threshold,
            "scope": claim.scope,
            "lambda": round(meta.lam, 3),
            "modelType": meta.model_type,
            "sampleSeasons": meta.sample_seasons,
            "reliability": round(meta.reliability, 3),
            "staleYears": meta.stale_years,
            "family": tail.family,
        }
        if tail.dispersion is not None:
            trace["dispersion"] = round(tail.dispersion, 3)
        if tail.empirical_weight is not None:
            trace["empiricalWeight"] = round(tail.empirical_weight, 3)
        return Estimate(
            probability_pct=tail.probability_pct,
            confidence=confidence,
            assumptions=assumptions,
            source_type="historical_model",
            source_label=f"Season stat model ({meta.model_type})",
            summary_label=f"{profile.name} {claim.label}",
            as_of_date=as_of,
            trace=trace,
        )


def estimate(prompt: str, **kwargs: Any) -> Estimate | None:
    """One-shot helper: ``estimate("Josh Allen throws 30 TDs this season", profile=...)``."""

    return OddsEngine().estimate(EstimateRequest(prompt=prompt, **kwargs))


__all__ = [
    "EstimateRequest",
    "OddsEngine",
    "confidence_for",
    "estimate",
]
