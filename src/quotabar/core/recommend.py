"""Pick the provider with the most headroom."""

from __future__ import annotations

from collections.abc import Mapping

from quotabar.models import ProviderSummary
from quotabar.models import Recommendation

NO_DATA_REASON = "No usage data available"


def recommend(summaries: Mapping[str, ProviderSummary | None]) -> Recommendation:
    """Recommend the eligible provider with the lowest 5-hour usage.

    Args:
        summaries: Provider id to summary; None for a provider that was
            never checked. Ties go to the provider listed first.
    """
    candidates = [
        (provider_id, summary.fiveHourPercent)
        for provider_id, summary in summaries.items()
        if summary is not None and summary.is_eligible
    ]
    if not candidates:
        return Recommendation(name=None, reason=NO_DATA_REASON)

    # sorted() is stable, so equal scores keep input order
    provider_id, percent = sorted(candidates, key=lambda c: c[1])[0]
    return Recommendation(name=provider_id, reason=f"Lowest usage ({percent}% used)")
