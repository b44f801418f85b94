from __future__ import annotations

import logging

from ..domain import SCORE_SCALE, Journal, ScoringInput
from ..units import checked_add, checked_mul, normalize

logger = logging.getLogger(__name__)


def compute_safety_score(total_assets_usd: int, total_liabilities_usd: int) -> int:
    """Derive the bounded safety score from USD totals.

    Returns 0 when there are no assets or when liabilities meet or exceed
    assets; otherwise the share of assets not owed to borrowers, scaled to
    ``SCORE_SCALE`` and floored.
    """
    if total_assets_usd == 0:
        return 0
    if total_liabilities_usd >= total_assets_usd:
        return 0

    buffer = total_assets_usd - total_liabilities_usd
    score = checked_mul(buffer, SCORE_SCALE) // total_assets_usd
    return min(score, SCORE_SCALE)


def score(scoring_input: ScoringInput) -> Journal:
    """Score a reserve snapshot.

    Args:
        scoring_input: Reserves, protocol name and snapshot timestamp

    Returns:
        The journal committing to the score and USD totals

    Raises:
        ArithmeticOverflow: If any per-reserve or accumulated value leaves u128
    """
    total_assets_usd = 0
    total_liabilities_usd = 0

    logger.debug(
        "Scoring %s: %d reserves at %d",
        scoring_input.protocol_name,
        len(scoring_input.reserves),
        scoring_input.timestamp,
    )

    for index, reserve in enumerate(scoring_input.reserves, start=1):
        asset_value = normalize(
            reserve.total_supplied, reserve.decimals, reserve.price_usd
        )
        debt = checked_add(reserve.total_stable_debt, reserve.total_variable_debt)
        liability_value = normalize(debt, reserve.decimals, reserve.price_usd)

        logger.debug(
            "Reserve #%d %s: assets=%d liabilities=%d (USD 1e8)",
            index,
            reserve.address,
            asset_value,
            liability_value,
        )

        total_assets_usd = checked_add(total_assets_usd, asset_value)
        total_liabilities_usd = checked_add(total_liabilities_usd, liability_value)

    safety_score = compute_safety_score(total_assets_usd, total_liabilities_usd)

    logger.debug(
        "Totals: assets=%d liabilities=%d score=%d",
        total_assets_usd,
        total_liabilities_usd,
        safety_score,
    )

    return Journal(
        safety_score=safety_score,
        total_assets_usd=total_assets_usd,
        total_liabilities_usd=total_liabilities_usd,
        timestamp=scoring_input.timestamp,
    )
