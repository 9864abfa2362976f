"""
Portfolio-level aggregation over holdings.

Sums per-holding metrics and ranks holdings by total P&L percentage.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from vaultfolio.core.portfolio.models import ZERO, Holding
from vaultfolio.core.portfolio.valuation import HUNDRED, HoldingMetrics, compute_holding_metrics


@dataclass(frozen=True)
class Performer:
    """Reference to a ranked holding."""

    holding_id: str
    name: str
    total_pnl: Decimal
    total_pnl_pct: Decimal


@dataclass
class PortfolioSummary:
    """Overall portfolio summary."""

    total_cost: Decimal
    total_current_value: Decimal  # Unsold units at current estimate
    total_pnl: Decimal
    total_pnl_pct: Decimal  # 0 when total_cost is 0
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    fees_paid: Decimal
    position_count: int
    units_held: int
    in_profit: int
    in_loss: int
    best_performer: Optional[Performer] = None
    worst_performer: Optional[Performer] = None
    allocation: dict[str, Decimal] = field(default_factory=dict)  # holding id -> % of current value


def portfolio_summary(holdings: Iterable[Holding]) -> PortfolioSummary:
    """
    Aggregate metrics across holdings.

    Best and worst performers are ranked by total P&L percentage; ties go
    to the holding that appears first in the input.

    Args:
        holdings: Holdings to aggregate (may be empty)

    Returns:
        PortfolioSummary
    """
    rows: list[tuple[Holding, HoldingMetrics]] = [
        (holding, compute_holding_metrics(holding)) for holding in holdings
    ]

    total_cost = sum((m.total_cost for _, m in rows), ZERO)
    total_value = sum((m.current_value for _, m in rows), ZERO)
    total_pnl = sum((m.total_pnl for _, m in rows), ZERO)
    realized = sum((m.realized_pnl for _, m in rows), ZERO)
    unrealized = sum((m.unrealized_pnl for _, m in rows), ZERO)
    fees = sum((m.fees_paid for _, m in rows), ZERO)

    best: Optional[Performer] = None
    worst: Optional[Performer] = None
    for holding, metrics in rows:
        ref = Performer(
            holding_id=holding.id,
            name=holding.name,
            total_pnl=metrics.total_pnl,
            total_pnl_pct=metrics.total_pnl_pct,
        )
        if best is None or ref.total_pnl_pct > best.total_pnl_pct:
            best = ref
        if worst is None or ref.total_pnl_pct < worst.total_pnl_pct:
            worst = ref

    allocation = {
        holding.id: (m.current_value / total_value * HUNDRED if total_value != 0 else ZERO)
        for holding, m in rows
    }

    return PortfolioSummary(
        total_cost=total_cost,
        total_current_value=total_value,
        total_pnl=total_pnl,
        total_pnl_pct=total_pnl / total_cost * HUNDRED if total_cost != 0 else ZERO,
        realized_pnl=realized,
        unrealized_pnl=unrealized,
        fees_paid=fees,
        position_count=len(rows),
        units_held=sum(m.remaining_quantity for _, m in rows),
        in_profit=sum(1 for _, m in rows if m.total_pnl >= 0),
        in_loss=sum(1 for _, m in rows if m.total_pnl < 0),
        best_performer=best,
        worst_performer=worst,
        allocation=allocation,
    )
