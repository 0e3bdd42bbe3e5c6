"""
Net-Worth Projector

Extrapolates liquid funds forward using the steady-state recurring net
(income minus expenses), derives the daily spend limit until the next
anchor day, and runs the long-range growth simulation.

DESIGN DECISION: Projections deliberately ignore current overdue and
accrued state. They describe a typical cycle, not the one in progress.
The spend limit is where overdue counts: it comes out of the margin.
"""

import math
from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from dateutil.relativedelta import relativedelta

from liquidity_engine.models.ledger import NetWorthSnapshot, Transaction, TransactionDirection
from liquidity_engine.models.liquidity import GrowthPoint, GrowthProjection, ProjectionPoint
from liquidity_engine.obligations.registry import ObligationRegistry


CENT = Decimal("0.01")

MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

MILESTONES = [
    (Decimal("10000"), "$10k Entry"),
    (Decimal("50000"), "$50k Milestone"),
    (Decimal("100000"), "$100k Club"),
    (Decimal("250000"), "$250k Quarter"),
    (Decimal("500000"), "$500k Half-Mil"),
    (Decimal("1000000"), "Millionaire"),
]


def net_worth(liquid_funds: Decimal, investment_values: Iterable[Decimal]) -> Decimal:
    return liquid_funds + sum(investment_values, Decimal("0"))


def monthly_net(registry: ObligationRegistry) -> Decimal:
    return registry.total_income_amount() - registry.total_expense_amount()


def safety_margin(registry: ObligationRegistry) -> Decimal:
    return monthly_net(registry) - registry.total_overdue()


def margin_progress(margin: Decimal, target_margin: Decimal) -> float:
    """Progress toward the target margin in percent, capped at 100."""
    if target_margin <= 0:
        return 0.0
    return min(100.0, float(margin / target_margin * 100))


def projection(
    liquid_funds: Decimal,
    registry: ObligationRegistry,
    cycles: int,
    start_month: int = 1,
) -> list[ProjectionPoint]:
    """
    One point per future cycle: liquid_funds + k * monthly_net for k in 0..cycles-1.

    Each point carries total recurring expenses as the burn-rate reference.
    """
    net = monthly_net(registry)
    burn_rate = registry.total_expense_amount()
    return [
        ProjectionPoint(
            cycle=k,
            label=MONTH_LABELS[(start_month - 1 + k) % 12],
            projected_balance=liquid_funds + k * net,
            burn_rate=burn_rate,
        )
        for k in range(cycles)
    ]


def next_anchor(now: datetime, anchor_day: int) -> datetime:
    """The next anchor-day midnight strictly after now."""
    candidate = datetime(now.year, now.month, anchor_day, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate = candidate + relativedelta(months=1)
    return candidate


def days_until_next_anchor(now: datetime, anchor_day: int) -> int:
    remaining = next_anchor(now, anchor_day) - now
    return max(1, math.ceil(remaining.total_seconds() / 86400))


def daily_spend_limit(registry: ObligationRegistry, now: datetime, anchor_day: int) -> Decimal:
    """What can be spent per day until the next anchor without eating into obligations."""
    margin = max(Decimal("0"), safety_margin(registry))
    days = days_until_next_anchor(now, anchor_day)
    return (margin / days).quantize(CENT, rounding=ROUND_HALF_UP)


def growth_projection(
    current_net_worth: Decimal,
    invested_balance: Decimal,
    registry: ObligationRegistry,
    years: int = 5,
    monthly_contribution: Decimal = Decimal("500"),
    annual_return_pct: Decimal = Decimal("8"),
    category_budgets: Optional[Mapping[str, Decimal]] = None,
) -> GrowthProjection:
    """
    Simulate invested and cash balances month by month.

    Invested grows by the monthly contribution and the monthly rate; cash
    grows by whatever cashflow is left after the contribution. A point is
    sampled every quarter and at the final month.
    """
    if years < 1:
        raise ValueError("Projection needs at least one year")

    budgets = sum((category_budgets or {}).values(), Decimal("0"))
    cashflow = monthly_net(registry) - budgets
    monthly_rate = annual_return_pct / Decimal("100") / Decimal("12")

    invested = invested_balance
    cash = current_net_worth - invested_balance
    points = [
        GrowthPoint(month=0, label="Now", total=current_net_worth, invested=invested, cash=cash)
    ]

    total_months = years * 12
    for month in range(1, total_months + 1):
        invested = (invested + monthly_contribution) * (1 + monthly_rate)
        cash = cash + max(Decimal("0"), cashflow - monthly_contribution)

        if month % 3 == 0 or month == total_months:
            points.append(GrowthPoint(
                month=month,
                label=f"Yr {month // 12}" if month % 12 == 0 else f"M{month}",
                total=(invested + cash).quantize(Decimal("1"), rounding=ROUND_HALF_UP),
                invested=invested.quantize(Decimal("1"), rounding=ROUND_HALF_UP),
                cash=cash.quantize(Decimal("1"), rounding=ROUND_HALF_UP),
            ))

    final_value = points[-1].total
    return GrowthProjection(
        points=points,
        final_value=final_value,
        milestones_reached=[label for target, label in MILESTONES if target <= final_value],
        net_monthly_cashflow=cashflow,
    )


def category_monthly_averages(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """
    Average expense per category over the distinct months it was spent in.

    Sorted from the largest average down.
    """
    totals: dict[str, Decimal] = defaultdict(Decimal)
    months: dict[str, set] = defaultdict(set)
    for t in transactions:
        if t.direction != TransactionDirection.EXPENSE:
            continue
        totals[t.category] += t.amount
        months[t.category].add((t.transaction_date.year, t.transaction_date.month))

    averages = {
        category: (total / len(months[category])).quantize(CENT, rounding=ROUND_HALF_UP)
        for category, total in totals.items()
    }
    return dict(sorted(averages.items(), key=lambda item: item[1], reverse=True))


def record_snapshot(
    history: list[NetWorthSnapshot],
    today: date,
    value: Decimal,
    threshold: Decimal,
) -> list[NetWorthSnapshot]:
    """
    Record today's net worth.

    Today's snapshot is added if missing, or replaced when the value moved
    more than threshold. History stays sorted by date.
    """
    existing = next((s for s in history if s.snapshot_date == today), None)
    if existing is not None and abs(existing.value - value) <= threshold:
        return history

    kept = [s for s in history if s.snapshot_date != today]
    kept.append(NetWorthSnapshot(snapshot_date=today, value=value))
    return sorted(kept, key=lambda s: s.snapshot_date)
