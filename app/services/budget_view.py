from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class BudgetView:
    total_budget: Decimal
    realized_cost: Decimal
    variance: Decimal
    utilization_percent: Decimal
    is_over_budget: bool


def _as_decimal(value: Optional[Any]) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def budget_view(total_budget: Optional[Any], realized_cost: Optional[Any]) -> BudgetView:
    """
    Read-side budget figures. Never raises on a zero budget: utilization is
    reported as 0 instead.
    """
    budget = _as_decimal(total_budget)
    realized = _as_decimal(realized_cost)

    if budget == 0:
        utilization = Decimal("0.00")
    else:
        utilization = (realized / budget * Decimal("100")).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    return BudgetView(
        total_budget=budget,
        realized_cost=realized,
        variance=budget - realized,
        utilization_percent=utilization,
        is_over_budget=realized > budget,
    )
