from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from expenses.domain import Budget, Goal

BUDGET_DANGER_PERCENT = 90
BUDGET_WARNING_PERCENT = 70


@dataclass(frozen=True)
class GoalProgress:
    goal: Goal
    progress: float      # may exceed 100
    bar_width: float     # capped at 100
    days_left: int       # negative once the deadline has passed
    completed: bool

    @property
    def overdue(self) -> bool:
        return not self.completed and self.days_left < 0

    @property
    def still_needed(self) -> Decimal:
        return max(Decimal("0"), self.goal.target_amount - self.goal.current_amount)


def goal_progress(goal: Goal, today: Optional[date] = None) -> GoalProgress:
    today = today or date.today()
    completed = goal.current_amount >= goal.target_amount
    if goal.target_amount <= 0:
        progress = 100.0
    else:
        progress = float(goal.current_amount / goal.target_amount * 100)
    return GoalProgress(
        goal=goal,
        progress=progress,
        bar_width=min(progress, 100.0),
        days_left=(goal.deadline - today).days,
        completed=completed,
    )


def budget_level(budget: Budget) -> str:
    if budget.percentage > BUDGET_DANGER_PERCENT:
        return "danger"
    if budget.percentage > BUDGET_WARNING_PERCENT:
        return "warning"
    return "ok"


def budget_share_of_spending(budget: Budget) -> Optional[float]:
    """Monthly limit as a percentage of all-time spending in the category."""
    if budget.total_spent <= 0:
        return None
    return float(budget.limit / budget.total_spent * 100)


def format_currency(amount, symbol: str = "₹") -> str:
    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def goal_form_values(goal: Optional[Goal] = None, today: Optional[date] = None) -> dict:
    """Initial values for the goal form; blank for a new goal, pre-filled when editing."""
    if goal is None:
        today = today or date.today()
        return {"name": "", "targetAmount": 0.0, "currentAmount": 0.0, "deadline": today + timedelta(days=90)}
    return {
        "name": goal.name,
        "targetAmount": float(goal.target_amount),
        "currentAmount": float(goal.current_amount),
        "deadline": goal.deadline,
    }


def goal_payload(name: str, target: float, current: float, deadline: date) -> dict:
    return {"name": name.strip(), "targetAmount": target, "currentAmount": current,
            "deadline": deadline.isoformat()}
