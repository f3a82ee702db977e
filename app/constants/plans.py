from dataclasses import dataclass
from datetime import timedelta


PLAN_CURRENCY = "INR"

# minor units (paise)
PLAN_PRICES = {
    "monthly": 9900,
    "yearly": 99900,
}

YEARLY_THRESHOLD = PLAN_PRICES["yearly"]

PLAN_PRODUCT_NAME = "InvoMitra Pro Plan"

# gateway ceiling for the order receipt field
RECEIPT_MAX_LENGTH = 40


@dataclass(frozen=True)
class PlanGrant:
    tier: str
    days: int
    plan_type: str

    @property
    def validity(self) -> timedelta:
        return timedelta(days=self.days)


PRO_MONTHLY = PlanGrant(tier="Pro Monthly", days=30, plan_type="monthly")
PRO_YEARLY = PlanGrant(tier="Pro Yearly", days=365, plan_type="yearly")


def plan_for_amount(amount: int) -> PlanGrant:
    """Tier and validity derive from the captured amount alone."""
    if amount >= YEARLY_THRESHOLD:
        return PRO_YEARLY
    return PRO_MONTHLY
