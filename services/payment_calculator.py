"""
Payment calculator for vehicle finance and lease comparisons.

Deterministic, I/O-free. Rates and cost assumptions are flat US-market
approximations for a demo, not quotes.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Literal

from memory.profile import CamelModel, UserProfile


FINANCE_APR: dict[str, float] = {
    "excellent": 4.9,
    "good": 6.9,
    "fair": 9.9,
    "unsure": 11.9,
    "building": 14.9,
}

LEASE_APR: dict[str, float] = {
    "excellent": 3.9,
    "good": 5.9,
    "fair": 8.9,
    "unsure": 10.9,
    "building": 12.9,
}

FINANCE_TERM_MONTHS = 60
LEASE_TERM_MONTHS = 36
LEASE_RESIDUAL_PCT = 0.50
LEASE_MILEAGE_LIMIT = 12_000
LEASE_EXCESS_MILEAGE_FEE = 0.25

MONTHLY_INSURANCE = 150.0
MONTHLY_MAINTENANCE_OWNED = 50.0
MONTHLY_MAINTENANCE_LEASED = 25.0  # Under factory warranty for the whole term

DEFAULT_DOWN_PAYMENT = 2000.0
DEFAULT_CREDIT = "good"
SCHEDULE_PREVIEW_ROWS = 12
LEASE_ADVANTAGE_THRESHOLD = 50.0


class FinancingOption(CamelModel):
    type: Literal["finance", "lease"]
    vehicle_price: float
    down_payment: float
    trade_in_value: float | None = None
    amount_financed: float
    term_months: int
    apr: float
    monthly_payment: float
    monthly_insurance: float
    monthly_maintenance: float
    total_monthly: float
    total_interest: float
    total_cost: float
    residual_value: float | None = None
    mileage_limit: int | None = None
    excess_mileage_fee: float | None = None
    affordability_score: int = 0
    recommendation_reason: str = ""


class PaymentScheduleItem(CamelModel):
    payment_number: int
    date: str
    principal: float
    interest: float
    total_payment: float
    remaining_balance: float


class FinancialTip(CamelModel):
    category: Literal["savings", "credit", "budget", "timing"]
    title: str
    description: str
    impact: Literal["high", "medium", "low"]
    actionable: bool
    action: str | None = None


def pmt(principal: float, rate_per_period: float, num_periods: int) -> float:
    """Standard amortizing payment."""
    if num_periods <= 0:
        return 0.0
    if rate_per_period == 0:
        return principal / num_periods
    return principal * rate_per_period / (1 - (1 + rate_per_period) ** (-num_periods))


def apr_for_credit(credit_score: str | None, is_lease: bool = False) -> float:
    table = LEASE_APR if is_lease else FINANCE_APR
    return table.get(credit_score or DEFAULT_CREDIT, table[DEFAULT_CREDIT])


def compute_financing(
    msrp: float,
    down_payment: float,
    trade_in_value: float,
    term_months: int = FINANCE_TERM_MONTHS,
    apr: float = FINANCE_APR[DEFAULT_CREDIT],
) -> FinancingOption:
    amount_financed = max(0.0, msrp - down_payment - trade_in_value)
    monthly_payment = pmt(amount_financed, apr / 100 / 12, term_months)
    total_interest = monthly_payment * term_months - amount_financed
    total_monthly = monthly_payment + MONTHLY_INSURANCE + MONTHLY_MAINTENANCE_OWNED
    return FinancingOption(
        type="finance",
        vehicle_price=msrp,
        down_payment=down_payment,
        trade_in_value=trade_in_value,
        amount_financed=round(amount_financed, 2),
        term_months=term_months,
        apr=apr,
        monthly_payment=round(monthly_payment, 2),
        monthly_insurance=MONTHLY_INSURANCE,
        monthly_maintenance=MONTHLY_MAINTENANCE_OWNED,
        total_monthly=round(total_monthly, 2),
        total_interest=round(total_interest, 2),
        total_cost=round(down_payment + trade_in_value + monthly_payment * term_months, 2),
        recommendation_reason="You own the car outright at the end of the loan",
    )


def compute_leasing(
    msrp: float,
    down_payment: float,
    term_months: int = LEASE_TERM_MONTHS,
    apr: float = LEASE_APR[DEFAULT_CREDIT],
    residual_pct: float = LEASE_RESIDUAL_PCT,
) -> FinancingOption:
    """
    Standard lease payment: depreciation over the term plus a finance
    charge of (capitalized cost + residual) * money factor.
    """
    cap_cost = max(0.0, msrp - down_payment)
    residual = msrp * residual_pct
    money_factor = apr / 2400
    depreciation = max(0.0, cap_cost - residual) / term_months if term_months else 0.0
    finance_charge = (cap_cost + residual) * money_factor
    monthly_payment = depreciation + finance_charge
    total_monthly = monthly_payment + MONTHLY_INSURANCE + MONTHLY_MAINTENANCE_LEASED
    return FinancingOption(
        type="lease",
        vehicle_price=msrp,
        down_payment=down_payment,
        amount_financed=round(cap_cost, 2),
        term_months=term_months,
        apr=apr,
        monthly_payment=round(monthly_payment, 2),
        monthly_insurance=MONTHLY_INSURANCE,
        monthly_maintenance=MONTHLY_MAINTENANCE_LEASED,
        total_monthly=round(total_monthly, 2),
        total_interest=round(finance_charge * term_months, 2),
        total_cost=round(down_payment + monthly_payment * term_months, 2),
        residual_value=round(residual, 2),
        mileage_limit=LEASE_MILEAGE_LIMIT,
        excess_mileage_fee=LEASE_EXCESS_MILEAGE_FEE,
        recommendation_reason="Lower payments and a new car every few years",
    )


def affordability_score(
    total_monthly: float,
    profile_budget: float | None = None,
    requested_budget: float | None = None,
) -> int:
    """
    0-100 score of how comfortably ``total_monthly`` fits the budget.

    The budget sent with the request wins over the one from the interview.
    With no usable budget the score is a neutral 50.
    """
    budget = requested_budget or profile_budget
    if not budget or budget <= 0:
        return 50
    ratio = total_monthly / budget
    if ratio <= 0.8:
        score = 100.0
    elif ratio <= 1.0:
        score = 100 - (ratio - 0.8) * 150
    elif ratio <= 1.2:
        score = 70 - (ratio - 1.0) * 200
    else:
        score = 30 - (ratio - 1.2) * 100
    return int(round(min(100.0, max(0.0, score))))


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def payment_schedule(
    principal: float,
    apr: float,
    term_months: int,
    start_date: date | None = None,
) -> list[PaymentScheduleItem]:
    start_date = start_date or date.today()
    rate = apr / 100 / 12
    payment = pmt(principal, rate, term_months)
    balance = float(principal)
    rows: list[PaymentScheduleItem] = []

    for number in range(1, term_months + 1):
        interest = balance * rate
        principal_paid = min(payment - interest, balance)
        balance = max(0.0, balance - principal_paid)
        rows.append(
            PaymentScheduleItem(
                payment_number=number,
                date=_add_months(start_date, number).isoformat(),
                principal=round(principal_paid, 2),
                interest=round(interest, 2),
                total_payment=round(principal_paid + interest, 2),
                remaining_balance=round(balance, 2),
            )
        )
    return rows


def financial_tips(
    profile: UserProfile,
    finance: FinancingOption,
    lease: FinancingOption,
) -> list[FinancialTip]:
    tips: list[FinancialTip] = []
    budget = profile.budget.monthly if profile.budget else None

    if profile.credit_score in ("building", "unsure", "fair"):
        tips.append(
            FinancialTip(
                category="credit",
                title="Small credit gains, real savings",
                description=(
                    f"Moving up one credit tier could lower your APR from {finance.apr}% "
                    "and save you hundreds over the loan."
                ),
                impact="high",
                actionable=True,
                action="Check your free credit report and pay down card balances before applying",
            )
        )

    if finance.down_payment < finance.vehicle_price * 0.10:
        tips.append(
            FinancialTip(
                category="savings",
                title="Aim for 10% down",
                description=(
                    f"Putting ${finance.vehicle_price * 0.10:,.0f} down lowers your monthly "
                    "payment and helps avoid owing more than the car is worth."
                ),
                impact="medium",
                actionable=True,
                action="Set aside a little each month until you reach 10% of the price",
            )
        )

    if budget and finance.total_monthly > budget:
        tips.append(
            FinancialTip(
                category="budget",
                title="Stretching the budget",
                description=(
                    f"Financing runs about ${finance.total_monthly:,.0f}/month with insurance and "
                    f"maintenance, above your ${budget:,.0f} target."
                ),
                impact="high",
                actionable=True,
                action="Consider a longer term, a larger down payment or a lower trim",
            )
        )

    if lease.monthly_payment < finance.monthly_payment:
        tips.append(
            FinancialTip(
                category="timing",
                title="Leasing keeps payments lower",
                description=(
                    f"A {lease.term_months}-month lease saves about "
                    f"${finance.monthly_payment - lease.monthly_payment:,.0f}/month, "
                    f"but comes with a {lease.mileage_limit:,} mile yearly limit."
                ),
                impact="low",
                actionable=False,
            )
        )

    if profile.trade_in is not None and profile.trade_in.has_trade_in:
        tips.append(
            FinancialTip(
                category="timing",
                title="Get your trade-in appraised",
                description="A dealer appraisal firms up your trade-in value before you sign.",
                impact="medium",
                actionable=True,
                action="Bring your title and service records to the dealership",
            )
        )
    return tips


def simulate(
    profile: UserProfile,
    vehicle_name: str,
    msrp: float,
    monthly_budget: float | None = None,
    start_date: date | None = None,
) -> dict:
    """Finance-versus-lease comparison for one vehicle against the buyer's profile."""
    budget = profile.budget
    down_payment = (budget.down_payment if budget else None) or DEFAULT_DOWN_PAYMENT
    credit_score = profile.credit_score or DEFAULT_CREDIT
    trade_in_value = (profile.trade_in.estimated_value if profile.trade_in else None) or 0.0
    profile_budget = budget.monthly if budget else None

    finance_apr = apr_for_credit(credit_score, is_lease=False)
    finance = compute_financing(msrp, down_payment, trade_in_value, FINANCE_TERM_MONTHS, finance_apr)
    lease = compute_leasing(
        msrp,
        down_payment,
        LEASE_TERM_MONTHS,
        apr_for_credit(credit_score, is_lease=True),
        LEASE_RESIDUAL_PCT,
    )
    finance.affordability_score = affordability_score(finance.total_monthly, profile_budget, monthly_budget)
    lease.affordability_score = affordability_score(lease.total_monthly, profile_budget, monthly_budget)

    schedule = payment_schedule(finance.amount_financed, finance_apr, FINANCE_TERM_MONTHS, start_date)
    recommendation = (
        "lease"
        if lease.monthly_payment < finance.monthly_payment - LEASE_ADVANTAGE_THRESHOLD
        else "finance"
    )

    return {
        "success": True,
        "vehicleName": vehicle_name,
        "msrp": msrp,
        "financeOption": finance.model_dump(by_alias=True, exclude_none=True),
        "leaseOption": lease.model_dump(by_alias=True, exclude_none=True),
        "recommendation": recommendation,
        "tips": [tip.model_dump(by_alias=True, exclude_none=True) for tip in financial_tips(profile, finance, lease)],
        "paymentSchedule": [
            row.model_dump(by_alias=True) for row in schedule[:SCHEDULE_PREVIEW_ROWS]
        ],
        "userProfile": {
            "monthlyBudget": profile_budget,
            "downPayment": down_payment,
            "creditScore": credit_score,
            "tradeInValue": trade_in_value,
        },
    }
