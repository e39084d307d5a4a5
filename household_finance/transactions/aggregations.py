"""Pure aggregation helpers behind the transaction query service.

Amounts are signed: positive is an expense, negative is income or a credit.
"""

from collections import defaultdict

from household_finance.transactions.models import Classification, GroupBy

_TOP_MERCHANTS = 10

_FALLBACK_KEYS: dict[GroupBy, str] = {
    GroupBy.category: "Uncategorized",
    GroupBy.classification: "Unknown",
    GroupBy.merchant: "Unknown",
}

_GROUP_COLUMNS: dict[GroupBy, str] = {
    GroupBy.category: "category",
    GroupBy.classification: "classification",
    GroupBy.merchant: "merchant_normalised",
}


def _cents(value: float) -> float:
    return round(value, 2)


def summarize_spending(rows: list[dict], group_by: GroupBy) -> dict:
    """Group positive amounts by the requested key, largest bucket first."""
    column = _GROUP_COLUMNS[group_by]
    fallback = _FALLBACK_KEYS[group_by]

    buckets: dict[str, dict[str, float]] = defaultdict(lambda: {"total": 0.0, "count": 0})
    grand_total = 0.0

    for row in rows:
        amount = row.get("amount") or 0
        if amount <= 0:
            continue
        key = row.get(column) or fallback
        buckets[key]["total"] += amount
        buckets[key]["count"] += 1
        grand_total += amount

    breakdown = [
        {
            "name": name,
            "total": _cents(data["total"]),
            "count": int(data["count"]),
            "percentage": round(data["total"] / grand_total * 100, 1) if grand_total > 0 else 0,
        }
        for name, data in buckets.items()
    ]
    breakdown.sort(key=lambda item: item["total"], reverse=True)

    return {
        "group_by": str(group_by),
        "total": _cents(grand_total),
        "breakdown": breakdown,
    }


def summarize_recent_activity(rows: list[dict], days: int) -> dict:
    """Summarise a recent window of transactions.

    ``avg_daily`` divides by the days that actually saw spending, not by the
    window length.
    """
    daily: dict[str, float] = defaultdict(float)
    merchants: dict[str, float] = defaultdict(float)
    total = 0.0
    essential = 0.0
    discretionary = 0.0

    for row in rows:
        amount = row.get("amount") or 0
        if amount <= 0:
            continue
        daily[row["date"]] += amount
        total += amount

        classification = row.get("classification")
        if classification == Classification.essential:
            essential += amount
        elif classification == Classification.discretionary:
            discretionary += amount

        merchant = row.get("merchant_normalised")
        if merchant:
            merchants[merchant] += amount

    top_merchants = [
        {"name": name, "total": _cents(amount)}
        for name, amount in sorted(merchants.items(), key=lambda kv: kv[1], reverse=True)[
            :_TOP_MERCHANTS
        ]
    ]

    days_with_spending = len(daily)
    avg_daily = total / days_with_spending if days_with_spending else 0.0

    return {
        "period_days": days,
        "total_spending": _cents(total),
        "essential": _cents(essential),
        "discretionary": _cents(discretionary),
        "discretionary_pct": round(discretionary / total * 100, 1) if total > 0 else 0,
        "avg_daily": _cents(avg_daily),
        "transaction_count": len(rows),
        "top_merchants": top_merchants,
    }


def summarize_query(rows: list[dict]) -> dict:
    total_spending = sum(row["amount"] for row in rows if row["amount"] > 0)
    total_income = sum(-row["amount"] for row in rows if row["amount"] < 0)
    return {
        "count": len(rows),
        "total_spending": _cents(total_spending),
        "total_income": _cents(total_income),
    }
