"""
Export helpers for offline analysis.

All writers create parent directories and return the written ``Path``.

  - Signal results are flattened to one row per (user, window) and written
    as Parquet with a fixed pyarrow schema, so column types are stable
    across exports.
  - Recommendations are flattened to one row each (offers and guardrail
    names joined into strings) for CSV, or dumped in full for JSON.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from spendsense.models.recommendation import Recommendation
from spendsense.models.signal import SignalResult

# ── Parquet schema ────────────────────────────────────────────────────────────

SIGNALS_PA_SCHEMA = pa.schema([
    pa.field("user_id",                   pa.string(),  nullable=False),
    pa.field("window",                    pa.string(),  nullable=False),
    pa.field("as_of",                     pa.date32(),  nullable=False),
    pa.field("recurring_count",           pa.int32(),   nullable=False),
    pa.field("monthly_recurring_spend",   pa.float64(), nullable=False),
    pa.field("subscription_share",        pa.float64(), nullable=False),
    pa.field("savings_net_inflow",        pa.float64(), nullable=False),
    pa.field("savings_growth_rate",       pa.float64(), nullable=False),
    pa.field("emergency_fund_coverage",   pa.float64(), nullable=False),
    pa.field("savings_balance",           pa.float64(), nullable=False),
    pa.field("card_count",                pa.int32(),   nullable=False),
    pa.field("average_utilization",       pa.float64(), nullable=False),
    pa.field("highest_utilization",       pa.float64(), nullable=False),
    pa.field("has_minimum_payment_only",  pa.bool_(),   nullable=False),
    pa.field("total_interest_charges",    pa.float64(), nullable=False),
    pa.field("has_overdue",               pa.bool_(),   nullable=False),
    pa.field("has_payroll_pattern",       pa.bool_(),   nullable=False),
    pa.field("payment_frequency",         pa.string(),  nullable=True),
    pa.field("payment_variability",       pa.float64(), nullable=False),
    pa.field("monthly_income",            pa.float64(), nullable=False),
    pa.field("cash_flow_buffer",          pa.float64(), nullable=False),
    pa.field("has_income_gap",            pa.bool_(),   nullable=False),
    pa.field("estimated_annual_income",   pa.float64(), nullable=False),
])

RECOMMENDATION_CSV_FIELDS = [
    "recommendation_id",
    "user_id",
    "persona_type",
    "category",
    "title",
    "status",
    "created_at",
    "template_applied",
    "confidence",
    "offer_ids",
    "guardrails",
]


def flatten_signal_result(result: SignalResult) -> dict:
    """One flat row for ``SIGNALS_PA_SCHEMA``."""
    sub, sav, cred, inc = result.subscription, result.savings, result.credit, result.income
    return {
        "user_id":                  result.user_id,
        "window":                   result.window,
        "as_of":                    result.as_of,
        "recurring_count":          sub.total_recurring_count,
        "monthly_recurring_spend":  sub.monthly_recurring_spend,
        "subscription_share":       sub.subscription_share,
        "savings_net_inflow":       sav.net_inflow,
        "savings_growth_rate":      sav.growth_rate,
        "emergency_fund_coverage":  sav.emergency_fund_coverage,
        "savings_balance":          sav.current_savings_balance,
        "card_count":               len(cred.cards),
        "average_utilization":      cred.average_utilization,
        "highest_utilization":      cred.highest_utilization,
        "has_minimum_payment_only": cred.has_minimum_payment_only,
        "total_interest_charges":   cred.total_interest_charges,
        "has_overdue":              cred.has_overdue,
        "has_payroll_pattern":      inc.has_payroll_pattern,
        "payment_frequency":        inc.payment_frequency,
        "payment_variability":      inc.payment_variability,
        "monthly_income":           inc.monthly_income,
        "cash_flow_buffer":         inc.cash_flow_buffer,
        "has_income_gap":           inc.has_income_gap,
        "estimated_annual_income":  inc.estimated_annual_income,
    }


def export_signals_parquet(results: list[SignalResult], path: Path) -> Path:
    """Write ``results`` to a Parquet file (empty results give an empty table)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = [flatten_signal_result(r) for r in results]
    table = pa.Table.from_pylist(rows, schema=SIGNALS_PA_SCHEMA)
    pq.write_table(table, path)
    return path


def flatten_recommendation(rec: Recommendation) -> dict:
    trace = rec.decision_trace
    return {
        "recommendation_id": rec.recommendation_id,
        "user_id":           rec.user_id,
        "persona_type":      rec.persona_type.value,
        "category":          rec.category,
        "title":             rec.title,
        "status":            rec.status.value,
        "created_at":        rec.created_at.isoformat(),
        "template_applied":  trace.template_applied,
        "confidence":        trace.confidence,
        "offer_ids":         ";".join(o.offer_id for o in rec.partner_offers),
        "guardrails":        ";".join(
            f"{g.name}={'pass' if g.passed else 'fail'}" for g in trace.guardrails_passed
        ),
    }


def export_recommendations_csv(recs: list[Recommendation], path: Path) -> Path:
    """Write one flat CSV row per recommendation (header only when empty)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=RECOMMENDATION_CSV_FIELDS)
        writer.writeheader()
        writer.writerows(flatten_recommendation(r) for r in recs)
    return path


def export_recommendations_json(recs: list[Recommendation], path: Path) -> Path:
    """Write full recommendation payloads, decision traces included."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [r.model_dump(mode="json") for r in recs]
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
