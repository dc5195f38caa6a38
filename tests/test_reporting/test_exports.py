"""Tests for Parquet, CSV and JSON exports."""

from __future__ import annotations

import csv
import json
from datetime import date

import pyarrow.parquet as pq

from conftest import (
    AS_OF,
    make_card,
    make_credit,
    make_recommendation,
    make_signals,
    make_subscriptions,
)
from spendsense.guardrails.consent import CONSENT_CHECK
from spendsense.models.recommendation import GuardrailResult
from spendsense.reporting.export import (
    RECOMMENDATION_CSV_FIELDS,
    SIGNALS_PA_SCHEMA,
    export_recommendations_csv,
    export_recommendations_json,
    export_signals_parquet,
    flatten_recommendation,
)


class TestSignalsParquet:
    def test_schema_and_values(self, tmp_path):
        results = [
            make_signals(window="30d", subscription=make_subscriptions(3, 60.0, 12.5)),
            make_signals(credit=make_credit(make_card(0.8, min_only=True, interest=80.0))),
        ]
        path = export_signals_parquet(results, tmp_path / "out" / "signals.parquet")
        table = pq.read_table(path)
        assert table.schema.equals(SIGNALS_PA_SCHEMA)

        rows = table.to_pylist()
        assert [r["window"] for r in rows] == ["30d", "180d"]
        assert rows[0]["as_of"] == AS_OF
        assert rows[0]["recurring_count"] == 3
        assert rows[0]["subscription_share"] == 12.5
        assert rows[1]["card_count"] == 1
        assert rows[1]["highest_utilization"] == 0.8
        assert rows[1]["has_minimum_payment_only"] is True
        assert rows[1]["payment_frequency"] == "biweekly"

    def test_empty_results(self, tmp_path):
        table = pq.read_table(export_signals_parquet([], tmp_path / "empty.parquet"))
        assert table.num_rows == 0
        assert table.schema.equals(SIGNALS_PA_SCHEMA)


class TestRecommendationCsv:
    def test_rows(self, tmp_path):
        rec = make_recommendation()
        rec.decision_trace.guardrails_passed = [
            GuardrailResult(name=CONSENT_CHECK, passed=True),
        ]
        path = export_recommendations_csv([rec], tmp_path / "recs.csv")
        with path.open(newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            assert reader.fieldnames == RECOMMENDATION_CSV_FIELDS
            rows = list(reader)
        assert len(rows) == 1
        assert rows[0]["recommendation_id"] == "rec_0001"
        assert rows[0]["persona_type"] == "HIGH_UTILIZATION"
        assert rows[0]["status"] == "pending"
        assert rows[0]["template_applied"] == "hu_1"
        assert rows[0]["guardrails"] == f"{CONSENT_CHECK}=pass"

    def test_header_only_when_empty(self, tmp_path):
        path = export_recommendations_csv([], tmp_path / "none.csv")
        assert path.read_text(encoding="utf-8").strip() == ",".join(RECOMMENDATION_CSV_FIELDS)

    def test_flatten_joins_offers(self):
        assert flatten_recommendation(make_recommendation())["offer_ids"] == ""


class TestRecommendationJson:
    def test_full_payload(self, tmp_path):
        recs = [make_recommendation("rec_a"), make_recommendation("rec_b")]
        path = export_recommendations_json(recs, tmp_path / "nested" / "recs.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [d["recommendation_id"] for d in data] == ["rec_a", "rec_b"]
        assert data[0]["decision_trace"]["template_applied"] == "hu_1"
        assert data[0]["created_at"].startswith(date(2024, 6, 30).isoformat())
