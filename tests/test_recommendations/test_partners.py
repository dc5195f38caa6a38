"""Tests for partner offer matching."""

from __future__ import annotations

from conftest import make_card, make_credit, make_signals, make_user, steady_income
from spendsense.models.signal import SavingsSignals
from spendsense.recommendations.partners import has_financial_stress, match_partner_offers
from spendsense.taxonomy.offer_taxonomy import EXCLUDED_OFFER_TYPES, OfferType
from spendsense.taxonomy.persona_taxonomy import PersonaType


def _offer_types(signals, persona):
    return [o.type for o in match_partner_offers(make_user(), signals, persona)]


class TestMatchPartnerOffers:
    def test_balance_transfer_for_high_utilization(self):
        signals = make_signals(credit=make_credit(make_card(0.8)))
        offers = match_partner_offers(make_user(), signals, PersonaType.HIGH_UTILIZATION)
        assert [o.type for o in offers] == [OfferType.BALANCE_TRANSFER_CARD]
        assert offers[0].eligibility.eligible is True

    def test_balance_transfer_ineligible_on_low_income(self):
        signals = make_signals(
            credit=make_credit(make_card(0.6)),
            income=steady_income(annual=20000.0),
        )
        offers = match_partner_offers(make_user(), signals, PersonaType.HIGH_UTILIZATION)
        transfer = [o for o in offers if o.type is OfferType.BALANCE_TRANSFER_CARD][0]
        assert transfer.eligibility.eligible is False
        assert "Minimum annual income requirement not met" in transfer.eligibility.reasons

    def test_no_balance_transfer_below_half_utilization(self):
        signals = make_signals(credit=make_credit(make_card(0.4)))
        assert OfferType.BALANCE_TRANSFER_CARD not in _offer_types(
            signals, PersonaType.HIGH_UTILIZATION
        )

    def test_savings_personas_get_hysa(self):
        signals = make_signals(savings=SavingsSignals(current_savings_balance=2000.0))
        assert _offer_types(signals, PersonaType.SAVINGS_BUILDER) == [OfferType.HIGH_YIELD_SAVINGS]
        assert _offer_types(signals, "LOW_INCOME_STABILIZER") == [OfferType.HIGH_YIELD_SAVINGS]

    def test_subscription_heavy(self):
        assert _offer_types(make_signals(), PersonaType.SUBSCRIPTION_HEAVY) == [
            OfferType.BUDGETING_APP,
            OfferType.SUBSCRIPTION_MANAGER,
        ]

    def test_counseling_under_financial_stress(self):
        signals = make_signals(credit=make_credit(make_card(0.3, overdue=True)))
        assert has_financial_stress(signals)
        assert OfferType.FINANCIAL_COUNSELING in _offer_types(
            signals, PersonaType.VARIABLE_INCOME_BUDGETER
        )

    def test_negative_cash_flow_is_stress(self):
        income = steady_income().model_copy(update={"cash_flow_buffer": -0.2})
        assert has_financial_stress(make_signals(income=income))

    def test_never_offers_excluded_products(self):
        signals = make_signals(
            credit=make_credit(make_card(0.9, overdue=True)),
            income=steady_income(annual=15000.0),
        )
        for persona in PersonaType:
            assert not set(_offer_types(signals, persona)) & EXCLUDED_OFFER_TYPES

    def test_deterministic(self):
        signals = make_signals(credit=make_credit(make_card(0.8, overdue=True)))
        first = match_partner_offers(make_user(), signals, PersonaType.HIGH_UTILIZATION)
        second = match_partner_offers(make_user(), signals, PersonaType.HIGH_UTILIZATION)
        assert first == second
