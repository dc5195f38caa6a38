"""
Raw financial records: accounts, transactions, and liabilities.

These are the external inputs every signal is derived from. They are frozen
once constructed; the pipeline never edits a raw record.

Sign convention: ``Transaction.amount`` is negative for debits (money out)
and positive for credits (money in). Extractors still check
``transaction_type`` rather than trusting the sign alone.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

VALID_ACCOUNT_TYPES = frozenset({"depository", "credit", "loan", "investment"})
VALID_ACCOUNT_SUBTYPES = frozenset({
    "checking", "savings", "money market", "cd", "cash management", "hsa",
    "credit card", "mortgage", "student", "auto",
})
SAVINGS_SUBTYPES = frozenset({"savings", "money market", "cash management", "hsa"})

LiabilityType = Literal["credit_card", "mortgage", "student_loan", "auto_loan"]
PaymentChannel = Literal["online", "in store", "other"]
TransactionType = Literal["credit", "debit"]


class Account(BaseModel):
    """A single financial account belonging to a user.

    Attributes:
        account_id: Unique account identifier.
        user_id: Owning user.
        name: Display name, e.g. ``"Everyday Checking"``.
        official_name: Institution's product name.
        type: One of ``VALID_ACCOUNT_TYPES``.
        subtype: One of ``VALID_ACCOUNT_SUBTYPES``.
        mask: Last four digits of the account number.
        current_balance: Balance in account currency; for credit cards this
            is the amount owed.
        available_balance: Spendable balance, when reported.
        credit_limit: Credit line for credit accounts; ``None`` otherwise.
        iso_currency_code: ISO 4217 code.
    """

    model_config = ConfigDict(frozen=True)

    account_id: str
    user_id: str
    name: str
    official_name: str = ""
    type: str
    subtype: str
    mask: str = "0000"
    current_balance: float
    available_balance: Optional[float] = None
    credit_limit: Optional[float] = None
    iso_currency_code: str = "USD"

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in VALID_ACCOUNT_TYPES:
            raise ValueError(
                f"Unknown account type '{v}'. Must be one of {sorted(VALID_ACCOUNT_TYPES)}."
            )
        return v

    @field_validator("subtype")
    @classmethod
    def validate_subtype(cls, v: str) -> str:
        if v not in VALID_ACCOUNT_SUBTYPES:
            raise ValueError(
                f"Unknown account subtype '{v}'. Must be one of {sorted(VALID_ACCOUNT_SUBTYPES)}."
            )
        return v

    @property
    def is_credit_card(self) -> bool:
        return self.type == "credit" and self.subtype == "credit card"

    @property
    def is_savings(self) -> bool:
        return self.subtype in SAVINGS_SUBTYPES


class TransactionCategory(BaseModel):
    """Two-level merchant category, e.g. ``Income / Payroll``."""

    model_config = ConfigDict(frozen=True)

    primary: str
    detailed: str = ""


class Transaction(BaseModel):
    """A posted or pending transaction on an account."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    account_id: str
    user_id: str
    amount: float
    date: dt.date
    name: str
    merchant_name: Optional[str] = None
    category: TransactionCategory
    payment_channel: PaymentChannel = "other"
    pending: bool = False
    transaction_type: TransactionType
    iso_currency_code: str = "USD"

    @property
    def is_debit(self) -> bool:
        return self.transaction_type == "debit"

    @property
    def is_credit(self) -> bool:
        return self.transaction_type == "credit"

    @property
    def counterparty(self) -> str:
        """Merchant name when known, otherwise the raw transaction name."""
        return self.merchant_name or self.name


class CreditCardDetails(BaseModel):
    """Statement details for a credit card liability."""

    model_config = ConfigDict(frozen=True)

    apr: float = Field(ge=0.0)
    minimum_payment_amount: float = Field(ge=0.0)
    last_payment_amount: Optional[float] = None
    last_payment_date: Optional[dt.date] = None
    next_payment_due_date: Optional[dt.date] = None
    is_overdue: bool = False


class LoanDetails(BaseModel):
    """Terms of an installment loan (mortgage, student, auto)."""

    model_config = ConfigDict(frozen=True)

    interest_rate: float = Field(ge=0.0)
    origination_date: dt.date
    original_principal: float
    remaining_principal: float
    next_payment_due_date: Optional[dt.date] = None
    minimum_payment_amount: float = 0.0
    is_overdue: bool = False
    loan_term_months: int


class Liability(BaseModel):
    """A debt obligation tied to an account.

    ``details`` is a ``CreditCardDetails`` when ``type == "credit_card"``
    and a ``LoanDetails`` otherwise; a mismatch is rejected.
    """

    model_config = ConfigDict(frozen=True)

    liability_id: str
    user_id: str
    account_id: str
    type: LiabilityType
    details: Union[CreditCardDetails, LoanDetails]

    @field_validator("details")
    @classmethod
    def validate_details(cls, v, info):
        liability_type = info.data.get("type")
        if liability_type == "credit_card" and not isinstance(v, CreditCardDetails):
            raise ValueError("credit_card liabilities require CreditCardDetails.")
        if liability_type not in (None, "credit_card") and not isinstance(v, LoanDetails):
            raise ValueError(f"{liability_type} liabilities require LoanDetails.")
        return v
