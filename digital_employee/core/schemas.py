"""
Pydantic schemas for the statement analysis payload.
"""

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SpendingCategory(_Payload):
    category: str
    amount: float = 0.0
    percentage: float = 0.0
    transaction_count: int = Field(default=0, alias="transactionCount")


class FrequentTransaction(_Payload):
    merchant: str
    count: int = 0
    total_amount: float = Field(default=0.0, alias="totalAmount")


class CardRecommendation(_Payload):
    card_name: str = Field(alias="cardName")
    bank: str = ""
    benefits: str = ""
    annual_fee: str = Field(default="", alias="annualFee")
    cashback_rate: str = Field(default="", alias="cashbackRate")


class StatementAnalysis(_Payload):
    """Structured result returned by the analysis service."""

    spending_categories: list[SpendingCategory] = Field(default_factory=list, alias="spendingCategories")
    top_categories: list[str] = Field(default_factory=list, alias="topCategories")
    most_frequent_transactions: list[FrequentTransaction] = Field(
        default_factory=list, alias="mostFrequentTransactions"
    )
    total_spend: float = Field(default=0.0, alias="totalSpend")
    average_transaction_amount: float = Field(default=0.0, alias="averageTransactionAmount")
    analysis: str = ""
    recommendations: list[CardRecommendation] = Field(default_factory=list)
