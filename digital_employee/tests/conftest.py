"""
Shared pytest fixtures for digital_employee tests.
"""

import pytest

from digital_employee.catalog import PatternCatalog
from digital_employee.classifiers import FuzzyIntentMatcher
from digital_employee.config import get_settings
from digital_employee.core.models import Attachment, IncomingMessage
from digital_employee.core.schemas import StatementAnalysis
from digital_employee.handlers import build_registry
from digital_employee.processors import DispatchCoordinator
from digital_employee.tests.fakes import FakeAnalyzer, FakeCharts, FakeSender, make_message


@pytest.fixture
def sample_analysis() -> StatementAnalysis:
    """Analysis payload as returned by the analysis service."""
    return StatementAnalysis.model_validate({
        "spendingCategories": [
            {"category": "Dining", "amount": 1200.5, "percentage": 60.0, "transactionCount": 12},
            {"category": "Groceries", "amount": 800.0, "percentage": 40.0, "transactionCount": 5},
        ],
        "topCategories": ["Dining", "Groceries"],
        "mostFrequentTransactions": [
            {"merchant": "Cafe <Nero>", "count": 8, "totalAmount": 320.0},
        ],
        "totalSpend": 2000.5,
        "averageTransactionAmount": 117.68,
        "analysis": "Most spend goes to dining.",
        "recommendations": [
            {
                "cardName": "Dining Rewards",
                "bank": "Example Bank",
                "benefits": "5% back on dining",
                "annualFee": "AED 300",
                "cashbackRate": "5%",
            },
        ],
    })


@pytest.fixture
def sample_message() -> IncomingMessage:
    """Loan request with the required subject prefix."""
    return make_message()


@pytest.fixture
def csv_attachment() -> Attachment:
    return Attachment(
        filename="statement.csv",
        content_type="text/csv",
        content=b"Date,Merchant,Amount\n2026-02-01,Cafe Nero,25.50\n\n2026-02-02, Carrefour ,110.00\n",
    )


@pytest.fixture
def fake_sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def fake_analyzer(sample_analysis) -> FakeAnalyzer:
    return FakeAnalyzer(sample_analysis)


@pytest.fixture
def registry(fake_analyzer):
    return build_registry(analyzer=fake_analyzer, charts=FakeCharts())


@pytest.fixture
def matcher(registry) -> FuzzyIntentMatcher:
    return FuzzyIntentMatcher(PatternCatalog(known_actions=registry.actions()), threshold=0.6)


@pytest.fixture
def dispatcher(matcher, registry, fake_sender) -> DispatchCoordinator:
    return DispatchCoordinator(matcher=matcher, registry=registry, sender=fake_sender)


@pytest.fixture
def mock_settings(monkeypatch):
    """Required settings in the environment."""
    monkeypatch.setenv("IMAP_HOST", "imap.example.com")
    monkeypatch.setenv("IMAP_PORT", "993")
    monkeypatch.setenv("IMAP_USER", "bot@example.com")
    monkeypatch.setenv("IMAP_PASSWORD", "test-password")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
