"""
Credit card statement analysis using Gemini.
"""

import json

from google import genai
from pydantic import ValidationError

from digital_employee.core.exceptions import AnalysisError
from digital_employee.core.logging import get_logger
from digital_employee.core.schemas import StatementAnalysis

log = get_logger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a financial analyst expert in credit card analysis and UAE banking "
    "products. Always respond with valid JSON only."
)

ANALYSIS_PROMPT = """You are a financial analyst specializing in credit card spending analysis for the UAE market.

Analyze the following credit card statement data and provide a comprehensive JSON response with the following structure:

{{
  "spendingCategories": [
    {{"category": "Category Name", "amount": 0, "percentage": 0, "transactionCount": 0}}
  ],
  "topCategories": ["Top 3 categories by spend"],
  "mostFrequentTransactions": [
    {{"merchant": "Merchant Name", "count": 0, "totalAmount": 0}}
  ],
  "totalSpend": 0,
  "averageTransactionAmount": 0,
  "analysis": "Detailed spending pattern analysis",
  "recommendations": [
    {{
      "cardName": "Credit Card Name",
      "bank": "Bank Name",
      "benefits": "Key benefits matching spending pattern",
      "annualFee": "Fee amount",
      "cashbackRate": "Cashback percentage"
    }}
  ]
}}

Credit Card Statement Data:
{statement}

Based on the spending patterns, recommend the best credit cards available in the UAE market (Emirates NBD, ADCB, FAB, Mashreq, Dubai Islamic Bank, RAKBANK, etc.) that match the user's spending behavior."""


class StatementAnalyzer:
    """Sends statement text to Gemini and returns a structured analysis."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        client: genai.Client | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Lazy-load Gemini client (needs API key)."""
        if self._client is None:
            if not self.api_key:
                raise AnalysisError("GEMINI_API_KEY is required")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def analyze(self, statement: str) -> StatementAnalysis:
        """
        Analyze statement text.

        Args:
            statement: Plain text extracted from the statement attachment

        Returns:
            StatementAnalysis with categories, merchants and recommendations
        """
        prompt = ANALYSIS_PROMPT.format(statement=statement)
        log.info("statement_analysis_start", model=self.model, statement_length=len(statement))

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config={
                    "system_instruction": SYSTEM_INSTRUCTION,
                    "response_mime_type": "application/json",
                    "temperature": 0.7,
                    "max_output_tokens": 2000,
                },
            )
        except AnalysisError:
            raise
        except Exception as e:
            error_str = str(e).lower()
            if any(x in error_str for x in ["rate", "429", "quota"]):
                log.error("gemini_rate_limit", error=str(e))
            elif any(x in error_str for x in ["api key", "auth", "401", "403"]):
                log.error("gemini_auth_error", error=str(e))
            else:
                log.error("gemini_error", error=str(e))
            raise AnalysisError(f"Statement analysis failed: {e}") from e

        analysis = self._parse_response(response.text or "")
        log.info(
            "statement_analysis_complete",
            categories=len(analysis.spending_categories),
            recommendations=len(analysis.recommendations),
        )
        return analysis

    def _parse_response(self, response_text: str) -> StatementAnalysis:
        """Parse JSON from Gemini response."""
        text = response_text.strip()

        # Remove markdown code blocks if present
        if text.startswith("```"):
            lines = text.split("\n")
            lines = lines[1:]  # Remove opening ```
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]  # Remove closing ```
            text = "\n".join(lines)

        try:
            return StatementAnalysis.model_validate(json.loads(text))
        except json.JSONDecodeError as e:
            log.error("gemini_parse_error", error=str(e), response=text[:500])
            raise AnalysisError(f"Analysis response was not valid JSON: {e}") from e
        except ValidationError as e:
            log.error("gemini_schema_error", error=str(e))
            raise AnalysisError(f"Analysis response had unexpected shape: {e}") from e
