"""
HTML report for credit card statement analysis.
"""

import html
from datetime import date

from digital_employee.core.schemas import StatementAnalysis

_H2 = (
    "color: #333; font-size: 24px; margin-bottom: 20px; "
    "border-bottom: 2px solid #667eea; padding-bottom: 10px;"
)
_TD = "padding: 12px; border-bottom: 1px solid #e0e0e0;"
_TABLE = (
    "width: 100%; border-collapse: collapse; background: white; border-radius: 8px; "
    "overflow: hidden; box-shadow: 0 2px 4px rgba(0,0,0,0.05);"
)
_PANEL = "background: #f8f9fa; padding: 20px; border-radius: 10px;"


def _e(value) -> str:
    return html.escape(str(value))


def _section(title: str, content: str) -> str:
    return f"""
      <div style="margin: 30px 0;">
        <h2 style="{_H2}">{title}</h2>
        {content}
      </div>"""


def _stat(label: str, value: str, accent: str) -> str:
    return f"""
        <div style="background: #f8f9fa; border-radius: 10px; padding: 20px; text-align: center; border-left: 4px solid {accent};">
          <div style="font-size: 14px; color: #666; margin-bottom: 5px;">{label}</div>
          <div style="font-size: 28px; font-weight: bold; color: #333;">{value}</div>
        </div>"""


def _format_text(text: str) -> str:
    """Convert plain text to HTML."""
    return html.escape(text).replace("\n", "<br>\n")


def render_statement_report(
    recipient: str,
    analysis: StatementAnalysis,
    chart_base64: str,
    currency: str = "AED",
    generated_on: date | None = None,
) -> str:
    """
    Build the HTML email for a statement analysis.

    Args:
        recipient: Sender of the original request, used in the greeting
        analysis: Structured analysis result
        chart_base64: Base64-encoded PNG pie chart
        currency: Currency label for amounts
        generated_on: Report date for the footer (defaults to today)
    """
    generated_on = generated_on or date.today()

    category_rows = "".join(
        f"""
          <tr>
            <td style="{_TD}">{_e(cat.category)}</td>
            <td style="{_TD} text-align: right;">{_e(currency)} {cat.amount:.2f}</td>
            <td style="{_TD} text-align: right;">{cat.percentage:.1f}%</td>
            <td style="{_TD} text-align: center;">{cat.transaction_count}</td>
          </tr>"""
        for cat in analysis.spending_categories
    )

    top_categories = "".join(
        f'<li style="margin: 8px 0; color: #555;">{_e(cat)}</li>'
        for cat in analysis.top_categories
    )

    frequent_rows = "".join(
        f"""
          <tr>
            <td style="{_TD}">{_e(tx.merchant)}</td>
            <td style="{_TD} text-align: center;">{tx.count}</td>
            <td style="{_TD} text-align: right;">{_e(currency)} {tx.total_amount:.2f}</td>
          </tr>"""
        for tx in analysis.most_frequent_transactions
    )

    recommendation_cards = "".join(
        f"""
        <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); border-radius: 12px; padding: 20px; margin: 15px 0; color: white;">
          <h3 style="margin: 0 0 10px 0; font-size: 22px;">{_e(card.card_name)}</h3>
          <p style="margin: 5px 0;"><strong>Bank:</strong> {_e(card.bank)}</p>
          <p style="margin: 5px 0;"><strong>Annual Fee:</strong> {_e(card.annual_fee)}</p>
          <p style="margin: 5px 0;"><strong>Cashback Rate:</strong> {_e(card.cashback_rate)}</p>
          <p style="margin: 10px 0 0 0; line-height: 1.6;">{_e(card.benefits)}</p>
        </div>"""
        for card in analysis.recommendations
    )

    stats = (
        '<div style="display: grid; grid-template-columns: repeat(2, 1fr); gap: 20px; margin: 30px 0;">'
        + _stat("Total Spend", f"{_e(currency)} {analysis.total_spend:.2f}", "#667eea")
        + _stat("Avg Transaction", f"{_e(currency)} {analysis.average_transaction_amount:.2f}", "#764ba2")
        + "</div>"
    )

    sections = "".join([
        _section(
            "Spending Breakdown",
            f'<div style="text-align: center; {_PANEL}">'
            f'<img src="data:image/png;base64,{chart_base64}" alt="Spending Chart" '
            f'style="max-width: 100%; height: auto; border-radius: 8px;" /></div>',
        ),
        _section(
            "Spending by Category",
            f"""<table style="{_TABLE}">
          <thead>
            <tr style="background: #667eea; color: white;">
              <th style="padding: 15px; text-align: left;">Category</th>
              <th style="padding: 15px; text-align: right;">Amount</th>
              <th style="padding: 15px; text-align: right;">Percentage</th>
              <th style="padding: 15px; text-align: center;">Transactions</th>
            </tr>
          </thead>
          <tbody>{category_rows}
          </tbody>
        </table>""",
        ),
        _section(
            "Top Spending Categories",
            f'<ul style="{_PANEL} padding: 20px 40px; line-height: 1.8;">{top_categories}</ul>',
        ),
        _section(
            "Most Frequent Transactions",
            f"""<table style="{_TABLE}">
          <thead>
            <tr style="background: #764ba2; color: white;">
              <th style="padding: 15px; text-align: left;">Merchant</th>
              <th style="padding: 15px; text-align: center;">Count</th>
              <th style="padding: 15px; text-align: right;">Total Amount</th>
            </tr>
          </thead>
          <tbody>{frequent_rows}
          </tbody>
        </table>""",
        ),
        _section(
            "Spending Analysis",
            f'<div style="{_PANEL} line-height: 1.8; color: #555;">{_format_text(analysis.analysis)}</div>',
        ),
        _section(
            "Recommended Credit Cards for UAE",
            '<p style="color: #666; margin-bottom: 20px; line-height: 1.6;">'
            "Based on your spending patterns, here are the best credit card options "
            "available in the UAE market:</p>" + recommendation_cards,
        ),
    ])

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Credit Card Statement Analysis</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f5f5f5;">
  <div style="max-width: 800px; margin: 0 auto; background-color: white;">
    <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 40px 20px; text-align: center; color: white;">
      <h1 style="margin: 0; font-size: 32px; font-weight: bold;">Credit Card Statement Analysis</h1>
      <p style="margin: 10px 0 0 0; font-size: 16px; opacity: 0.9;">Comprehensive Spending Report</p>
    </div>
    <div style="padding: 30px;">
      <p style="font-size: 16px; color: #333; line-height: 1.6;">Dear {_e(recipient)},</p>
      <p style="font-size: 16px; color: #333; line-height: 1.6;">
        Thank you for using our Digital Employee service. We've analyzed your credit card statement
        and prepared a comprehensive report with insights and recommendations.
      </p>
      {stats}
      {sections}
    </div>
    <div style="background: #f8f9fa; padding: 30px 20px; text-align: center; border-top: 1px solid #e0e0e0;">
      <p style="margin: 0; color: #666; font-size: 14px;">
        This analysis was generated by your Digital Employee<br>
        Powered by AI &bull; {generated_on.strftime("%B")} {generated_on.day}, {generated_on.year}
      </p>
    </div>
  </div>
</body>
</html>
"""
