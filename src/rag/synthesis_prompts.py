"""
Synthesis prompt: the single prompt that turns a RAGContext into an analysis.
"""

import json
from typing import Any, Mapping

from src.signals.types import RAGContext

CURRENCY_RULES = [
    ("Seoul, South Korea, Korea", "KRW", "Korean Won"),
    ("Japan, Tokyo", "JPY", "Japanese Yen"),
    ("United Kingdom, UK, London", "GBP", "British Pound"),
    ("Eurozone countries (Germany, France, Netherlands, etc.)", "EUR", "Euro"),
    ("United States, USA, US", "USD", "US Dollar"),
    ("Canada", "CAD", "Canadian Dollar"),
    ("Australia", "AUD", "Australian Dollar"),
    ("Singapore", "SGD", "Singapore Dollar"),
    ("Switzerland", "CHF", "Swiss Franc"),
    ("India", "INR", "Indian Rupee"),
]

SALARY_BAND_EXAMPLES = """For Seoul/Korea software developers:
- Junior: 35,000,000 - 55,000,000 KRW
- Mid-level: 55,000,000 - 85,000,000 KRW
- Senior: 85,000,000 - 120,000,000 KRW
- Staff/Principal: 120,000,000+ KRW"""

OUTPUT_SCHEMA = """{{
  "role": {{
    "title": "exact job title from posting",
    "normalizedTitle": "standardized industry title",
    "seniorityLevel": "junior|mid|senior|staff|principal|executive",
    "industry": "specific industry sector",
    "skillsRequired": ["skill1", "skill2"],
    "experienceLevel": number_of_years_required,
    "marketDemand": number_0_to_100,
    "jobType": "fulltime|parttime|contract|internship",
    "workMode": "onsite|hybrid|remote",
    "compensationModel": "salary|hourly|commission|equity_heavy"
  }},
  "compensation": {{
    "salaryRange": {{
      "min": number_annual_local_currency,
      "max": number_annual_local_currency,
      "median": number_annual_local_currency,
      "currency": "ISO 4217 code for the job location",
      "confidence": number_0_to_1
    }},
    "totalCompensation": {{
      "base": number, "bonus": number, "equity": number, "benefits": number, "total": number
    }},
    "marketPosition": "bottom_10|bottom_25|average|top_25|top_10",
    "negotiationPower": number_1_to_10
  }},
  "location": {{
    "jobLocation": {job_location},
    "userLocation": {user_location},
    "isRemote": {is_remote},
    "effectiveLocation": {effective_location},
    "costOfLiving": number_index,
    "housingCosts": number_monthly_local_currency,
    "taxes": {{"federal": decimal, "state": decimal, "local": decimal, "total": decimal}},
    "qualityOfLife": number_0_to_100,
    "marketMultiplier": number_salary_adjustment_factor,
    "salaryAdjustment": {{"factor": number, "reason": "explanation if a remote adjustment applies"}}
  }},
  "market": {{
    "demand": number_0_to_100,
    "competition": number_0_to_100,
    "growth": decimal_growth_rate,
    "outlook": "declining|stable|growing|booming",
    "timeToHire": number_days,
    "alternatives": number_similar_opportunities
  }},
  "analysis": {{
    "overallScore": number_0_to_100,
    "pros": ["specific advantage"],
    "cons": ["specific concern"],
    "risks": ["market or company risk"],
    "opportunities": ["growth or career opportunity"],
    "recommendations": ["actionable recommendation or negotiation advice"]
  }}
}}"""

SYNTHESIS_PROMPT = """You are an expert compensation analyst with access to live market intelligence.

Analyze this job opportunity using the market data below.

JOB DESCRIPTION:
{job_text}

CONTEXT:
- Job Location: {job_location_text}
- User Location: {user_location_text}
- Is Remote Job: {is_remote_text}
- Analysis Location: {effective_location_text}

LIVE MARKET DATA:

Job Analysis: {job_analysis}

Salary Data Sources:
{salary_sources}

Cost of Living Data: {cost_of_living}

Economic Indicators: {economic_indicators}

Company Intelligence: {company_intelligence}

Industry Trends: {industry_trends}

Market Sentiment: {market_sentiment}

Competitor Analysis: {competitor_analysis}

{degraded_note}CURRENCY MAPPING - CRITICAL:
Based on the job location, use the local currency:
{currency_rules}

SALARY RANGES BY LOCATION:
{salary_bands}

INSTRUCTIONS:
Using ONLY the live market data provided above, create a comprehensive analysis.
If market data is insufficient, indicate low confidence rather than using generic defaults.
Do NOT use generic US ranges (e.g. $45,000-$65,000 USD) for non-US locations.

Return a JSON object with this exact structure:
{schema}

NUMERIC REQUIREMENTS:
- ALL currency amounts in the specified currency; salaries are ANNUAL amounts
- For contract or hourly roles, convert to an annual equivalent
- min <= median <= max
- Tax rates as decimals (0.15 for 15%), never percentages
- Housing costs are MONTHLY in local currency (at most 50,000 per month)
- Growth rates as decimals (at most 2.0 for 200%)
- Salaries must be plausible for the role level (roughly 20K-1M in USD terms)
- Scores (marketDemand, demand, competition, qualityOfLife, overallScore) are 0-100

CRITICAL: Return ONLY the JSON object. Do not include any explanations or text outside the JSON."""


def _dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(dict(payload), default=str, ensure_ascii=False)


def build_synthesis_prompt(context: RAGContext, job_text: str) -> str:
    """Render the synthesis prompt for one context."""
    facts = context.location_facts()

    schema = OUTPUT_SCHEMA.format(
        job_location=json.dumps(facts["jobLocation"]),
        user_location=json.dumps(facts["userLocation"]),
        is_remote=json.dumps(facts["isRemote"]),
        effective_location=json.dumps(facts["effectiveLocation"]),
    )

    salary_sources = "\n".join(
        f"- {signal.source_id} (confidence {signal.confidence:.2f}): {_dump(signal.payload)}"
        for signal in context.salary_signals
    )

    degraded_note = ""
    if context.degraded_sources:
        degraded_note = (
            "UNAVAILABLE SOURCES (treat their data as missing and lower confidence accordingly): "
            f"{', '.join(context.degraded_sources)}\n\n"
        )

    currency_rules = "\n".join(
        f"- {places} -> \"{code}\" ({name})" for places, code, name in CURRENCY_RULES
    )

    return SYNTHESIS_PROMPT.format(
        job_text=job_text.strip(),
        job_location_text=facts["jobLocation"],
        user_location_text=facts["userLocation"] or "Not specified",
        is_remote_text=str(facts["isRemote"]).lower(),
        effective_location_text=facts["effectiveLocation"],
        job_analysis=_dump(context.job_analysis.payload),
        salary_sources=salary_sources,
        cost_of_living=_dump(context.cost_of_living.payload),
        economic_indicators=_dump(context.economic_indicators.payload),
        company_intelligence=_dump(context.company_intelligence.payload),
        industry_trends=_dump(context.industry_trends.payload),
        market_sentiment=_dump(context.market_sentiment.payload),
        competitor_analysis=_dump(context.competitor_analysis.payload),
        degraded_note=degraded_note,
        currency_rules=currency_rules,
        salary_bands=SALARY_BAND_EXAMPLES,
        schema=schema,
    )
