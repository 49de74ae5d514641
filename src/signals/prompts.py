"""
Prompt templates for the signal sources.

Each template lists the exact JSON fields the source expects back. Literal
braces are doubled because templates are rendered with str.format().
"""

JSON_ONLY_FOOTER = """
CRITICAL: Return ONLY a valid JSON object with exactly this structure.
Do not include any explanations or text outside the JSON."""


# ===== JOB DESCRIPTION ANALYSIS =====

JOB_ANALYSIS_PROMPT = """Analyze this job description and extract structured information:

\"\"\"
{job_text}
\"\"\"

Extract and return JSON with:
{{
  "jobTitle": "normalized job title",
  "seniorityLevel": "junior|mid|senior|staff|principal|executive",
  "industry": "specific industry/sector",
  "skills": ["skill1", "skill2"],
  "experienceRequired": number_of_years,
  "remotePolicy": "onsite|hybrid|remote",
  "normalizedLocation": "city, country format",
  "jobType": "fulltime|parttime|contract|internship",
  "compensationModel": "salary|hourly|commission|equity_heavy",
  "compensationMentioned": boolean,
  "equityMentioned": boolean,
  "benefitsMentioned": ["benefit1"],
  "salaryRange": {{"min": number, "max": number, "currency": "ISO 4217 code"}},
  "isPostedSalary": boolean
}}

Set "isPostedSalary" to true ONLY when the posting itself states a salary figure or range.
Be precise and specific. Use industry-standard terminology.
""" + JSON_ONLY_FOOTER


# ===== SALARY SOURCES =====

LABOR_STATISTICS_PROMPT = """Get official labor statistics salary data for "{occupation}" in "{location}".

Report:
- Mean annual wage
- Median annual wage
- Employment statistics and growth projections
- Geographic pay differentials

Report published figures only, no estimates. Wages are annual amounts in the
local currency of "{location}".

{{
  "meanAnnualWage": number,
  "medianAnnualWage": number,
  "employmentStatistics": {{"total": number, "growth": number}},
  "geographicDifferentials": {{"{location}": number}}
}}
""" + JSON_ONLY_FOOTER

JOB_MARKET_PROMPT = """Analyze the current job market for "{job_title}" in "{location}"{company_clause}.

Analyze:
- Current job postings on major job boards and company career pages
- Salary ranges being offered right now
- Required skills and their market value
- Competition level (number of similar postings)
- Time-to-fill for similar roles
- Demand trend over the last 6 months
- Hiring velocity in this market

{{
  "currentPostings": number,
  "salaryRanges": [{{"min": number, "max": number, "company": "string"}}],
  "requiredSkills": ["skill1", "skill2"],
  "competitionLevel": number (0-100),
  "timeToFill": number (days),
  "demandTrends": {{"sixMonthGrowth": number}},
  "hiringVelocity": "low|medium|high"
}}
""" + JSON_ONLY_FOOTER


# ===== LOCATION SOURCES =====

COST_OF_LIVING_PROMPT = """Get current cost of living data for "{location}".

Report:
- Cost of Living Index, Rent Index, Restaurant Price Index, Groceries Index
- Local Purchasing Power Index
- Average monthly net salary
- Typical monthly housing, transportation and utilities costs (local currency)

{{
  "costOfLivingIndex": number,
  "rentIndex": number,
  "restaurantPriceIndex": number,
  "groceriesIndex": number,
  "localPurchasingPowerIndex": number,
  "averageMonthlyNetSalary": number,
  "housingCosts": number,
  "transportationCosts": number,
  "utilitiesCosts": number
}}
""" + JSON_ONLY_FOOTER

ECONOMIC_INDICATORS_PROMPT = """Get current economic indicators for "{location}" that affect salary negotiations.

Report:
- GDP growth rate, unemployment rate, inflation rate, interest rates (decimals, 0.03 = 3%)
- Currency strength
- Tech sector health in this region
- Recent policy changes affecting employment
- Investment climate

{{
  "gdpGrowth": number,
  "unemploymentRate": number,
  "inflationRate": number,
  "interestRates": number,
  "currencyStrength": number,
  "techSectorHealth": "weak|moderate|strong",
  "policyChanges": [],
  "investmentClimate": "unfavorable|neutral|favorable"
}}
""" + JSON_ONLY_FOOTER


# ===== COMPANY AND SECTOR SOURCES =====

COMPANY_INTELLIGENCE_PROMPT = """Research company intelligence for "{company}".

Report:
- Company size and headcount
- Recent funding rounds and valuation
- Financial health
- Stock performance (if public)
- Employee review rating
- Known compensation philosophy and equity/bonus structure
- Recent layoffs or hiring sprees
- Competitive positioning in its market

{{
  "companySize": number,
  "recentFunding": {{"series": "string", "amount": number}},
  "financialHealth": "string",
  "stockPerformance": {{"growth": number}},
  "glassdoorRating": number,
  "compensationPhilosophy": "string",
  "equityStructure": "string",
  "recentLayoffs": boolean,
  "hiringSpree": boolean,
  "competitivePositioning": "string"
}}
""" + JSON_ONLY_FOOTER

INDUSTRY_TRENDS_PROMPT = """Analyze current trends in the "{industry}" industry affecting "{job_title}" roles.

Report:
- Industry growth rate and outlook
- Technology trends affecting job demand
- Skill premiums and emerging skill requirements
- Salary growth trends in this sector
- Remote work adoption and its impact on compensation
- M&A activity, venture capital investment, regulatory changes

{{
  "industryGrowth": number,
  "technologyTrends": [],
  "skillPremiums": {{}},
  "salaryGrowthTrends": number,
  "remoteWorkAdoption": number,
  "maActivity": "low|moderate|high",
  "vcInvestment": number,
  "regulatoryChanges": []
}}
""" + JSON_ONLY_FOOTER

MARKET_SENTIMENT_PROMPT = """Analyze current market sentiment for "{job_title}" roles in "{industry}".

Determine:
- Overall hiring sentiment
- Salary trend direction
- Market confidence level
- Risk factors affecting this role or industry
- Growth opportunities and outlook

{{
  "overallSentiment": "positive|negative|neutral",
  "salaryTrend": "increasing|decreasing|stable",
  "marketConfidence": number (0-1),
  "riskFactors": [],
  "growthOpportunities": []
}}
""" + JSON_ONLY_FOOTER

COMPETITOR_ANALYSIS_PROMPT = """Analyze competitor job offerings for "{job_title}" in "{location}"{company_clause}.

Report:
- Similar companies hiring for this role
- Salary ranges offered by competitors
- Unique benefits or perks
- Market positioning of the competing companies
- Hiring velocity and competition level

{{
  "similarCompanies": [],
  "salaryRanges": {{}},
  "uniqueBenefits": [],
  "marketPositioning": "string",
  "hiringVelocity": "low|medium|high",
  "competitionLevel": number (0-10)
}}
""" + JSON_ONLY_FOOTER
