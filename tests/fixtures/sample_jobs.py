"""
Sample job records and scripted completion replies for pipeline tests.

Provides:
- Job records in the stored shape (for build_job_description)
- A job-analysis reply and one reply per signal source
- A synthesis reply with a handful of values the Validator must repair
"""

import copy
from typing import Any, Dict


SAMPLE_JOBS: Dict[str, Dict[str, Any]] = {
    "backend_engineer_posted": {
        "job_id": "job-backend-1",
        "title": "Senior Backend Engineer",
        "company": "StreamCo",
        "location": "New York, NY",
        "work_mode": "hybrid",
        "salary_min": 150000,
        "salary_max": 190000,
        "salary_currency": "USD",
        "salary_frequency": "annual",
        "description": "Build scalable APIs for 10M+ daily active users. Python, Go, Kubernetes.",
        "requirements": "5+ years backend development experience",
        "perks": "Unlimited PTO, quarterly offsites",
    },
    "data_intern_unposted": {
        "job_id": "job-intern-1",
        "title": "Data Science Intern",
        "company": "Analytica",
        "location": "Seoul, South Korea",
        "description": "Summer internship working on forecasting models.",
    },
    "freelance_consultant_hourly": {
        "job_id": "job-consult-1",
        "title": "Freelance Cloud Consultant",
        "company": "Nimbus",
        "salary_min": 85,
        "salary_max": 120,
        "salary_currency": "EUR",
        "salary_frequency": "hourly",
    },
}

JOB_DESCRIPTION_TEXT = """
Senior Backend Engineer at StreamCo (New York, NY, hybrid).
Build scalable APIs for 10M+ daily active users. 5+ years with Python or Go.
Competitive salary, equity and unlimited PTO.
""".strip()

JOB_ANALYSIS_REPLY: Dict[str, Any] = {
    "jobTitle": "Senior Backend Engineer",
    "seniorityLevel": "senior",
    "industry": "Technology",
    "skills": ["Python", "Go", "Kubernetes"],
    "experienceRequired": 5,
    "remotePolicy": "hybrid",
    "normalizedLocation": "New York, NY",
    "jobType": "fulltime",
    "compensationModel": "salary",
    "compensationMentioned": True,
    "equityMentioned": True,
    "benefitsMentioned": ["Unlimited PTO"],
    "salaryRange": None,
    "isPostedSalary": False,
}

SOURCE_REPLIES: Dict[str, Dict[str, Any]] = {
    "labor_statistics": {
        "occupation": "Software Developers",
        "medianWage": 132270,
        "percentile25": 101200,
        "percentile75": 168570,
        "currency": "USD",
        "source": "Bureau of Labor Statistics",
    },
    "job_market": {
        "activePostings": 1840,
        "salaryRange": {"min": 145000, "max": 210000, "currency": "USD"},
        "demandLevel": "high",
    },
    "cost_of_living": {
        "costOfLivingIndex": 187,
        "averageRent": 4200,
        "currency": "USD",
    },
    "economic_indicators": {
        "unemploymentRate": 0.041,
        "inflationRate": 0.032,
        "gdpGrowth": 0.021,
    },
    "company_intelligence": {
        "fundingStage": "Series B",
        "employeeCount": 420,
        "compensationPhilosophy": "75th percentile base plus equity",
    },
    "industry_trends": {
        "growth": "strong",
        "hotSkills": ["Go", "Kubernetes"],
    },
    "market_sentiment": {
        "sentiment": "positive",
        "hiringMomentum": "rising",
    },
    "competitor_analysis": {
        "competitors": ["Twitch", "Vimeo"],
        "typicalRange": {"min": 155000, "max": 215000},
    },
}

SYNTHESIS_REPLY: Dict[str, Any] = {
    "role": {
        "title": "Senior Backend Engineer",
        "normalizedTitle": "Senior Software Engineer",
        "seniorityLevel": "senior",
        "industry": "Technology",
        "skillsRequired": ["Python", "Go", "Kubernetes"],
        "experienceLevel": 5,
        "marketDemand": 85,
        "jobType": "Full-Time",
        "workMode": "hybrid",
        "compensationModel": "salary",
    },
    "compensation": {
        "salaryRange": {"min": 190000, "max": 150000, "median": 0, "currency": "USD", "confidence": 85},
        "totalCompensation": {"base": 0, "bonus": 15000, "equity": 20000, "benefits": 12000, "total": 0},
        "marketPosition": "above_market",
        "negotiationPower": 7,
    },
    "location": {
        "jobLocation": "somewhere the model made up",
        "costOfLiving": 187,
        "housingCosts": 50400000,
        "taxes": {"federal": 22, "state": 6.85, "local": 3.876, "total": 0},
        "qualityOfLife": 78,
        "marketMultiplier": 1.25,
    },
    "market": {
        "demand": 88,
        "competition": 70,
        "growth": 15,
        "outlook": "positive",
        "timeToHire": 35,
        "alternatives": 120,
    },
    "analysis": {
        "overallScore": 82,
        "pros": ["Above-market pay"],
        "cons": ["High cost of living"],
        "risks": ["Equity illiquid"],
        "opportunities": ["Platform leadership"],
        "recommendations": ["Negotiate base toward 180k"],
    },
    "confidence": {"overall": 0.99, "salary": 0.99},
}


def healthy_replies() -> Dict[str, Any]:
    """Replies for every step, all parseable."""
    replies: Dict[str, Any] = {"job_analysis": copy.deepcopy(JOB_ANALYSIS_REPLY)}
    replies.update(copy.deepcopy(SOURCE_REPLIES))
    replies["synthesis"] = copy.deepcopy(SYNTHESIS_REPLY)
    return replies
