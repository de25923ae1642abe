from __future__ import annotations

from typing import Any

MAX_RESULTS = 10

_MOCK_JOBS: tuple[dict[str, str], ...] = (
    {
        "title": "Senior Software Engineer",
        "company": "TechCorp Inc.",
        "location": "San Francisco, CA",
        "type": "Full-time",
        "salary": "$120,000 - $150,000",
        "experienceLevel": "Senior Level (6-8 years)",
        "description": (
            "We are looking for a Senior Software Engineer to join our growing team. You will be responsible "
            "for designing, developing, and maintaining high-quality software solutions."
        ),
    },
    {
        "title": "Data Scientist",
        "company": "Analytics Pro",
        "location": "Remote",
        "type": "Full-time",
        "salary": "$100,000 - $130,000",
        "experienceLevel": "Mid Level (3-5 years)",
        "description": (
            "Join our data science team to build machine learning models and drive data-driven decisions. "
            "Experience with Python, SQL, and ML frameworks required."
        ),
    },
    {
        "title": "Product Manager",
        "company": "InnovateTech",
        "location": "New York, NY",
        "type": "Full-time",
        "salary": "$110,000 - $140,000",
        "experienceLevel": "Mid Level (3-5 years)",
        "description": (
            "Lead product development from concept to launch. Work with cross-functional teams to deliver "
            "exceptional user experiences."
        ),
    },
    {
        "title": "Frontend Developer",
        "company": "WebSolutions",
        "location": "Austin, TX",
        "type": "Contract",
        "salary": "$80,000 - $100,000",
        "experienceLevel": "Entry Level (0-2 years)",
        "description": (
            "Build responsive web applications using React, TypeScript, and modern CSS. Collaborate with "
            "designers and backend developers."
        ),
    },
    {
        "title": "DevOps Engineer",
        "company": "CloudTech",
        "location": "Seattle, WA",
        "type": "Full-time",
        "salary": "$130,000 - $160,000",
        "experienceLevel": "Senior Level (6-8 years)",
        "description": (
            "Design and implement CI/CD pipelines, manage cloud infrastructure, and ensure system reliability "
            "and scalability."
        ),
    },
)

_DEFAULT_INSIGHTS: dict[str, Any] = {
    "topSkills": ["Python", "React", "AWS", "Machine Learning", "DevOps", "TypeScript"],
    "averageSalary": "$115,000",
    "marketTrend": "Growing",
    "growthRate": "+12%",
    "jobCount": "2.3M+",
    "remoteJobs": "45%",
}

# First matching profile wins.
_INSIGHT_PROFILES: tuple[tuple[tuple[str, ...], dict[str, Any]], ...] = (
    (
        ("ai", "machine learning"),
        {
            "topSkills": ["Python", "TensorFlow", "PyTorch", "AWS SageMaker", "MLOps", "Data Science"],
            "averageSalary": "$130,000",
            "marketTrend": "High Growth",
            "growthRate": "+25%",
        },
    ),
    (
        ("frontend", "react"),
        {
            "topSkills": ["React", "TypeScript", "Next.js", "Tailwind CSS", "GraphQL", "JavaScript"],
            "averageSalary": "$105,000",
            "marketTrend": "Stable",
            "growthRate": "+8%",
        },
    ),
    (
        ("devops", "cloud"),
        {
            "topSkills": ["AWS", "Docker", "Kubernetes", "Terraform", "CI/CD", "Linux"],
            "averageSalary": "$125,000",
            "marketTrend": "Growing",
            "growthRate": "+18%",
        },
    ),
)


def search_jobs(
    job_title: str | None = None,
    location: str | None = None,
    job_type: str | None = None,
    experience_level: str | None = None,
) -> list[dict[str, str]]:
    jobs = list(_MOCK_JOBS)
    if job_title:
        needle = job_title.lower()
        jobs = [job for job in jobs if needle in job["title"].lower() or needle in job["company"].lower()]
    if location:
        needle = location.lower()
        jobs = [job for job in jobs if needle in job["location"].lower() or "remote" in job["location"].lower()]
    if job_type:
        jobs = [job for job in jobs if job["type"].lower() == job_type.lower()]
    if experience_level:
        needle = experience_level.lower()
        jobs = [job for job in jobs if needle in job["experienceLevel"].lower()]
    return [dict(job) for job in jobs[:MAX_RESULTS]]


def _mentions(query: str, term: str) -> bool:
    # Short terms like "ai" must match whole words, not "maintain".
    if len(term) <= 3:
        return term in query.replace("/", " ").replace("-", " ").split()
    return term in query


def market_insights(query: str | None = None) -> dict[str, Any]:
    insights = dict(_DEFAULT_INSIGHTS)
    lowered = (query or "").lower()
    for terms, overrides in _INSIGHT_PROFILES:
        if any(_mentions(lowered, term) for term in terms):
            insights.update(overrides)
            break
    insights["topSkills"] = list(insights["topSkills"])
    return insights
