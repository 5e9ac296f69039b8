"""Shared test fixtures for all test modules."""

import copy

import pytest

from folioscribe.document.model import DocumentModel
from folioscribe.models.portfolio import PortfolioData


SAMPLE_PORTFOLIO = {
    "name": "Grace Hopper",
    "title": "Backend Engineer",
    "email": "grace@example.com",
    "phone": "+82 10-1234-5678",
    "github": "github.com/grace",
    "location": "Busan",
    "about": "I build **reliable** services.\nI like *clean* code.",
    "skillCategories": [
        {"category": "Languages", "icon": "💻", "skills": ["Python", "Go"]},
    ],
    "projects": [
        {
            "name": "Ledger",
            "description": "Payment ledger built on `asyncio`.",
            "period": "2023",
            "tech": ["Python", "PostgreSQL"],
            "url": "https://ledger.example.com",
        },
    ],
    "experiences": [
        {
            "position": "Engineer",
            "company": "Acme",
            "duration": "2021-2024",
            "description": "Owned the billing pipeline.",
            "achievements": ["Cut latency by 40%"],
        },
    ],
    "education": [
        {"school": "KAIST", "degree": "BSc Computer Science", "period": "2017-2021"},
    ],
    "awards": [
        {"title": "Hackathon Winner", "organization": "OpenHack", "year": "2022"},
    ],
    "certifications": ["AWS SAA"],
}


@pytest.fixture
def portfolio_dict():
    """Raw portfolio mapping in the camelCase shape generators emit."""
    return copy.deepcopy(SAMPLE_PORTFOLIO)


@pytest.fixture
def portfolio_data(portfolio_dict):
    """Validated PortfolioData for the sample portfolio."""
    return PortfolioData.model_validate(portfolio_dict)


@pytest.fixture
def document_model(portfolio_data):
    """DocumentModel built from the sample portfolio."""
    return DocumentModel.from_portfolio(portfolio_data, user_id="user-1")
