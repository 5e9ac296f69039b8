"""Data models for Folioscribe."""

from folioscribe.models.block import Block, Document, EditHistoryEntry, Section, ValidationSummary
from folioscribe.models.portfolio import (
    Award,
    Education,
    Experience,
    PortfolioData,
    Project,
    SkillCategory,
)
from folioscribe.models.provenance import FieldProvenance, FieldRef, ProvenanceMap

__all__ = [
    "Award",
    "Block",
    "Document",
    "EditHistoryEntry",
    "Education",
    "Experience",
    "FieldProvenance",
    "FieldRef",
    "PortfolioData",
    "Project",
    "ProvenanceMap",
    "Section",
    "SkillCategory",
    "ValidationSummary",
]
