"""Describe HTML elements informally, test them live and emit a BeautifulSoup scraper."""

from __future__ import annotations

from .attribute_clause import parse_attribute_clause
from .extraction_plan import SimplePlan, StructuredPlan, build_plan, validate_generation_request
from .match_engine import evaluate_container, evaluate_descriptor, evaluate_extractor
from .models import AttributeConstraint, ElementDescriptor, Extractor, TestResult
from .script_emitter import PLACEHOLDER_SCRIPT, emit_script
from .selector_synthesis import synthesize_selector
from .session import WizardSession

__version__ = "0.1.0"

__all__ = [
    "AttributeConstraint",
    "ElementDescriptor",
    "Extractor",
    "PLACEHOLDER_SCRIPT",
    "SimplePlan",
    "StructuredPlan",
    "TestResult",
    "WizardSession",
    "build_plan",
    "emit_script",
    "evaluate_container",
    "evaluate_descriptor",
    "evaluate_extractor",
    "parse_attribute_clause",
    "synthesize_selector",
    "validate_generation_request",
]
