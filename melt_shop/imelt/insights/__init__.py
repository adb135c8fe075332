"""
Operator insights: deterministic rule engine plus AI-assisted mode with
rule-based fallback.
"""

from .rules import ANALYSIS_TYPES, Insight, ExpectedImpact, RULES, generate_insight
from .ai_client import AIInsightService, CompletionClient, canned_response, parse_insight

__all__ = [
    'ANALYSIS_TYPES',
    'Insight',
    'ExpectedImpact',
    'RULES',
    'generate_insight',
    'AIInsightService',
    'CompletionClient',
    'canned_response',
    'parse_insight',
]
