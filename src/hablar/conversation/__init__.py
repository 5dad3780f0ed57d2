"""Conversation sessions: history, grammar checks and generation."""

from .corrections import CorrectionRule, CorrectionRules
from .dialogue import DialogueGenerator
from .grammar import GrammarAnalyzer, GrammarCorrection, GrammarReport
from .history import HistoryEntry, HistoryStore, InMemoryHistoryStore, SQLiteHistoryStore
from .service import ConversationService

__all__ = [
    "ConversationService",
    "CorrectionRule",
    "CorrectionRules",
    "DialogueGenerator",
    "GrammarAnalyzer",
    "GrammarCorrection",
    "GrammarReport",
    "HistoryEntry",
    "HistoryStore",
    "InMemoryHistoryStore",
    "SQLiteHistoryStore",
]
