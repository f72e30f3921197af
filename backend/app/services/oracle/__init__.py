"""
Oracle consultation service module
"""

from .deck import ORACLE_CARDS, OracleCard, get_card_by_name
from .shuffle import ShuffleEngine
from .ceremony import ShuffleCeremony, CeremonyState
from .eligibility import EligibilityChecker, EligibilityDecision
from .generator import OpenAIReadingGenerator, TemplateReadingGenerator, create_reading_generator
from .notifier import LoggingNotifier, ResendEmailNotifier, create_notifier
from .orchestrator import ConsultationOrchestrator, ConsultationResult, ConsultationState

__all__ = [
    'ORACLE_CARDS',
    'OracleCard',
    'get_card_by_name',
    'ShuffleEngine',
    'ShuffleCeremony',
    'CeremonyState',
    'EligibilityChecker',
    'EligibilityDecision',
    'OpenAIReadingGenerator',
    'TemplateReadingGenerator',
    'create_reading_generator',
    'LoggingNotifier',
    'ResendEmailNotifier',
    'create_notifier',
    'ConsultationOrchestrator',
    'ConsultationResult',
    'ConsultationState',
]
