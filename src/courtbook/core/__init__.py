"""Core module for courtbook business logic.

This module exports the session manager, the booking workflow, the
authorization and record stores, and the tool facade built on them.
"""

from courtbook.core.auth import AuthorizationStore
from courtbook.core.availability import AvailabilityQuery
from courtbook.core.booking import BookingEngine, BookingWorkflow
from courtbook.core.browser import PlaywrightBrowser, PlaywrightPage, browser_launcher
from courtbook.core.protocols import (
    AuthorizationRecord,
    AutomationBrowser,
    AutomationPage,
    AvailabilityResult,
    BookingPhase,
    BookingRecord,
    KeyValueStore,
    SessionState,
    Summarizer,
)
from courtbook.core.records import BookingRecordStore
from courtbook.core.session import AutomationSessionManager
from courtbook.core.states import BookingStateMachine
from courtbook.core.storage import MemoryKeyValueStore, RedisKeyValueStore
from courtbook.core.summarizer import ClaudeSummarizer, fallback_summary
from courtbook.core.tools import ToolFacade, build_facade

__all__ = [
    "AuthorizationRecord",
    "AuthorizationStore",
    "AutomationBrowser",
    "AutomationPage",
    "AutomationSessionManager",
    "AvailabilityQuery",
    "AvailabilityResult",
    "BookingEngine",
    "BookingPhase",
    "BookingRecord",
    "BookingRecordStore",
    "BookingStateMachine",
    "BookingWorkflow",
    "ClaudeSummarizer",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PlaywrightBrowser",
    "PlaywrightPage",
    "RedisKeyValueStore",
    "SessionState",
    "Summarizer",
    "ToolFacade",
    "browser_launcher",
    "build_facade",
    "fallback_summary",
]
