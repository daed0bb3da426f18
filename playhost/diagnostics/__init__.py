"""Diagnostics: failure classification, persisted failure log, event hub."""

from playhost.diagnostics.hub import DiagnosticEvent, DiagnosticHub
from playhost.diagnostics.json_codec import dumps_bytes, dumps_text, loads
from playhost.diagnostics.storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from playhost.diagnostics.failure_log import FAILURE_LOG_CAPACITY, FAILURE_LOG_KEY, PersistedFailureLog
from playhost.diagnostics.policies import default_policies
from playhost.diagnostics.classifier import FailureClassifier, classify_message
from playhost.diagnostics.prompt import FailurePrompt, PromptAction, PromptActionId

__all__ = [
    "FAILURE_LOG_CAPACITY",
    "FAILURE_LOG_KEY",
    "DiagnosticEvent",
    "DiagnosticHub",
    "FailureClassifier",
    "FailurePrompt",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "PersistedFailureLog",
    "PromptAction",
    "PromptActionId",
    "classify_message",
    "default_policies",
    "dumps_bytes",
    "dumps_text",
    "loads",
]
