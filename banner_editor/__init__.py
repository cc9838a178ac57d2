"""Cookie consent banner editor: document model, editing session and save flow."""

from .config import Config, load_config, validate_config
from .diagnostics import DiagnosticEvent, DiagnosticKind, EditorDiagnostics
from .document import BannerDocument, Component, normalize
from .editor import BannerEditor, SaveOrchestrator, SaveState

__all__ = [
    "BannerDocument",
    "BannerEditor",
    "Component",
    "Config",
    "DiagnosticEvent",
    "DiagnosticKind",
    "EditorDiagnostics",
    "SaveOrchestrator",
    "SaveState",
    "load_config",
    "normalize",
    "validate_config",
]
