"""
Browser Automation Module

The action vocabulary and capability contract the executor depends on,
plus the Playwright backend for the legacy portal and the form it fills.
"""

from .capability import (
    ActionOutcome,
    ActionType,
    AutomationCapability,
    Entity,
    SIDE_EFFECTING_ACTIONS,
    SubmitType,
)
from .controller import BrowserController, BrowserConfig
from .forms import HOME_VISIT_FORM, FieldKind, FormDefinition, FormField
from .portal import PortalAutomation, PortalConfig

__all__ = [
    "ActionOutcome",
    "ActionType",
    "AutomationCapability",
    "Entity",
    "SIDE_EFFECTING_ACTIONS",
    "SubmitType",
    "BrowserController",
    "BrowserConfig",
    "FieldKind",
    "FormDefinition",
    "FormField",
    "HOME_VISIT_FORM",
    "PortalAutomation",
    "PortalConfig",
]
