"""
Economy service - priced region claims and redefinitions.

Quotes the cost of new region volume, holds the quote until the actor
confirms, and settles payment once the external region change succeeded.
"""

from .bootstrap import EconomyService, create_economy_service
from .command_router import ActionExecutor, CommandOutcome, RegionCommandRouter
from .config import EconomyConfig, load_config_from_env
from .config_manager import EconomyConfigManager
from .results import Allow, AwaitingConfirmation, Deny, DenyReason, PendingAction, ProcessResult
from .workflow import TransactionWorkflow

__all__ = [
    "ActionExecutor",
    "Allow",
    "AwaitingConfirmation",
    "CommandOutcome",
    "Deny",
    "DenyReason",
    "EconomyConfig",
    "EconomyConfigManager",
    "EconomyService",
    "PendingAction",
    "ProcessResult",
    "RegionCommandRouter",
    "TransactionWorkflow",
    "create_economy_service",
    "load_config_from_env",
]
