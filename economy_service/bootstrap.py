"""
Economy service bootstrap.

Wires configuration, logging and the external collaborators into a ready
TransactionWorkflow and RegionCommandRouter.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from shared.billing import RegionRegistry, TierResolver
from shared.observability import configure_logging

from .command_router import ActionExecutor, RegionCommandRouter
from .config import EconomyConfig, load_config_from_env
from .config_manager import EconomyConfigManager
from .interfaces import (
    EconomyProvider,
    Notifier,
    PermissionChecker,
    Scheduler,
    SelectionEditor,
    SelectionSource,
)
from .limits import BlockLimits, VerticalExpander
from .scheduler import TimerScheduler
from .workflow import TransactionWorkflow

logger = logging.getLogger(__name__)

SERVICE_NAME = "economy_service"


@dataclass
class EconomyService:
    """Assembled service components."""
    config: EconomyConfig
    workflow: TransactionWorkflow
    router: RegionCommandRouter
    tiers: TierResolver
    config_manager: Optional[EconomyConfigManager] = None

    def shutdown(self) -> None:
        self.workflow.shutdown()
        logger.info("Economy service shut down")


def build_tier_resolver(config: EconomyConfig, permissions: PermissionChecker) -> TierResolver:
    return TierResolver(
        default_tier=config.default_tier,
        price_permissions=config.price_permissions,
        has_permission=permissions.has_permission,
        permission_prefix=config.pricing_permission_prefix,
    )


def create_economy_service(
    selections: SelectionSource,
    regions: RegionRegistry,
    economy: EconomyProvider,
    permissions: PermissionChecker,
    executor: ActionExecutor,
    selection_editor: Optional[SelectionEditor] = None,
    notifier: Optional[Notifier] = None,
    scheduler: Optional[Scheduler] = None,
    config: Optional[EconomyConfig] = None,
    config_path: Optional[str] = None,
    setup_logging: bool = True,
) -> EconomyService:
    """
    Build the economy service.

    Config precedence: explicit ``config``, then the JSON file at
    ``config_path`` (hot-reloadable), then environment variables.
    """
    config_manager = None
    if config is None and config_path:
        config_manager = EconomyConfigManager(config_path)
        config = config_manager.get_config()
    elif config is None:
        config = load_config_from_env()

    if setup_logging:
        configure_logging(
            service_name=SERVICE_NAME,
            log_level=config.logging.level,
            json_output=config.logging.json_output,
        )

    tiers = build_tier_resolver(config, permissions)
    workflow = TransactionWorkflow(
        config=config,
        selections=selections,
        regions=regions,
        tiers=tiers,
        economy=economy,
        permissions=permissions,
        scheduler=scheduler or TimerScheduler(),
        notifier=notifier,
    )

    limits, expander = _build_features(
        config, workflow, permissions, selections, selection_editor, notifier
    )
    router = RegionCommandRouter(
        workflow=workflow,
        executor=executor,
        selections=selections,
        limits=limits,
        expander=expander,
        notifier=notifier,
    )

    service = EconomyService(
        config=config,
        workflow=workflow,
        router=router,
        tiers=tiers,
        config_manager=config_manager,
    )

    if config_manager is not None:
        config_manager.register_observer(
            lambda new_config: _apply_config(
                service, permissions, selections, selection_editor, notifier, new_config
            )
        )

    logger.info(
        f"Economy service ready: enabled={config.enabled}, "
        f"timeout={config.confirmation_timeout_seconds}s"
    )
    return service


def _build_features(
    config: EconomyConfig,
    workflow: TransactionWorkflow,
    permissions: PermissionChecker,
    selections: SelectionSource,
    selection_editor: Optional[SelectionEditor],
    notifier: Optional[Notifier],
):
    limits = BlockLimits(config.limits, permissions, workflow.messages)
    expander = None
    if selection_editor is not None:
        expander = VerticalExpander(
            config.vertical_expand, selections, selection_editor, workflow.messages, notifier
        )
    return limits, expander


def _apply_config(
    service: EconomyService,
    permissions: PermissionChecker,
    selections: SelectionSource,
    selection_editor: Optional[SelectionEditor],
    notifier: Optional[Notifier],
    config: EconomyConfig,
) -> None:
    """Observer: push a reloaded config into the running service."""
    service.config = config
    service.workflow.reload(config)
    service.tiers = build_tier_resolver(config, permissions)
    service.workflow.set_tier_source(service.tiers)
    service.router.configure(*_build_features(
        config, service.workflow, permissions, selections, selection_editor, notifier
    ))
