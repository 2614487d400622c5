"""Wiring of the moderation components around one record store."""
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

from safespace.shared.database import (
    BehaviorRepository,
    ConnectionManager,
    ContentRepository,
    CrisisLogRepository,
    DatabaseConfig,
    DisputeRepository,
    InMemoryRecordStore,
    PostgresRecordStore,
    RecordStore,
    ReportRepository,
    ReputationRepository,
)
from safespace.shared.utils import Clock, utc_now
from .alert_publisher import ModeratorAlertPublisher
from .analyzer import ContentAnalyzer
from .behavior_tracker import BehaviorTracker
from .classifier_bridge import ClassifierBridge, RemoteClassifier
from .config import ModerationConfig, ReputationPolicy
from .crisis_response import CrisisResponseService
from .disputes import DisputeService
from .identity import IdentityProvider, StaticIdentityProvider
from .lifecycle import ContentLifecycleManager
from .reports import ReportQueue
from .reputation import ReputationService

logger = logging.getLogger(__name__)


@dataclass
class ModerationPipeline:
    config: ModerationConfig
    store: RecordStore
    analyzer: ContentAnalyzer
    tracker: BehaviorTracker
    lifecycle: ContentLifecycleManager
    bridge: ClassifierBridge
    reports: ReportQueue
    disputes: DisputeService
    crisis_response: CrisisResponseService
    reputation: ReputationService
    identity: IdentityProvider

    def shutdown(self, wait: bool = True) -> None:
        self.bridge.shutdown(wait=wait)


def _store_from_config(config: ModerationConfig) -> RecordStore:
    if config.store_backend == "postgres":
        manager = ConnectionManager(DatabaseConfig.from_env())
        manager.initialize()
        store = PostgresRecordStore(manager)
        store.ensure_schema()
        return store
    return InMemoryRecordStore()


def build_pipeline(
    config: Optional[ModerationConfig] = None,
    store: Optional[RecordStore] = None,
    identity: Optional[IdentityProvider] = None,
    classifier: Optional[RemoteClassifier] = None,
    executor: Optional[Executor] = None,
    alert_publisher: Optional[ModeratorAlertPublisher] = None,
    reputation_policy: Optional[ReputationPolicy] = None,
    clock: Clock = utc_now,
) -> ModerationPipeline:
    """Build every component over a shared store.

    Collaborators left as None are created from config. The remote
    classifier is only created when an endpoint is configured.
    """
    config = config or ModerationConfig()
    store = store if store is not None else _store_from_config(config)
    identity = identity or StaticIdentityProvider()
    if alert_publisher is None:
        alert_publisher = ModeratorAlertPublisher(
            stream_name=config.alert_stream_name,
            enabled=config.alerts_enabled,
        )
    if classifier is None and config.classifier_endpoint:
        classifier = RemoteClassifier(
            endpoint=config.classifier_endpoint,
            timeout_seconds=config.classifier_timeout_seconds,
        )

    content_repository = ContentRepository(store)

    analyzer = ContentAnalyzer(pattern_version=config.pattern_version)
    tracker = BehaviorTracker(BehaviorRepository(store), config=config, clock=clock)
    reputation = ReputationService(
        ReputationRepository(store), policy=reputation_policy, clock=clock
    )
    crisis_response = CrisisResponseService(
        CrisisLogRepository(store), alert_publisher=alert_publisher, clock=clock
    )
    bridge = ClassifierBridge(
        classifier,
        content_repository,
        crisis_response,
        executor=executor,
        max_workers=config.classifier_workers,
        clock=clock,
    )
    lifecycle = ContentLifecycleManager(
        analyzer=analyzer,
        tracker=tracker,
        repository=content_repository,
        crisis_response=crisis_response,
        bridge=bridge,
        reputation=reputation,
        identity=identity,
        config=config,
        clock=clock,
    )
    reports = ReportQueue(
        ReportRepository(store),
        content_repository,
        reputation=reputation,
        bridge=bridge,
        identity=identity,
        alert_publisher=alert_publisher,
        config=config,
        clock=clock,
    )
    disputes = DisputeService(
        DisputeRepository(store),
        content_repository,
        identity=identity,
        config=config,
        clock=clock,
    )

    logger.info(
        "MODERATION_PIPELINE_READY",
        extra={
            "store_backend": type(store).__name__,
            "classifier_enabled": bridge.enabled,
            "alerts_enabled": alert_publisher.enabled,
            "pattern_version": config.pattern_version,
        }
    )

    return ModerationPipeline(
        config=config,
        store=store,
        analyzer=analyzer,
        tracker=tracker,
        lifecycle=lifecycle,
        bridge=bridge,
        reports=reports,
        disputes=disputes,
        crisis_response=crisis_response,
        reputation=reputation,
        identity=identity,
    )
