# --------------------------------
# DI container
# --------------------------------
from functools import lru_cache

from plantdesk.cache import CacheStore, ReadThroughFetcher, TTLTiers
from plantdesk.config import Settings, settings as default_settings
from plantdesk.domain.activity import ActivityLogger, RemoteActivityLogRepository
from plantdesk.domain.approval import DefaultApprovalGate, RemoteApprovalRepository
from plantdesk.domain.mutations import MutationGateway
from plantdesk.domain.policies import DefaultPolicyProvider
from plantdesk.observability import log_event
from plantdesk.remote import CollectionService, HttpRemoteStore, RemoteStore


class Container:
    def __init__(self, settings: Settings | None = None, *, store: RemoteStore | None = None):
        self._settings = settings or default_settings

        self._cache = CacheStore()
        self._fetcher = ReadThroughFetcher(self._cache)
        self._store = store or HttpRemoteStore(
            base_url=self._settings.api_base_url,
            timeout=self._settings.request_timeout_s,
        )
        self._ttl = TTLTiers(
            short=self._settings.cache_ttl_short_ms,
            default=self._settings.cache_ttl_default_ms,
            long=self._settings.cache_ttl_long_ms,
        )

        self._collections = CollectionService(
            store=self._store,
            fetcher=self._fetcher,
            plants=self._settings.plants,
            default_plant=self._settings.default_plant,
            ttl=self._ttl,
        )

        self._policy_provider = DefaultPolicyProvider()
        self._activity = ActivityLogger(
            RemoteActivityLogRepository(self._store, self._settings.activity_log_collection)
        )
        self._gateway = MutationGateway(
            store=self._store,
            cache=self._cache,
            approval_gate=DefaultApprovalGate(self._policy_provider),
            approval_repository=RemoteApprovalRepository(
                self._store, self._settings.approval_collection
            ),
            activity_logger=self._activity,
            policy_provider=self._policy_provider,
            default_plant=self._settings.default_plant,
        )

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def ttl(self) -> TTLTiers:
        return self._ttl

    @property
    def collections(self) -> CollectionService:
        return self._collections

    @property
    def gateway(self) -> MutationGateway:
        return self._gateway

    @property
    def activity(self) -> ActivityLogger:
        return self._activity

    @property
    def policy_provider(self) -> DefaultPolicyProvider:
        return self._policy_provider

    def logout(self) -> None:
        """Forget every cached read and in-flight load of the signed-out user."""
        self._cache.clear()
        log_event("session.logout")


@lru_cache
def get_container() -> Container:
    return Container()
