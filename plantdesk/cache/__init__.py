"""In-memory cache for remote collection reads."""
from .store import CacheStore, CacheEntry, CacheStats, CacheTTL, TTLTiers, CacheKeys, MISS
from .fetcher import ReadThroughFetcher
