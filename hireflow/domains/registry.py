"""
Domain registry for custom domain and subdomain -> organization mappings.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from ..errors import DuplicateDomain, NotFound, RegistryError
from .dns import DnsInstructions, get_dns_instructions
from .models import (
    ACTIVE,
    DOMAIN_STATUSES,
    VERIFIED,
    CustomDomain,
    Subdomain,
)
from .validation import DomainValidator

logger = logging.getLogger("hireflow.domains.registry")


class DomainRegistry:
    """
    Registry for custom domains and platform subdomains.

    Uses Redis for persistence, or an in-process store when configured with
    ``use_redis=False`` (development and tests). Uniqueness is enforced with
    a watched transaction on the name key in Redis and under a lock in memory.
    """

    def __init__(
        self,
        validator: Optional[DomainValidator] = None,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "hireflow:",
        use_redis: bool = True,
        routing_target: str = "cname.vercel-dns.com",
    ):
        self.validator = validator or DomainValidator()
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.routing_target = routing_target
        self._redis: Optional[redis.Redis] = None
        self._use_redis = use_redis
        # In-memory store
        self._domains: Dict[str, dict] = {}
        self._domain_ids: Dict[str, str] = {}
        self._org_domains: Dict[str, Set[str]] = {}
        self._subdomains: Dict[str, dict] = {}
        self._subdomain_ids: Dict[str, str] = {}
        self._org_subdomains: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()

    async def _get_redis(self) -> Optional[redis.Redis]:
        """Get Redis connection."""
        if not self._use_redis:
            return None

        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
                logger.info("Domain registry connected to Redis")
            except RedisError as e:
                self._redis = None
                raise RegistryError(f"Redis unavailable: {e}") from e

        return self._redis

    @asynccontextmanager
    async def _store_errors(self, action: str):
        try:
            yield
        except RedisError as e:
            logger.error(f"Registry {action} failed: {e}")
            raise RegistryError(f"Registry {action} failed: {e}") from e

    async def _claim(
        self,
        r: redis.Redis,
        name_key: str,
        data: dict,
        id_key: str,
        org_key: str,
        name: str,
        taken_message: str,
    ) -> None:
        """
        Write a record with its id index and org membership in one transaction.

        The name key is watched, so a concurrent claim aborts the EXEC and
        nothing is written on any failure.
        """
        async with r.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(name_key)
                if await pipe.exists(name_key):
                    raise DuplicateDomain(taken_message)
                pipe.multi()
                pipe.set(name_key, json.dumps(data))
                pipe.set(id_key, name)
                pipe.sadd(org_key, name)
                await pipe.execute()
            except WatchError as e:
                raise DuplicateDomain(taken_message) from e

    # ── Keys ─────────────────────────────────────────────────────────

    def _domain_key(self, domain: str) -> str:
        return f"{self.key_prefix}domain:{domain}"

    def _domain_id_key(self, domain_id: str) -> str:
        return f"{self.key_prefix}domain_id:{domain_id}"

    def _org_domains_key(self, organization_id: str) -> str:
        return f"{self.key_prefix}org_domains:{organization_id}"

    def _subdomain_key(self, label: str) -> str:
        return f"{self.key_prefix}subdomain:{label}"

    def _subdomain_id_key(self, subdomain_id: str) -> str:
        return f"{self.key_prefix}subdomain_id:{subdomain_id}"

    def _org_subdomains_key(self, organization_id: str) -> str:
        return f"{self.key_prefix}org_subdomains:{organization_id}"

    # ── Custom domains ───────────────────────────────────────────────

    async def add_domain(
        self, organization_id: str, domain_input: str
    ) -> CustomDomain:
        """
        Register a custom domain for an organization with status pending.

        Raises ValidationError for a malformed name and DuplicateDomain if
        any organization already owns it.
        """
        domain = self.validator.normalize_domain(domain_input)
        entry = CustomDomain(organization_id=organization_id, domain=domain)
        data = entry.to_dict()

        r = await self._get_redis()
        if r:
            async with self._store_errors("add_domain"):
                await self._claim(
                    r,
                    self._domain_key(domain),
                    data,
                    self._domain_id_key(entry.id),
                    self._org_domains_key(organization_id),
                    domain,
                    "This domain is already registered",
                )
        else:
            async with self._lock:
                if domain in self._domains:
                    raise DuplicateDomain("This domain is already registered")
                self._domains[domain] = data
                self._domain_ids[entry.id] = domain
                self._org_domains.setdefault(organization_id, set()).add(domain)

        logger.info(f"Registered domain: {domain} -> {organization_id}")
        return entry

    async def _load_domain_by_name(self, domain: str) -> Optional[CustomDomain]:
        r = await self._get_redis()
        if r:
            async with self._store_errors("get_domain"):
                data = await r.get(self._domain_key(domain))
            if not data:
                return None
            info = json.loads(data)
        else:
            info = self._domains.get(domain)
            if not info:
                return None
        return CustomDomain.from_dict(info)

    async def _domain_name_for_id(self, domain_id: str) -> Optional[str]:
        r = await self._get_redis()
        if r:
            async with self._store_errors("get_domain"):
                return await r.get(self._domain_id_key(domain_id))
        return self._domain_ids.get(domain_id)

    async def get_domain(self, domain_id: str) -> CustomDomain:
        """Get a custom domain by id; raises NotFound."""
        name = await self._domain_name_for_id(domain_id)
        entry = await self._load_domain_by_name(name) if name else None
        if entry is None or entry.id != domain_id:
            raise NotFound("Domain not found")
        return entry

    async def list_domains(self, organization_id: str) -> List[CustomDomain]:
        """List an organization's custom domains, newest first."""
        r = await self._get_redis()
        domains: List[CustomDomain] = []

        if r:
            async with self._store_errors("list_domains"):
                members = await r.smembers(self._org_domains_key(organization_id))
                if members:
                    keys = [self._domain_key(d) for d in sorted(members)]
                    for data in await r.mget(keys):
                        if data:
                            domains.append(CustomDomain.from_dict(json.loads(data)))
        else:
            for d in self._org_domains.get(organization_id, set()):
                info = self._domains.get(d)
                if info:
                    domains.append(CustomDomain.from_dict(info))

        domains.sort(key=lambda d: d.created_at, reverse=True)
        return domains

    async def set_domain_status(self, domain_id: str, status: str) -> CustomDomain:
        """Move a custom domain to a new status."""
        if status not in DOMAIN_STATUSES:
            raise ValueError(f"Unknown domain status: {status}")

        entry = await self.get_domain(domain_id)
        now = datetime.now(timezone.utc)
        entry.status = status
        entry.updated_at = now
        if status == VERIFIED:
            entry.verified_at = entry.verified_at or now
        else:
            entry.verified_at = None
        data = entry.to_dict()

        r = await self._get_redis()
        if r:
            async with self._store_errors("set_domain_status"):
                # xx: never resurrect a record removed concurrently
                updated = await r.set(
                    self._domain_key(entry.domain), json.dumps(data), xx=True
                )
            if not updated:
                raise NotFound("Domain not found")
        else:
            async with self._lock:
                if entry.domain not in self._domains:
                    raise NotFound("Domain not found")
                self._domains[entry.domain] = data

        logger.info(f"Domain {entry.domain} status -> {status}")
        return entry

    async def remove_domain(self, domain_id: str) -> CustomDomain:
        """
        Delete a custom domain record.

        Provider teardown is the caller's job and must already have succeeded.
        """
        entry = await self.get_domain(domain_id)

        r = await self._get_redis()
        if r:
            async with self._store_errors("remove_domain"):
                async with r.pipeline(transaction=True) as pipe:
                    pipe.delete(self._domain_key(entry.domain))
                    pipe.delete(self._domain_id_key(entry.id))
                    pipe.srem(
                        self._org_domains_key(entry.organization_id), entry.domain
                    )
                    await pipe.execute()
        else:
            async with self._lock:
                self._domains.pop(entry.domain, None)
                self._domain_ids.pop(entry.id, None)
                org_set = self._org_domains.get(entry.organization_id)
                if org_set:
                    org_set.discard(entry.domain)

        logger.info(f"Deleted domain: {entry.domain}")
        return entry

    async def find_verified_domain(self, host: str) -> Optional[CustomDomain]:
        """
        Hot-path lookup: returns the verified domain entry for host or None.

        One key read; pending, attached and failed domains never match.
        """
        entry = await self._load_domain_by_name(host)
        if entry and entry.status == VERIFIED:
            return entry
        return None

    # ── Platform subdomains ──────────────────────────────────────────

    async def add_subdomain(self, organization_id: str, label: str) -> Subdomain:
        """
        Allocate a platform subdomain; active immediately.

        Raises ValidationError for malformed or reserved labels and
        DuplicateDomain if the label is taken.
        """
        subdomain = self.validator.normalize_subdomain(label)
        entry = Subdomain(organization_id=organization_id, subdomain=subdomain)
        data = entry.to_dict()

        r = await self._get_redis()
        if r:
            async with self._store_errors("add_subdomain"):
                await self._claim(
                    r,
                    self._subdomain_key(subdomain),
                    data,
                    self._subdomain_id_key(entry.id),
                    self._org_subdomains_key(organization_id),
                    subdomain,
                    "This subdomain is already taken",
                )
        else:
            async with self._lock:
                if subdomain in self._subdomains:
                    raise DuplicateDomain("This subdomain is already taken")
                self._subdomains[subdomain] = data
                self._subdomain_ids[entry.id] = subdomain
                self._org_subdomains.setdefault(organization_id, set()).add(subdomain)

        logger.info(f"Registered subdomain: {subdomain} -> {organization_id}")
        return entry

    async def _load_subdomain_by_label(self, label: str) -> Optional[Subdomain]:
        r = await self._get_redis()
        if r:
            async with self._store_errors("get_subdomain"):
                data = await r.get(self._subdomain_key(label))
            if not data:
                return None
            info = json.loads(data)
        else:
            info = self._subdomains.get(label)
            if not info:
                return None
        return Subdomain.from_dict(info)

    async def get_subdomain(self, subdomain_id: str) -> Subdomain:
        """Get a subdomain by id; raises NotFound."""
        r = await self._get_redis()
        if r:
            async with self._store_errors("get_subdomain"):
                label = await r.get(self._subdomain_id_key(subdomain_id))
        else:
            label = self._subdomain_ids.get(subdomain_id)

        entry = await self._load_subdomain_by_label(label) if label else None
        if entry is None or entry.id != subdomain_id:
            raise NotFound("Subdomain not found")
        return entry

    async def list_subdomains(self, organization_id: str) -> List[Subdomain]:
        """List an organization's subdomains, newest first."""
        r = await self._get_redis()
        subdomains: List[Subdomain] = []

        if r:
            async with self._store_errors("list_subdomains"):
                members = await r.smembers(self._org_subdomains_key(organization_id))
                if members:
                    keys = [self._subdomain_key(s) for s in sorted(members)]
                    for data in await r.mget(keys):
                        if data:
                            subdomains.append(Subdomain.from_dict(json.loads(data)))
        else:
            for s in self._org_subdomains.get(organization_id, set()):
                info = self._subdomains.get(s)
                if info:
                    subdomains.append(Subdomain.from_dict(info))

        subdomains.sort(key=lambda s: s.created_at, reverse=True)
        return subdomains

    async def remove_subdomain(self, subdomain_id: str) -> Subdomain:
        """Delete a subdomain record."""
        entry = await self.get_subdomain(subdomain_id)

        r = await self._get_redis()
        if r:
            async with self._store_errors("remove_subdomain"):
                async with r.pipeline(transaction=True) as pipe:
                    pipe.delete(self._subdomain_key(entry.subdomain))
                    pipe.delete(self._subdomain_id_key(entry.id))
                    pipe.srem(
                        self._org_subdomains_key(entry.organization_id),
                        entry.subdomain,
                    )
                    await pipe.execute()
        else:
            async with self._lock:
                self._subdomains.pop(entry.subdomain, None)
                self._subdomain_ids.pop(entry.id, None)
                org_set = self._org_subdomains.get(entry.organization_id)
                if org_set:
                    org_set.discard(entry.subdomain)

        logger.info(f"Deleted subdomain: {entry.subdomain}")
        return entry

    async def find_active_subdomain(self, label: str) -> Optional[Subdomain]:
        """Hot-path lookup: returns the active subdomain for label or None."""
        entry = await self._load_subdomain_by_label(label)
        if entry and entry.status == ACTIVE:
            return entry
        return None

    # ── DNS instructions ─────────────────────────────────────────────

    def get_dns_instructions(self, domain: str, token: str) -> DnsInstructions:
        """Records an operator must publish; reads no stored state."""
        return get_dns_instructions(domain, token, self.routing_target)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Domain registry Redis connection closed")
