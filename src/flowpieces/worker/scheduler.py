"""Fixed-cadence scheduler for polling trigger instances.

Each tick polls every active instance once, under a per-instance Redis lock,
and publishes the new items. Instances whose state is missing are enabled
(baseline only) instead of polled. A failed instance is retried on the next
tick unless its credentials or props were rejected, in which case it is
suspended until the worker restarts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from redis.exceptions import RedisError

from flowpieces.common.errors import AuthError, ConfigError, FetchError, IntegrationError
from flowpieces.common.logging import get_logger
from flowpieces.common.models import TriggerEvent
from flowpieces.common.settings import get_settings
from flowpieces.polling import StateStore
from flowpieces.queue.publisher import publish_trigger_event
from flowpieces.triggers import NewTicketInViewTrigger, PollingTrigger
from flowpieces.worker.lock import acquire_trigger_lock, release_trigger_lock

log = get_logger(__name__)


@dataclass
class TriggerInstance:
    """One configured activation: a trigger plus its raw props."""

    trigger: PollingTrigger
    props: dict[str, Any]
    label: str = ""


def instances_from_settings(store: StateStore | None = None) -> list[TriggerInstance]:
    """Build New-ticket-in-view instances for every configured Zendesk view."""
    settings = get_settings()
    if not (settings.zendesk_subdomain and settings.zendesk_email and settings.zendesk_api_token):
        log.debug("zendesk_instances_skipped", reason="credentials_not_configured")
        return []

    trigger = NewTicketInViewTrigger(store)
    auth = {
        "email": settings.zendesk_email,
        "token": settings.zendesk_api_token,
        "subdomain": settings.zendesk_subdomain,
    }
    return [
        TriggerInstance(
            trigger=trigger,
            props={"authentication": auth, "view_id": view_id},
            label=f"zendesk:{settings.zendesk_subdomain}:view:{view_id}",
        )
        for view_id in settings.zendesk_view_ids
    ]


@dataclass
class PollingScheduler:
    instances: list[TriggerInstance]
    suspended: set[str] = field(default_factory=set)

    async def run_instance(self, instance: TriggerInstance) -> int:
        """Run one cycle for *instance*. Returns the number of events published."""
        trigger = instance.trigger
        props = trigger.parse_props(instance.props)
        key = trigger.instance_key(props)

        token = await acquire_trigger_lock(key)
        if token is None:
            return 0

        try:
            if not await trigger.engine.is_enabled(props):
                await trigger.on_enable(props)
                return 0

            # Marker is saved only after every new item is published; a failed
            # publish leaves it in place and the items are offered again
            pending = await trigger.collect(props)
            published = 0
            # Oldest first so consumers see creation order
            for item in reversed(pending.items):
                event = TriggerEvent(
                    trigger=trigger.name,
                    instance_key=key,
                    item_id=str(item.id),
                    payload=item.data,
                )
                if await publish_trigger_event(event):
                    published += 1
            await pending.commit()
            return published
        finally:
            await release_trigger_lock(key, token)

    async def _guarded(self, instance: TriggerInstance) -> int:
        try:
            return await self.run_instance(instance)
        except (AuthError, ConfigError) as exc:
            self.suspended.add(instance.label)
            log.error("trigger_instance_suspended", instance=instance.label, error=str(exc))
        except FetchError as exc:
            log.warning("trigger_instance_fetch_failed", instance=instance.label, error=str(exc))
        except IntegrationError as exc:
            log.warning("trigger_instance_failed", instance=instance.label, error=str(exc))
        except RedisError as exc:
            log.warning("trigger_instance_redis_failed", instance=instance.label, error=str(exc))
        except Exception:
            log.exception("trigger_instance_error", instance=instance.label)
        return 0

    async def tick(self) -> int:
        """Poll every active instance concurrently. Returns events published."""
        active = [i for i in self.instances if i.label not in self.suspended]
        results = await asyncio.gather(*(self._guarded(i) for i in active))
        return sum(results)

    async def run(self, shutdown: asyncio.Event, interval: float | None = None) -> None:
        if interval is None:
            interval = get_settings().poll_interval_seconds

        log.info("scheduler_started", interval=interval, instances=len(self.instances))
        tick_count = 0
        while not shutdown.is_set():
            tick_count += 1
            published = await self.tick()
            log.info(
                "scheduler_tick",
                tick=tick_count,
                published=published,
                suspended=len(self.suspended),
            )
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=interval)
            except TimeoutError:
                pass
        log.info("scheduler_stopped", ticks=tick_count)


async def run_scheduler(shutdown: asyncio.Event, store: StateStore | None = None) -> None:
    """Main scheduler loop for the instances configured in settings."""
    scheduler = PollingScheduler(instances_from_settings(store))
    await scheduler.run(shutdown)
