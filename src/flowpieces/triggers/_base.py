"""Base class wiring a trigger's typed props into the polling dedup engine."""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from flowpieces.common.errors import ConfigError
from flowpieces.common.logging import get_logger
from flowpieces.common.settings import get_settings
from flowpieces.polling import (
    DedupStrategy,
    PendingPoll,
    PollingDedupEngine,
    PollingItem,
    RedisStateStore,
    StateStore,
)

log = get_logger(__name__)

PropsT = TypeVar("PropsT", bound=BaseModel)


class DropdownOption(BaseModel):
    label: str
    value: str | int


class DropdownState(BaseModel):
    """Options for a prop whose valid values are resolved live."""

    options: list[DropdownOption] = []
    placeholder: str = ""
    disabled: bool = False


def format_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as ``field.path: message; ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "props"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def digest_key(*parts: str) -> str:
    """Deterministic instance key from identifying parts."""
    return hashlib.sha256("|".join(parts).encode()).hexdigest()[:32]


class PollingTrigger(ABC, Generic[PropsT]):
    """A polling trigger: typed props, a fetch function and lifecycle hooks.

    Subclasses declare metadata and ``props_model`` and implement
    ``fetch_items`` and ``instance_key``. Raw props from the host are
    validated once at the boundary; a ``ConfigError`` is raised before any
    fetch is attempted.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    description: ClassVar[str]
    auth_description: ClassVar[str] = ""
    sample_data: ClassVar[dict[str, Any]] = {}
    props_model: ClassVar[type[BaseModel]]
    strategy: ClassVar[DedupStrategy] = DedupStrategy.LAST_ITEM

    def __init__(
        self,
        store: StateStore | None = None,
        *,
        persist_on_test: bool | None = None,
    ) -> None:
        settings = get_settings()
        if persist_on_test is None:
            persist_on_test = settings.persist_on_test
        self.engine: PollingDedupEngine[PropsT] = PollingDedupEngine(
            self.fetch_items,
            store if store is not None else RedisStateStore(),
            self.instance_key,
            strategy=self.strategy,
            seen_capacity=settings.seen_ids_capacity,
            persist_on_test=persist_on_test,
        )

    @abstractmethod
    async def fetch_items(self, props: PropsT) -> list[PollingItem]:
        """Return current items newest-first."""

    @abstractmethod
    def instance_key(self, props: PropsT) -> str:
        """Identity of one configured activation of this trigger."""

    def parse_props(self, raw: Mapping[str, Any] | BaseModel) -> PropsT:
        if isinstance(raw, self.props_model):
            return raw  # type: ignore[return-value]
        if isinstance(raw, BaseModel):
            raw = raw.model_dump()
        try:
            return self.props_model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError as exc:
            detail = format_validation_error(exc)
            log.warning("trigger_props_invalid", trigger=self.name, detail=detail)
            raise ConfigError(f"{self.name}: {detail}") from exc

    # -- Lifecycle -----------------------------------------------------------

    async def on_enable(self, raw_props: Mapping[str, Any] | BaseModel) -> None:
        await self.engine.on_enable(self.parse_props(raw_props))

    async def on_disable(self, raw_props: Mapping[str, Any] | BaseModel) -> None:
        await self.engine.on_disable(self.parse_props(raw_props))

    async def run(self, raw_props: Mapping[str, Any] | BaseModel) -> list[PollingItem]:
        return await self.engine.poll(self.parse_props(raw_props))

    async def test(self, raw_props: Mapping[str, Any] | BaseModel) -> list[PollingItem]:
        return await self.engine.test(self.parse_props(raw_props))

    async def collect(self, raw_props: Mapping[str, Any] | BaseModel) -> PendingPoll:
        """Like ``run`` but leaves the marker unsaved until ``commit()``."""
        return await self.engine.collect(self.parse_props(raw_props))
