##########################################################################################
#
# Script name: orchestrator.py
#
# Description: Read-through article cache with a per-invocation creation quota.
#
##########################################################################################

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from .artifacts import ArtifactCache
from .errors import GenerationFailure
from .models import Artifact, Item


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


class Generator(Protocol):
    async def generate(self, item: Item) -> Artifact:
        ...


@dataclass
class GenerationReport:
    artifacts: list[Artifact] = field(default_factory=list)
    hits: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0


# ****************************************************************************************
# Classes
# ****************************************************************************************


class Orchestrator:
    def __init__(self, cache: ArtifactCache, generator: Generator) -> None:
        self.cache = cache
        self.generator = generator

    async def run_batch(self, items: Iterable[Item], quota: int) -> GenerationReport:
        report = GenerationReport()
        # Sequential on purpose: the created counter is the quota guard.
        for item in items:
            key = self.cache.key(item)
            cached = await self.cache.get(key)
            if cached is not None:
                report.artifacts.append(cached)
                report.hits += 1
                continue

            if report.created >= quota:
                report.skipped += 1
                continue

            try:
                artifact = await self.generator.generate(item)
            except GenerationFailure as exc:
                log.error('Article generation failed for %s: %s', item.title, exc)
                report.failed += 1
                continue

            await self.cache.put(key, artifact)
            report.artifacts.append(artifact)
            report.created += 1

        log.info(
            'Artifacts: %d hit(s), %d created, %d skipped over quota %d, %d failed.',
            report.hits,
            report.created,
            report.skipped,
            quota,
            report.failed,
        )
        return report

    async def ensure_artifacts(self, items: Iterable[Item], quota: int) -> list[Artifact]:
        report = await self.run_batch(items, quota)
        return report.artifacts

    async def ensure_artifact(self, item: Item) -> Artifact:
        key = self.cache.key(item)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached
        artifact = await self.generator.generate(item)
        await self.cache.put(key, artifact)
        return artifact
