##########################################################################################
#
# Script name: artifacts.py
#
# Description: Durable cache of generated articles keyed by a versioned item identity.
#
##########################################################################################

import base64
import logging

from .config import POST_KEY_VERSION, POST_TTL_SECONDS
from .errors import StoreFailure
from .models import Artifact, Item
from .store import KeyValueStore


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def post_key(item: Item, version: str = POST_KEY_VERSION) -> str:
    base = f'{item.url or ""}|{item.id or ""}|{item.title or ""}'
    encoded = base64.b64encode(base.encode('utf-8')).decode('ascii')
    return f'post:{version}:{encoded}'


# ****************************************************************************************
# Classes
# ****************************************************************************************


class ArtifactCache:
    def __init__(
        self,
        store: KeyValueStore,
        ttl: int = POST_TTL_SECONDS,
        version: str = POST_KEY_VERSION,
    ) -> None:
        self.store = store
        self.ttl = ttl
        self.version = version

    def key(self, item: Item) -> str:
        return post_key(item, version=self.version)

    async def get(self, key: str) -> Artifact | None:
        try:
            payload = await self.store.get_json(key)
        except StoreFailure as exc:
            log.error('Artifact read failed for %s: %s', key, exc)
            return None
        if not isinstance(payload, dict):
            return None
        try:
            return Artifact.from_dict(payload)
        except (KeyError, TypeError) as exc:
            log.warning('Discarding malformed artifact at %s: %s', key, exc)
            return None

    async def put(self, key: str, artifact: Artifact) -> bool:
        try:
            await self.store.put_json(key, artifact.to_dict(), ttl=self.ttl)
        except StoreFailure as exc:
            log.error('Artifact write failed for %s: %s', key, exc)
            return False
        return True
