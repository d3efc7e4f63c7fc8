"""Static bridge registry: chain deployments and per-asset release handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ...config import ChainConfig, Settings
from ..chain.client import JsonRpcChainClient
from ..chain_types import ChainId
from .errors import UnknownAssetError, UnknownChainError
from .handlers import ReleaseHandler, default_handlers
from .models import AssetType

ClientFactory = Callable[[ChainConfig], Any]


@dataclass(frozen=True)
class ChainMetadata:
    """Bridge deployment on one chain."""

    chain_id: ChainId
    bridge_address: str
    vault_address: str
    client: Any
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or f"Chain {self.chain_id}"


class BridgeRegistry:
    """Read-only directory of chain deployments and release handlers.

    Built once at startup and shared by the dispatcher and the tracker.
    Nothing mutates it afterwards, so lookups need no locking.

    Usage:
        registry = BridgeRegistry.from_settings(settings)
        meta = registry.chain_metadata(10)
        handler = registry.handler_for(AssetType.NATIVE)
    """

    def __init__(
        self,
        chains: Iterable[ChainMetadata],
        handlers: Mapping[AssetType, ReleaseHandler],
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)

        by_id: Dict[ChainId, ChainMetadata] = {}
        for meta in chains:
            if meta.chain_id in by_id:
                raise ValueError(f"Chain {meta.chain_id} registered twice")
            by_id[meta.chain_id] = meta

        self._chains: Mapping[ChainId, ChainMetadata] = MappingProxyType(by_id)
        self._handlers: Mapping[AssetType, ReleaseHandler] = MappingProxyType(dict(handlers))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client_factory: Optional[ClientFactory] = None,
        handlers: Optional[Mapping[AssetType, ReleaseHandler]] = None,
    ) -> "BridgeRegistry":
        """Build the registry from configured deployments, one client per chain."""
        factory = client_factory or _default_client_factory
        chains = [
            ChainMetadata(
                chain_id=chain.chain_id,
                name=chain.name,
                bridge_address=chain.bridge_address,
                vault_address=chain.vault_address,
                client=factory(chain),
            )
            for chain in settings.bridge_chains
        ]
        registry = cls(chains, handlers if handlers is not None else default_handlers())
        registry._logger.info(
            "Bridge registry loaded: %d chains, %d handlers",
            len(registry._chains),
            len(registry._handlers),
        )
        return registry

    # ─────────────────────────────────────────────────────────────────────────
    # Public lookup methods
    # ─────────────────────────────────────────────────────────────────────────

    def chain_metadata(self, chain_id: ChainId) -> ChainMetadata:
        """Get deployment metadata; raises UnknownChainError if absent."""
        meta = self._chains.get(chain_id)
        if meta is None:
            raise UnknownChainError(chain_id)
        return meta

    def handler_for(self, asset_type: AssetType) -> ReleaseHandler:
        handler = self._handlers.get(asset_type)
        if handler is None:
            raise UnknownAssetError(asset_type)
        return handler

    def has_chain(self, chain_id: ChainId) -> bool:
        return chain_id in self._chains

    @property
    def chain_ids(self) -> List[ChainId]:
        return list(self._chains)

    def clients(self) -> List[Any]:
        return [meta.client for meta in self._chains.values()]

    async def aclose(self) -> None:
        """Close every chain client that owns a connection."""
        for client in self.clients():
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()


def _default_client_factory(chain: ChainConfig) -> JsonRpcChainClient:
    return JsonRpcChainClient(chain.chain_id, chain.rpc_url)
