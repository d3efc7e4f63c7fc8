import json

from pathlib import Path
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class ChainConfig(BaseModel):
    """Static bridge deployment for one chain."""

    chain_id: int = Field(..., description="EVM chain ID")
    name: str = Field(default="", description="Human readable chain name")
    rpc_url: str = Field(..., description="JSON-RPC endpoint")
    bridge_address: str = Field(..., description="Bridge contract address")
    vault_address: str = Field(..., description="Token vault contract address")


def _default_bridge_chains() -> List[ChainConfig]:
    return [
        ChainConfig(
            chain_id=1,
            name="Ethereum",
            rpc_url="http://127.0.0.1:8545",
            bridge_address="0x0237443359aB0b11EcDC41A7aF1C90226a88c70f",
            vault_address="0xD0dfd5baCf160B97C8eE3ecb463F18c08673160c",
        ),
        ChainConfig(
            chain_id=10,
            name="Optimism",
            rpc_url="http://127.0.0.1:9545",
            bridge_address="0x0000777700000000000000000000000000000004",
            vault_address="0x0000777700000000000000000000000000000002",
        ),
    ]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Confirmation watching
    required_confirmations: int = Field(
        default=1,
        ge=1,
        description="Blocks that must be mined on top of a transfer before it is final",
    )
    confirmation_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between receipt polls while watching a transaction",
    )
    confirmation_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Give up watching after this many seconds (unset waits forever)",
    )
    rpc_timeout_seconds: float = Field(default=30.0, description="JSON-RPC request timeout")

    # Bridge deployments
    bridge_chains: Annotated[List[ChainConfig], NoDecode] = Field(
        default_factory=_default_bridge_chains,
        description="Bridge deployments keyed by chain; JSON list in BRIDGE_CHAINS",
    )

    @field_validator("bridge_chains", mode="before")
    @classmethod
    def _parse_bridge_chains(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                return []
            return json.loads(value)
        return value

    @property
    def chain_ids(self) -> List[int]:
        return [chain.chain_id for chain in self.bridge_chains]

    def chain_config(self, chain_id: int) -> Optional[ChainConfig]:
        for chain in self.bridge_chains:
            if chain.chain_id == chain_id:
                return chain
        return None


# Global settings instance
settings = Settings()
