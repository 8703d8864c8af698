"""
Data models for ERC-20 Mint Watch
Uses Pydantic for validation and serialization
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List, Union
from datetime import datetime, timezone
from enum import Enum

from mint_watch.config.constants import NOT_AVAILABLE, UNKNOWN


class WatchMode(str, Enum):
    """Which on-chain event class the watcher reports"""
    MINT = "mint"
    DEPLOYMENT = "deployment"


class TokenMetadata(BaseModel):
    """Resolved token metadata, immutable once cached"""
    address: str
    name: str
    symbol: str
    decimals: Optional[int] = None
    total_supply: Optional[str] = None
    icon: str = NOT_AVAILABLE
    volume: Union[int, float, str] = NOT_AVAILABLE
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, address: str) -> "TokenMetadata":
        """Record returned when on-chain reads fail; never cached"""
        return cls(
            address=address,
            name=UNKNOWN,
            symbol=UNKNOWN,
            is_placeholder=True
        )

    class Config:
        frozen = True


class MintEvent(BaseModel):
    """ERC-20 Transfer from the zero address"""
    contract_address: str
    recipient_address: str
    amount: int = Field(ge=0)
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None


class DeploymentEvent(BaseModel):
    """Contract creation that passed the ERC-20 probe"""
    contract_address: str
    transaction_hash: str
    deployer_address: Optional[str] = None
    block_number: Optional[int] = None


class EmbedField(BaseModel):
    """One name/value display row of a notification"""
    name: str
    value: str
    inline: bool = True

    @validator('value')
    def value_not_empty(cls, v):
        # Discord rejects embeds with empty field values
        return v if v else NOT_AVAILABLE


class NotificationMessage(BaseModel):
    """Fixed-shape message handed to the webhook sink"""
    title: str
    color: int
    fields: List[EmbedField]
    thumbnail_url: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationRecord(BaseModel):
    """Outcome of a single delivery attempt"""
    title: str
    contract_address: str
    delivered: bool
    error: Optional[str] = None
    timestamp: datetime
