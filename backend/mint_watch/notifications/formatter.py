"""
Notification formatting
Builds fixed-shape embed messages from detected events and metadata
"""
from datetime import datetime
from typing import List, Optional

from mint_watch.config.constants import (
    DEFAULT_TOKEN_DECIMALS,
    DEPLOYMENT_COLOR,
    DEPLOYMENT_TITLE,
    MINT_COLOR,
    MINT_TITLE,
    NOT_AVAILABLE,
)
from mint_watch.core.data_models import (
    DeploymentEvent,
    EmbedField,
    MintEvent,
    NotificationMessage,
    TokenMetadata,
)
from mint_watch.utils.helpers import format_token_amount, format_usd, get_utc_now


def _thumbnail(metadata: TokenMetadata) -> Optional[str]:
    if metadata.icon.startswith(("http://", "https://")):
        return metadata.icon
    return None


def _decimals(metadata: TokenMetadata) -> int:
    return metadata.decimals if metadata.decimals is not None else DEFAULT_TOKEN_DECIMALS


def build_mint_message(
    event: MintEvent,
    metadata: TokenMetadata,
    anonymity: str,
    now: Optional[datetime] = None
) -> NotificationMessage:
    """Message for a Transfer from the zero address"""
    now = now or get_utc_now()
    fields: List[EmbedField] = [
        EmbedField(name="Contract Address", value=event.contract_address),
        EmbedField(name="Token Name", value=metadata.name),
        EmbedField(name="Symbol", value=metadata.symbol),
        EmbedField(name="Icon", value=metadata.icon),
        EmbedField(name="Volume (USD)", value=format_usd(metadata.volume)),
        EmbedField(name="Minter", value=event.recipient_address),
        EmbedField(name="Minter Anonymity", value=anonymity),
        EmbedField(
            name="Amount Minted",
            value=format_token_amount(event.amount, _decimals(metadata))
        ),
        EmbedField(name="Timestamp", value=now.isoformat()),
    ]
    return NotificationMessage(
        title=MINT_TITLE,
        color=MINT_COLOR,
        fields=fields,
        thumbnail_url=_thumbnail(metadata),
        timestamp=now
    )


def build_deployment_message(
    event: DeploymentEvent,
    metadata: TokenMetadata,
    now: Optional[datetime] = None
) -> NotificationMessage:
    """Message for a newly deployed ERC-20 contract"""
    now = now or get_utc_now()

    total_supply = NOT_AVAILABLE
    if metadata.total_supply is not None:
        total_supply = format_token_amount(int(metadata.total_supply), _decimals(metadata))

    fields: List[EmbedField] = [
        EmbedField(name="Contract Address", value=event.contract_address),
        EmbedField(name="Token Name", value=metadata.name),
        EmbedField(name="Symbol", value=metadata.symbol),
        EmbedField(
            name="Decimals",
            value=str(metadata.decimals) if metadata.decimals is not None else NOT_AVAILABLE
        ),
        EmbedField(name="Total Supply", value=total_supply),
        EmbedField(name="Icon", value=metadata.icon),
        EmbedField(name="Volume (USD)", value=format_usd(metadata.volume)),
        EmbedField(name="Deployer", value=event.deployer_address or NOT_AVAILABLE),
        EmbedField(name="Transaction Hash", value=event.transaction_hash, inline=False),
        EmbedField(name="Timestamp", value=now.isoformat()),
    ]
    return NotificationMessage(
        title=DEPLOYMENT_TITLE,
        color=DEPLOYMENT_COLOR,
        fields=fields,
        thumbnail_url=_thumbnail(metadata),
        timestamp=now
    )
