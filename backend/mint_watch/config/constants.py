"""
Constants and static configuration for ERC-20 Mint Watch
"""

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ZERO_TOPIC = "0x" + "00" * 32

# Sentinel for values that could not be determined
NOT_AVAILABLE = "N/A"
UNKNOWN = "Unknown"

# Amounts are rendered with 18 decimals when the token's own value is unknown
DEFAULT_TOKEN_DECIMALS = 18

# Minimal ERC-20 ABI for the read-only calls we issue
ERC20_ABI = [
    {
        "inputs": [],
        "name": "name",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]

# Calls that must all succeed for a contract to count as ERC-20
ERC20_PROBE_FUNCTIONS = ("name", "symbol", "decimals", "totalSupply")

# On-chain fields read by the metadata resolver, per watch mode
MINT_METADATA_FIELDS = ("name", "symbol")
DEPLOYMENT_METADATA_FIELDS = ("name", "symbol", "decimals", "totalSupply")

# Notification presentation
MINT_TITLE = "New ERC-20 Mint Detected"
MINT_COLOR = 0x00FF00
DEPLOYMENT_TITLE = "New ERC-20 Token Deployed"
DEPLOYMENT_COLOR = 0x3498DB

ANONYMITY_CONTRACT = "Contract (Potentially Anonymous)"
ANONYMITY_WALLET = "Wallet (Likely Non-Anonymous)"

# eth_subscribe subscription types
NEW_HEADS_SUBSCRIPTION = "newHeads"
PENDING_TRANSACTIONS_SUBSCRIPTION = "newPendingTransactions"
