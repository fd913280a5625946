"""Configuration constants for omnichain-deployments library."""

# Deterministic deployment proxy (CREATE2 factory with a bare fallback function).
# Pre-deployed at the same address on every EVM network that supports it.
CREATE2_PROXY_ADDRESS = "0x4e59b44847b379578588920cA78FbF26c0B4956C"

# 31 zero bytes followed by 0x01
DEFAULT_CREATE2_SALT = "0x" + "00" * 31 + "01"

GWEI = 10**9

# Fee estimation policy
GAS_LIMIT_MULTIPLIER_NUMERATOR = 120
GAS_LIMIT_MULTIPLIER_DENOMINATOR = 100
GAS_LIMIT_BUFFER = 100_000
FALLBACK_GAS_LIMIT = 3_000_000
FALLBACK_GAS_PRICE = GWEI // 10  # 0.1 gwei
MIN_GAS_PRICE = GWEI // 100  # 0.01 gwei
DEFAULT_PRIORITY_FEE = GWEI  # used when eth_maxPriorityFeePerGas is unsupported

# Receipt waiting
RECEIPT_TIMEOUT_SECONDS = 120
RECEIPT_POLL_INTERVAL_SECONDS = 1.0

# JSON-RPC timeout for registry connection checks
RPC_TIMEOUT_SECONDS = 30

# Placeholder values carried by failed per-target results
FAILED_ADDRESS = "0x0"
UNKNOWN_TARGET = "Unknown"

PRIVATE_KEY_ENV = "PRIVATE_KEY"
HOME_ENV = "OMNICHAIN_DEPLOYMENTS_HOME"

# Chain groups by network id
TESTNET_CHAIN_IDS = frozenset(
    {
        11155111,  # Ethereum Sepolia
        11155420,  # Optimism Sepolia
        84532,  # Base Sepolia
        421614,  # Arbitrum Sepolia
        59141,  # Linea Sepolia
        534351,  # Scroll Sepolia
        80001,  # Polygon Mumbai
        97,  # BSC Testnet
        43113,  # Avalanche Fuji
        420,  # Optimism Goerli
    }
)

MAINNET_CHAIN_IDS = frozenset(
    {
        1,  # Ethereum
        10,  # Optimism
        8453,  # Base
        42161,  # Arbitrum One
        59144,  # Linea
        534352,  # Scroll
        137,  # Polygon
        56,  # BSC
        43114,  # Avalanche
    }
)

L2_CHAIN_IDS = frozenset(
    {
        10,
        8453,
        42161,
        59144,
        534352,
        11155420,
        84532,
        421614,
        59141,
        534351,
    }
)

# Written to chains.yaml the first time the registry is opened
DEFAULT_TARGETS = [
    {
        "name": "Ethereum Sepolia",
        "rpc": "https://rpc.sepolia.org",
        "chainId": 11155111,
        "explorer": "https://sepolia.etherscan.io",
    },
    {
        "name": "Scroll Sepolia",
        "rpc": "https://sepolia-rpc.scroll.io",
        "chainId": 534351,
        "explorer": "https://sepolia.scrollscan.com",
    },
]

# Written to profiles.yaml the first time the profile store is opened.
# Timeouts are in milliseconds on disk.
DEFAULT_PROFILES = [
    {
        "name": "dev",
        "gasMultiplier": 1.2,
        "gasPriceMultiplier": 1.0,
        "confirmations": 1,
        "timeout": 60000,
        "useCreate2": False,
    },
    {
        "name": "staging",
        "gasMultiplier": 1.3,
        "gasPriceMultiplier": 1.1,
        "confirmations": 2,
        "timeout": 90000,
        "useCreate2": True,
        "salt": "0x" + "00" * 31 + "02",
    },
    {
        "name": "prod",
        "gasMultiplier": 1.5,
        "gasPriceMultiplier": 1.2,
        "confirmations": 3,
        "timeout": 120000,
        "useCreate2": True,
        "salt": "0x" + "00" * 31 + "03",
    },
]
