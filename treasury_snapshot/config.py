"""
Treasury Snapshot - Configuration.

============================================================
PURPOSE
============================================================
Fixed, immutable configuration for a snapshot run: the tracked
address, the supported chains and the token tracked on each.

The configuration object is passed explicitly into the Orchestrator;
nothing here is read from module-level mutable state, so tests can
substitute alternate chains, tokens or addresses.

============================================================
ENVIRONMENT
============================================================
ETH_RPC_URL                 (required) Ethereum JSON-RPC endpoint
BASE_RPC_URL                (required) Base JSON-RPC endpoint
ETHERSCAN_API_KEY           (required) Etherscan V2 API key
TREASURY_ADDRESS            (optional) tracked address override
SNAPSHOT_OUTPUT_DIR         (optional) artifact root, default "data"
SNAPSHOT_PAGE_SIZE          (optional) transfers per token, default 25
SNAPSHOT_REQUEST_TIMEOUT    (optional) seconds per network call, default 30

============================================================
"""

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from treasury_snapshot.exceptions import ConfigError


_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")

DEFAULT_TREASURY_ADDRESS = "0x2Bc456799F3Cf071B10CE7216269471e0A40381a"

USDT_ETHEREUM = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
EQTY_BASE = "0xc71f37d9bf4c5d1e7fe4bccb97e6f30b11b37d29"

ETHERSCAN_V2_API_URL = "https://api.etherscan.io/v2/api"

ETH_RPC_ENV = "ETH_RPC_URL"
BASE_RPC_ENV = "BASE_RPC_URL"
EXPLORER_KEY_ENV = "ETHERSCAN_API_KEY"

REQUIRED_ENV_VARS = (ETH_RPC_ENV, BASE_RPC_ENV, EXPLORER_KEY_ENV)


# ============================================================
# CHAIN CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class TokenSpec:
    """A token tracked on one chain."""

    symbol: str
    """Label used as the snapshot key (e.g. "USDT")."""

    contract: str
    """ERC-20 contract address."""


@dataclass(frozen=True)
class ChainContext:
    """
    One supported network.

    Created from static configuration and never mutated.
    """

    name: str
    """Chain name used in artifacts (e.g. "ethereum")."""

    chain_id: int
    """EIP-155 chain id, also the explorer's chainid parameter."""

    rpc_url: str
    """JSON-RPC endpoint."""

    rpc_env_var: str
    """Environment variable the endpoint came from (artifact provenance)."""

    explorer_url: str
    """Human-facing explorer base URL used for deep links."""

    artifact_dir: str
    """Sub-directory of the output root holding this chain's document."""

    native_symbol: str = "ETH"
    """Symbol of the chain's base currency."""

    native_decimals: int = 18
    """Decimal precision of the chain's base currency."""

    tokens: tuple[TokenSpec, ...] = ()
    """Tokens tracked on this chain."""

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url}/address/{address}"

    def token_url(self, contract: str) -> str:
        return f"{self.explorer_url}/token/{contract}"

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"


def default_chains(eth_rpc_url: str, base_rpc_url: str) -> tuple[ChainContext, ...]:
    """Build the two supported networks with their tracked tokens."""
    return (
        ChainContext(
            name="ethereum",
            chain_id=1,
            rpc_url=eth_rpc_url,
            rpc_env_var=ETH_RPC_ENV,
            explorer_url="https://etherscan.io",
            artifact_dir="eth",
            tokens=(TokenSpec(symbol="USDT", contract=USDT_ETHEREUM),),
        ),
        ChainContext(
            name="base",
            chain_id=8453,
            rpc_url=base_rpc_url,
            rpc_env_var=BASE_RPC_ENV,
            explorer_url="https://basescan.org",
            artifact_dir="base",
            tokens=(TokenSpec(symbol="EQTY", contract=EQTY_BASE),),
        ),
    )


# ============================================================
# SNAPSHOT CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class SnapshotConfig:
    """Complete configuration for one snapshot run."""

    chains: tuple[ChainContext, ...]
    """Networks to snapshot, in artifact order."""

    explorer_api_key: str
    """Credential for the explorer API."""

    tracked_address: str = DEFAULT_TREASURY_ADDRESS
    """The single address monitored on every chain."""

    explorer_api_url: str = ETHERSCAN_V2_API_URL
    """Explorer API endpoint."""

    transfer_page_size: int = 25
    """Number of most recent transfers kept per token."""

    request_timeout: float = 30.0
    """Upper bound in seconds for any single network call."""

    output_dir: str = "data"
    """Root directory for emitted artifacts."""

    def validate(self) -> None:
        """
        Check the configuration before any network call.

        Raises:
            ConfigError: listing every missing or invalid value at once
        """
        missing = []
        for chain in self.chains:
            if not chain.rpc_url:
                missing.append(chain.rpc_env_var)
        if not self.explorer_api_key:
            missing.append(EXPLORER_KEY_ENV)
        if not self.tracked_address:
            missing.append("TREASURY_ADDRESS")

        if missing:
            raise ConfigError(
                message=f"Missing required configuration: {', '.join(missing)}",
                missing_keys=missing,
            )

        if not self.chains:
            raise ConfigError(message="No chains configured")
        if self.transfer_page_size < 1:
            raise ConfigError(message="transfer_page_size must be at least 1")
        if self.request_timeout <= 0:
            raise ConfigError(message="request_timeout must be positive")

        names = [chain.name for chain in self.chains]
        if len(set(names)) != len(names):
            raise ConfigError(message=f"Duplicate chain names: {names}")

        addresses = [self.tracked_address]
        addresses.extend(token.contract for chain in self.chains for token in chain.tokens)
        invalid = [a for a in addresses if not _ADDRESS.match(a)]
        if invalid:
            raise ConfigError(message=f"Invalid addresses: {', '.join(invalid)}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SnapshotConfig":
        """
        Build and validate configuration from environment variables.

        Args:
            env: Mapping to read from (default: os.environ)

        Raises:
            ConfigError: if any required variable is absent or a number
                cannot be parsed
        """
        env = os.environ if env is None else env

        def read(name: str, default: str = "") -> str:
            return (env.get(name) or default).strip()

        try:
            page_size = int(read("SNAPSHOT_PAGE_SIZE", "25"))
            timeout = float(read("SNAPSHOT_REQUEST_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigError(
                message=f"Invalid numeric setting: {e}",
                original_error=e,
            )

        config = cls(
            chains=default_chains(read(ETH_RPC_ENV), read(BASE_RPC_ENV)),
            explorer_api_key=read(EXPLORER_KEY_ENV),
            tracked_address=read("TREASURY_ADDRESS", DEFAULT_TREASURY_ADDRESS),
            transfer_page_size=page_size,
            request_timeout=timeout,
            output_dir=read("SNAPSHOT_OUTPUT_DIR", "data"),
        )
        config.validate()
        return config
