"""
Configuration Tests.

============================================================
PURPOSE
============================================================
Environment loading and pre-flight validation.

============================================================
"""

import dataclasses

import pytest

from treasury_snapshot.config import (
    DEFAULT_TREASURY_ADDRESS,
    EQTY_BASE,
    USDT_ETHEREUM,
    ChainContext,
    SnapshotConfig,
    TokenSpec,
    default_chains,
)
from treasury_snapshot.exceptions import ConfigError


@pytest.fixture
def env():
    return {
        "ETH_RPC_URL": "https://eth.example",
        "BASE_RPC_URL": "https://base.example",
        "ETHERSCAN_API_KEY": "key",
    }


# ============================================================
# CHAINS
# ============================================================

class TestDefaultChains:
    """Tests for the built-in network table."""

    def test_ethereum(self):
        ethereum, _ = default_chains("https://eth.example", "https://base.example")

        assert ethereum.name == "ethereum"
        assert ethereum.chain_id == 1
        assert ethereum.artifact_dir == "eth"
        assert ethereum.rpc_env_var == "ETH_RPC_URL"
        assert ethereum.tokens == (TokenSpec(symbol="USDT", contract=USDT_ETHEREUM),)

    def test_base(self):
        _, base = default_chains("https://eth.example", "https://base.example")

        assert base.name == "base"
        assert base.chain_id == 8453
        assert base.artifact_dir == "base"
        assert base.native_symbol == "ETH"
        assert base.tokens == (TokenSpec(symbol="EQTY", contract=EQTY_BASE),)

    def test_explorer_links(self):
        _, base = default_chains("", "")

        assert base.address_url("0xabc") == "https://basescan.org/address/0xabc"
        assert base.token_url("0xdef") == "https://basescan.org/token/0xdef"
        assert base.tx_url("0x123") == "https://basescan.org/tx/0x123"

    def test_immutable(self):
        ethereum, _ = default_chains("", "")

        with pytest.raises(dataclasses.FrozenInstanceError):
            ethereum.chain_id = 5


# ============================================================
# ENVIRONMENT
# ============================================================

class TestFromEnv:
    """Tests for SnapshotConfig.from_env."""

    def test_defaults(self, env):
        config = SnapshotConfig.from_env(env)

        assert config.tracked_address == DEFAULT_TREASURY_ADDRESS
        assert config.explorer_api_key == "key"
        assert config.transfer_page_size == 25
        assert config.request_timeout == 30.0
        assert config.output_dir == "data"
        assert [c.name for c in config.chains] == ["ethereum", "base"]
        assert config.chains[0].rpc_url == "https://eth.example"

    def test_overrides(self, env):
        env.update({
            "TREASURY_ADDRESS": "0x" + "ab" * 20,
            "SNAPSHOT_PAGE_SIZE": "10",
            "SNAPSHOT_REQUEST_TIMEOUT": "5.5",
            "SNAPSHOT_OUTPUT_DIR": "public/data",
        })

        config = SnapshotConfig.from_env(env)

        assert config.tracked_address == "0x" + "ab" * 20
        assert config.transfer_page_size == 10
        assert config.request_timeout == 5.5
        assert config.output_dir == "public/data"

    def test_missing_eth_rpc(self, env):
        del env["ETH_RPC_URL"]

        with pytest.raises(ConfigError) as exc_info:
            SnapshotConfig.from_env(env)

        assert exc_info.value.missing_keys == ["ETH_RPC_URL"]

    def test_all_missing_reported_together(self):
        with pytest.raises(ConfigError) as exc_info:
            SnapshotConfig.from_env({})

        assert exc_info.value.missing_keys == ["ETH_RPC_URL", "BASE_RPC_URL", "ETHERSCAN_API_KEY"]

    def test_blank_counts_as_missing(self, env):
        env["ETHERSCAN_API_KEY"] = "   "

        with pytest.raises(ConfigError) as exc_info:
            SnapshotConfig.from_env(env)

        assert exc_info.value.missing_keys == ["ETHERSCAN_API_KEY"]

    def test_bad_number(self, env):
        env["SNAPSHOT_PAGE_SIZE"] = "lots"

        with pytest.raises(ConfigError, match="Invalid numeric setting"):
            SnapshotConfig.from_env(env)


# ============================================================
# VALIDATION
# ============================================================

class TestValidate:
    """Tests for SnapshotConfig.validate."""

    @pytest.fixture
    def config(self, env):
        return SnapshotConfig.from_env(env)

    def test_valid(self, config):
        config.validate()

    def test_page_size(self, config):
        with pytest.raises(ConfigError, match="transfer_page_size"):
            dataclasses.replace(config, transfer_page_size=0).validate()

    def test_timeout(self, config):
        with pytest.raises(ConfigError, match="request_timeout"):
            dataclasses.replace(config, request_timeout=0).validate()

    def test_no_chains(self, config):
        with pytest.raises(ConfigError, match="No chains"):
            dataclasses.replace(config, chains=()).validate()

    def test_duplicate_chain_names(self, config):
        with pytest.raises(ConfigError, match="Duplicate"):
            dataclasses.replace(config, chains=(config.chains[0], config.chains[0])).validate()

    def test_invalid_tracked_address(self, config):
        with pytest.raises(ConfigError, match="Invalid addresses"):
            dataclasses.replace(config, tracked_address="0x1234").validate()

    def test_invalid_token_contract(self, config):
        broken = ChainContext(
            name="testnet",
            chain_id=11155111,
            rpc_url="https://sepolia.example",
            rpc_env_var="SEPOLIA_RPC_URL",
            explorer_url="https://sepolia.etherscan.io",
            artifact_dir="sepolia",
            tokens=(TokenSpec(symbol="BAD", contract="not-an-address"),),
        )

        with pytest.raises(ConfigError, match="not-an-address"):
            dataclasses.replace(config, chains=(broken,)).validate()

    def test_alternate_chain_missing_rpc(self, config):
        """Test that missing keys use the chain's own env var name."""
        chain = dataclasses.replace(config.chains[1], rpc_url="")

        with pytest.raises(ConfigError) as exc_info:
            dataclasses.replace(config, chains=(config.chains[0], chain)).validate()

        assert exc_info.value.missing_keys == ["BASE_RPC_URL"]
