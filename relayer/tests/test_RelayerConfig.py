"""Unit tests for RelayerConfig."""

import pytest

from relayer.src.errors import ConfigurationError
from relayer.src.networks import NETWORK_PRESETS, get_available_networks, get_preset
from relayer.src.RelayerConfig import (
    GasDefaults,
    NetworkConfig,
    PairConfig,
    RelayerConfig,
    RetryPolicy,
    SubmissionMode,
    SubmitterStrategy,
)

NETWORK = NetworkConfig(
    name="Test Network",
    rpc_urls=("https://rpc.example",),
    contract_address="0x9e78A0059B86432384275486D011FdC64a33Cd2f",
    gas=GasDefaults(gas_limit=500_000, max_fee_per_gas=10, max_priority_fee_per_gas=1),
)


def make_config(**overrides) -> RelayerConfig:
    values = dict(
        network=NETWORK,
        pairs=(PairConfig("BTC", "USDT", 8),),
        private_key="0x" + "11" * 32,
        aggregator_url="https://agg.example",
    )
    values.update(overrides)
    return RelayerConfig(**values)


class TestPairConfig:
    """Test pair parsing."""

    def test_from_string_with_decimals(self) -> None:
        pair = PairConfig.from_string("stxtz/xtz:6")
        assert pair.base == "STXTZ"
        assert pair.quote == "XTZ"
        assert pair.decimals == 6
        assert str(pair) == "STXTZ/XTZ"

    def test_from_string_default_decimals(self) -> None:
        assert PairConfig.from_string(" btc/usdt ").decimals == 8
        assert PairConfig.from_string("btc/usdt", default_decimals=18).decimals == 18

    @pytest.mark.parametrize("bad", ["btcusdt", "btc/", "/usdt", "a/b/c", "btc/usdt:x"])
    def test_from_string_invalid(self, bad: str) -> None:
        with pytest.raises(ValueError):
            PairConfig.from_string(bad)

    def test_explicit_name_kept(self) -> None:
        assert PairConfig("stxtz", "xtz", 6, name="stXTZ/XTZ").name == "stXTZ/XTZ"


class TestValidate:
    """Test startup validation."""

    def test_valid_config(self) -> None:
        config = make_config()
        assert config.validate() is config

    def test_no_pairs(self) -> None:
        with pytest.raises(ConfigurationError, match="trading pair"):
            make_config(pairs=()).validate()

    def test_no_rpc_urls(self) -> None:
        network = NetworkConfig("Empty", (), NETWORK.contract_address, NETWORK.gas)
        with pytest.raises(ConfigurationError, match="No RPC URLs"):
            make_config(network=network).validate()

    def test_no_contract(self) -> None:
        network = NetworkConfig("Empty", NETWORK.rpc_urls, "", NETWORK.gas)
        with pytest.raises(ConfigurationError, match="contract"):
            make_config(network=network).validate()

    def test_no_aggregator(self) -> None:
        with pytest.raises(ConfigurationError, match="Aggregation service"):
            make_config(aggregator_url=None).validate()

    def test_non_positive_window(self) -> None:
        with pytest.raises(ConfigurationError, match="Window length"):
            make_config(window_length=0).validate()

    def test_negative_retry(self) -> None:
        with pytest.raises(ConfigurationError, match="Retry"):
            make_config(retry=RetryPolicy(max_retries=-1)).validate()

    def test_direct_requires_key(self) -> None:
        with pytest.raises(ConfigurationError, match="Private key"):
            make_config(private_key=None).validate()

    def test_host_url_optional(self) -> None:
        """Without a host URL the default daemon socket is used."""
        config = make_config(
            submitter_strategy=SubmitterStrategy.HOST,
            submission_mode=SubmissionMode.BATCHED,
            private_key=None,
        )
        assert config.validate() is config
        assert config.host_url is None

    def test_host_individual_requires_sender(self) -> None:
        """Per-pair nonces cannot be assigned without the host's address."""
        config = make_config(
            submitter_strategy=SubmitterStrategy.HOST,
            submission_mode=SubmissionMode.INDIVIDUAL,
            host_url="/run/host-executor.sock",
            private_key=None,
        )
        with pytest.raises(ConfigurationError, match="sender address"):
            config.validate()

    def test_host_batched_without_sender(self) -> None:
        config = make_config(
            submitter_strategy=SubmitterStrategy.HOST,
            host_url="/run/host-executor.sock",
            private_key=None,
        )
        assert config.validate() is config


class TestNetworkPresets:
    """Test the built-in deployments."""

    def test_available_networks(self) -> None:
        assert get_available_networks() == [
            "etherlink-mainnet",
            "etherlink-testnet",
            "peaq-mainnet",
            "peaq-testnet",
        ]

    def test_unknown_network(self) -> None:
        with pytest.raises(ValueError, match="Unknown network"):
            get_preset("solana-mainnet")

    @pytest.mark.parametrize("name", sorted(NETWORK_PRESETS))
    def test_presets_validate(self, name: str) -> None:
        preset = get_preset(name)
        config = make_config(
            network=preset.network,
            pairs=preset.pairs,
            window_length=preset.window_length,
        )
        assert config.validate() is config

    def test_only_mainnets_are_production(self) -> None:
        production = {n for n, p in NETWORK_PRESETS.items() if p.network.production}
        assert production == {"etherlink-mainnet", "peaq-mainnet"}

    def test_priority_fee_within_max_fee(self) -> None:
        for preset in NETWORK_PRESETS.values():
            gas = preset.network.gas
            assert gas.max_priority_fee_per_gas <= gas.max_fee_per_gas
