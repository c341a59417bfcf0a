"""Unit tests for the command line configuration."""

import pytest

from relayer.main import build_config, build_parser, parse_bool, parse_list, parse_pairs
from relayer.src.errors import ConfigurationError
from relayer.src.RelayerConfig import ProbeKind, SubmissionMode, SubmitterStrategy

ENV_VARS = (
    "NETWORK", "RPC_URLS", "PRICE_FEED_ADDRESS", "PAIRS", "WINDOW_SECONDS",
    "SUBMISSION_MODE", "SUBMITTER", "PRIVATE_KEY", "HOST_URL", "HOST_SENDER_ADDRESS",
    "AGGREGATOR_URL", "ORACLES", "MIN_SIGNATURES", "RETRY_ENABLED", "MAX_RETRIES",
    "RETRY_DELAY", "SUBMIT_TIMEOUT", "PROBE_KIND", "PROBE_TIMEOUT", "FETCH_TIMEOUT",
    "ESTIMATE_GAS", "HEARTBEAT_URL", "UPTIME_KUMA_KEY",
)


@pytest.fixture
def env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PRIVATE_KEY", "0x" + "11" * 32)
    monkeypatch.setenv("AGGREGATOR_URL", "https://agg.example")
    return monkeypatch


def parse(argv):
    parser = build_parser()
    return build_config(parser.parse_args(argv), parser)


class TestParsers:
    """Test the small value parsers."""

    def test_parse_list(self) -> None:
        assert parse_list(" a, b ,,c ") == ["a", "b", "c"]
        assert parse_list(None) == []

    def test_parse_bool(self) -> None:
        assert parse_bool("TRUE", False) is True
        assert parse_bool("0", True) is False
        assert parse_bool(None, True) is True
        assert parse_bool("", False) is False

    def test_parse_pairs(self) -> None:
        pairs = parse_pairs("btc/usdt:8,stxtz/xtz:6")
        assert [(p.name, p.decimals) for p in pairs] == [("BTC/USDT", 8), ("STXTZ/XTZ", 6)]


class TestBuildConfig:
    """Test merging presets with overrides."""

    def test_preset_defaults(self, env) -> None:
        config = parse(["--network", "peaq-mainnet"])

        assert config.network.name == "PEAQ Mainnet"
        assert config.window_length == 30
        assert [p.name for p in config.pairs] == [
            "BTC/USDT", "ETH/USDT", "USDT/USD", "PEAQ/USDT",
        ]
        assert config.submission_mode == SubmissionMode.BATCHED
        assert config.submitter_strategy == SubmitterStrategy.DIRECT
        assert len(config.oracles) == 20
        assert config.heartbeat_key is None

    def test_overrides(self, env) -> None:
        env.setenv("UPTIME_KUMA_KEY", "push-key")
        config = parse([
            "--network", "etherlink-testnet",
            "--rpc-urls", "https://x.example,https://y.example",
            "--price-feed-address", "0x0000000000000000000000000000000000000001",
            "--pairs", "stxtz/xtz:6",
            "--window", "120",
            "--mode", "individual",
            "--probe", "tezos",
            "--no-retry",
        ])

        assert config.network.rpc_urls == ("https://x.example", "https://y.example")
        assert config.network.contract_address == "0x0000000000000000000000000000000000000001"
        assert config.network.probe_kind == ProbeKind.TEZOS_HEAD
        assert config.window_length == 120
        assert config.submission_mode == SubmissionMode.INDIVIDUAL
        assert config.retry.enabled is False
        assert config.heartbeat_key == "push-key"

    def test_environment_defaults(self, env) -> None:
        env.setenv("NETWORK", "etherlink-mainnet")
        env.setenv("MAX_RETRIES", "4")
        env.setenv("ESTIMATE_GAS", "true")
        config = parse([])

        assert config.network.name == "Etherlink Mainnet"
        assert config.retry.max_retries == 4
        assert config.estimate_gas is True

    def test_unknown_network_exits(self, env) -> None:
        with pytest.raises(SystemExit):
            parse(["--network", "nope"])

    def test_invalid_pair_exits(self, env) -> None:
        with pytest.raises(SystemExit):
            parse(["--pairs", "btcusdt"])

    def test_missing_aggregator(self, env) -> None:
        env.delenv("AGGREGATOR_URL")
        with pytest.raises(ConfigurationError, match="Aggregation service"):
            parse([])

    def test_host_submitter_without_key(self, env) -> None:
        env.delenv("PRIVATE_KEY")
        config = parse(["--submitter", "host", "--host-url", "/run/host-executor.sock"])
        assert config.submitter_strategy == SubmitterStrategy.HOST
        assert config.private_key is None
