"""Unit tests for CLI argument parsing and the offline commands."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from flashswap.chains.evm import PoolSnapshot
from flashswap.cli import _run, build_parser

POOL_ADDRESS = "0x00000000000000000000000000000000000000b4"
BASE_ADDRESS = "0x00000000000000000000000000000000000000b1"
QUOTE_ADDRESS = "0x00000000000000000000000000000000000000b2"


def _args(*argv: str) -> argparse.Namespace:
    return build_parser().parse_args(list(argv))


class TestBuildParser:
    def test_quote_command(self) -> None:
        args = _args("quote", "50", "1000000", "10000")
        assert args.command == "quote"
        assert (args.base_reserve, args.quote_reserve, args.amount) == (50, 1_000_000, 10_000)

    def test_reserves_defaults(self) -> None:
        args = _args("reserves")
        assert args.command == "reserves"
        assert args.amount is None
        assert args.pair is None

    def test_reserves_with_amount_and_pair(self) -> None:
        args = _args("reserves", "500", "--pair", "main")
        assert args.amount == 500
        assert args.pair == "main"

    def test_simulate_command(self) -> None:
        assert _args("simulate").command == "simulate"

    def test_config_flag(self) -> None:
        args = _args("--config", "/tmp/c.yaml", "simulate")
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = _args("--log-level", "DEBUG", "simulate")
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        assert _args().command is None


class TestRun:
    def test_quote_prints_repayment(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = asyncio.run(_run(_args("quote", "50", "1000000", "500000")))
        assert code == 0
        assert capsys.readouterr().out.strip() == "51"

    def test_quote_degenerate_reserves(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = asyncio.run(_run(_args("quote", "50", "100", "100")))
        assert code == 1
        assert "Cannot quote" in capsys.readouterr().err

    def test_simulate_from_yaml(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Telegram is enabled in the sample; keep the run offline.
        monkeypatch.setattr("flashswap.notifications.telegram.TelegramNotifier._post", _fake_post)
        code = asyncio.run(_run(_args("--config", str(sample_yaml_path), "simulate")))
        assert code == 0
        out = capsys.readouterr().out
        assert "Repaid to pool: 51" in out
        assert "Profit: 10" in out


async def _fake_post(self, bot_token: str, text: str, silent: bool) -> bool:
    return True


class TestReservesCommand:
    def test_reads_configured_pool(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        snapshot = PoolSnapshot(
            address=POOL_ADDRESS,
            token0_address=BASE_ADDRESS,
            token1_address=QUOTE_ADDRESS,
            reserve0=50,
            reserve1=1_000_000,
            block_timestamp=1,
        )
        with patch("flashswap.cli.fetch_pool_snapshot", AsyncMock(return_value=snapshot)) as fetch:
            code = asyncio.run(_run(_args("--config", str(sample_yaml_path), "reserves", "500000")))

        assert code == 0
        assert fetch.call_args[0][1] == POOL_ADDRESS
        out = capsys.readouterr().out
        assert "base reserve:  50" in out
        assert "repayment for 500000: 51" in out

    def test_unknown_pair(self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("flashswap.cli.fetch_pool_snapshot", AsyncMock()) as fetch:
            code = asyncio.run(
                _run(_args("--config", str(sample_yaml_path), "reserves", "--pair", "nope"))
            )
        assert code == 1
        assert "Unknown pair 'nope'" in capsys.readouterr().err
        fetch.assert_not_called()

    def test_executor_without_chain(
        self, sample_yaml_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cfg_file = tmp_path / "no_chain.yaml"
        cfg_file.write_text(sample_yaml_path.read_text().replace("  chain: ethereum\n", ""))
        with patch("flashswap.cli.fetch_pool_snapshot", AsyncMock()) as fetch:
            code = asyncio.run(_run(_args("--config", str(cfg_file), "reserves")))
        assert code == 1
        assert "executor.chain" in capsys.readouterr().err
        fetch.assert_not_called()
