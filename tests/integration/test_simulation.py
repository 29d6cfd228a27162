"""Integration tests for the config-driven simulation service."""
from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from flashswap.config import AppConfig, load_config
from flashswap.errors import InsufficientProfit
from flashswap.services.simulation import Simulation


class TestSimulation:
    def test_run_settles(self, sample_app_config: AppConfig) -> None:
        simulation = Simulation(sample_app_config)
        result = simulation.run()

        assert result.repayment_owed == 51
        assert result.collateral_received == 61
        assert result.profit == 10
        assert simulation.base.balance_of(sample_app_config.simulation.initiator) == 10

    def test_logs_committed_settlement(
        self, sample_app_config: AppConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.INFO, logger="flashswap")
        Simulation(sample_app_config).run()

        records = [r for r in caplog.records if r.name == "flashswap.services.simulation"]
        assert any("profit 10" in r.getMessage() for r in records)

    def test_aborted_settlement_not_logged_as_liquidation(
        self, sample_app_config: AppConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        sim_cfg = replace(sample_app_config.simulation, min_profit=10)
        caplog.set_level(logging.INFO, logger="flashswap")
        with pytest.raises(InsufficientProfit):
            Simulation(replace(sample_app_config, simulation=sim_cfg)).run()
        assert not any("Liquidated" in r.getMessage() for r in caplog.records)

    def test_pool_tokens_sorted_by_address(self, sample_app_config: AppConfig) -> None:
        simulation = Simulation(sample_app_config)
        assert simulation.pool.token0() < simulation.pool.token1()

    def test_abort_propagates_and_rolls_back(self, sample_app_config: AppConfig) -> None:
        sim_cfg = replace(sample_app_config.simulation, min_profit=10)
        simulation = Simulation(replace(sample_app_config, simulation=sim_cfg))

        with pytest.raises(InsufficientProfit):
            simulation.run()
        assert simulation.results == []
        assert simulation.pool.get_reserves()[:2] == (50, 1_000_000)

    def test_requires_simulation_section(self, sample_app_config: AppConfig) -> None:
        with pytest.raises(ValueError, match="simulation"):
            Simulation(replace(sample_app_config, simulation=None))

    def test_project_config_is_profitable(self) -> None:
        result = Simulation(load_config()).run()
        assert result.profit > 1_000_000

    def test_run_requires_simulation_section(self, sample_app_config: AppConfig) -> None:
        simulation = Simulation(sample_app_config)
        simulation._config = replace(sample_app_config, simulation=None)
        with pytest.raises(ValueError, match="simulation"):
            simulation.run()
