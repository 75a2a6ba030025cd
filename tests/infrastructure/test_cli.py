"""End-to-end tests for the click CLI against a temporary data directory."""

import pytest
from click.testing import CliRunner

from ims.infrastructure.cli.main import cli
from ims.infrastructure.config import get_settings


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("IMS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("IMS_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


def _invoke(runner, *args, **kwargs):
    return runner.invoke(cli, list(args), **kwargs)


def _stock_rice(runner):
    _invoke(runner, "product", "add", "--name", "Rice 1kg", "--sku", "RICE-1", "--price", "15")
    _invoke(runner, "inventory", "receive", "--product", "RICE-1", "--quantity", "5",
            "--cost", "10", "--received-at", "2024-03-01 09:00:00")
    _invoke(runner, "inventory", "receive", "--product", "RICE-1", "--quantity", "10",
            "--cost", "12", "--received-at", "2024-03-02 09:00:00")


class TestProductCommands:

    def test_add_and_list(self, runner):
        result = _invoke(runner, "product", "add", "--name", "Rice 1kg", "--sku", "RICE-1",
                         "--price", "1250")
        assert result.exit_code == 0
        assert "₱1,250.00" in result.output

        result = _invoke(runner, "product", "list")
        assert "Rice 1kg" in result.output

    def test_duplicate_sku_is_an_error(self, runner):
        _invoke(runner, "product", "add", "--name", "A", "--sku", "X", "--price", "1")
        result = _invoke(runner, "product", "add", "--name", "B", "--sku", "X", "--price", "1")
        assert result.exit_code != 0
        assert "already in use" in result.output

    def test_price_below_cost_asks_for_confirmation(self, runner):
        _stock_rice(runner)

        declined = _invoke(runner, "product", "update", "--product", "RICE-1", "--price", "11",
                           input="n\n")
        assert declined.exit_code != 0
        assert "would incur a loss" in declined.output

        accepted = _invoke(runner, "product", "update", "--product", "RICE-1", "--price", "11",
                           input="y\n")
        assert accepted.exit_code == 0
        assert "updated" in accepted.output

        history = _invoke(runner, "product", "history", "--product", "RICE-1")
        assert "₱15.00 -> ₱11.00" in history.output

    def test_archive_requires_zero_stock(self, runner):
        _stock_rice(runner)
        result = _invoke(runner, "product", "archive", "--product", "RICE-1")
        assert result.exit_code != 0
        assert "existing stock" in result.output


class TestSaleCommands:

    def test_record_show_and_cancel(self, runner):
        _stock_rice(runner)

        result = _invoke(runner, "sale", "record", "--items", "RICE-1:8")
        assert result.exit_code == 0, result.output
        assert "₱86.00" in result.output

        result = _invoke(runner, "inventory", "show")
        assert "In Stock" in result.output

        result = _invoke(runner, "sale", "cancel", "--id", "1")
        assert result.exit_code == 0
        assert "cancelled" in result.output

        result = _invoke(runner, "sale", "show", "--id", "1")
        assert "CANCELLED" in result.output

        result = _invoke(runner, "sale", "cancel", "--id", "1")
        assert result.exit_code != 0
        assert "already cancelled" in result.output

    def test_insufficient_stock_message(self, runner):
        _stock_rice(runner)
        result = _invoke(runner, "sale", "record", "--items", "RICE-1:20")
        assert result.exit_code != 0
        assert "Rice 1kg" in result.output
        assert "short by 5" in result.output

    def test_bad_item_format(self, runner):
        result = _invoke(runner, "sale", "record", "--items", "RICE-1")
        assert result.exit_code != 0
        assert "Invalid item format" in result.output


class TestReportCommands:

    def test_summary_and_fast_moving(self, runner):
        _stock_rice(runner)
        _invoke(runner, "sale", "record", "--items", "RICE-1:3")

        summary = _invoke(runner, "report", "summary")
        assert summary.exit_code == 0
        assert "₱45.00" in summary.output

        fast = _invoke(runner, "report", "fast-moving")
        assert "Rice 1kg" in fast.output

    def test_daily_empty(self, runner):
        result = _invoke(runner, "report", "daily")
        assert "No sales" in result.output

    def test_day_detail_shows_stock_in(self, runner):
        _stock_rice(runner)
        result = _invoke(runner, "report", "day", "--date", "2024-03-01")
        assert result.exit_code == 0, result.output
        assert "Details for 2024-03-01" in result.output
        assert "₱50.00" in result.output
        assert "No sales recorded for this day." in result.output

    def test_metrics_groups(self, runner):
        _stock_rice(runner)
        _invoke(runner, "sale", "record", "--items", "RICE-1:3")

        result = _invoke(runner, "report", "metrics")

        assert result.exit_code == 0
        assert "Golden Products:" in result.output
        assert "  - Rice 1kg" in result.output


class TestSaleItemsCommand:

    def test_lists_and_filters_lines(self, runner):
        _stock_rice(runner)
        _invoke(runner, "sale", "record", "--items", "RICE-1:2")

        result = _invoke(runner, "sale", "items", "--product", "rice")
        assert result.exit_code == 0, result.output
        assert "Rice 1kg" in result.output
        assert "₱30.00" in result.output

        result = _invoke(runner, "sale", "items", "--product", "tuna")
        assert "No sale items found." in result.output

        result = _invoke(runner, "sale", "items", "--end", "2000-01-01")
        assert "No sale items found." in result.output
