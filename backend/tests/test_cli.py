# Overview: Pytest coverage for the Flask CLI command groups.

from boutique.models import BusinessSettings, Shop


class TestSystemCommands:
    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init", "--shop", "Riverside"])
        assert first.exit_code == 0, first.output
        assert "Created default shop: Riverside" in first.output

        second = runner.invoke(args=["system", "init", "--shop", "Riverside"])
        assert "Using existing shop: Riverside" in second.output

        assert db_session.query(Shop).count() == 1
        assert db_session.query(BusinessSettings).one().current_branch == "Riverside"


class TestStockCommands:
    def test_list_and_low(self, app, stock_group):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["stocks", "list"])
        assert "Linen Shirt" in result.output

        result = runner.invoke(args=["stocks", "low", "--threshold", "2"])
        assert "WARN Linen Shirt Blue/M: 2" in result.output


class TestReportCommands:
    def test_summary(self, app, settings):
        result = app.test_cli_runner().invoke(args=["reports", "summary", "--range", "7d"])
        assert result.exit_code == 0, result.output
        assert "THB: revenue=0.00" in result.output

    def test_export_writes_file(self, app, settings, stock_group, tmp_path):
        output = tmp_path / "inventory.csv"
        result = app.test_cli_runner().invoke(args=["reports", "export", "inventory", "--output", str(output)])

        assert result.exit_code == 0, result.output
        content = output.read_text(encoding="utf-8")
        assert content.startswith("\ufeff")
        assert "Linen Shirt" in content

    def test_custom_range_requires_dates(self, app, settings):
        result = app.test_cli_runner().invoke(args=["reports", "summary", "--range", "custom"])
        assert result.exit_code != 0
        assert "requires start and end" in result.output
