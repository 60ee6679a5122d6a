"""
Tests for application wiring, logging setup and the command line.
"""

import datetime
import json
import logging

import pytest

import workschedule.main as main_module
from workschedule.core.backup import backup_filename
from workschedule.core.logging_config import ColoredFormatter, JSONFormatter, LogContext, setup_logging
from workschedule.core.sentry_config import init_sentry
from workschedule.main import create_services, main


@pytest.fixture
def no_logging_setup(monkeypatch):
    """Keep the test run's logging handlers in place."""
    monkeypatch.setattr(main_module, "setup_logging", lambda: None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCreateServices:
    """Store selection and wiring."""

    def test_file_store_in_data_dir(self, tmp_path):
        services = create_services(tmp_path / "data")

        services.schedule.replace_schedule({"2024-05-20": ["day"]})
        services.close()

        assert services.persistent
        assert (tmp_path / "data" / "workschedule.db").exists()
        reopened = create_services(tmp_path / "data")
        assert reopened.schedule.read_schedule() == {"2024-05-20": ["day"]}
        reopened.close()

    def test_unavailable_store_falls_back_to_memory(self, tmp_path, caplog):
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("x", encoding="utf-8")

        with caplog.at_level(logging.ERROR):
            services = create_services(blocker)

        assert not services.persistent
        assert "in-memory" in caplog.text
        services.metadata.write_schedule_title("Session only")
        assert services.metadata.read_schedule_title() == "Session only"
        services.close()

    def test_backups_live_under_data_dir(self, tmp_path):
        services = create_services(tmp_path)
        assert services.backups.backup_dir == tmp_path / "backups"
        services.close()


class TestCommandLine:
    """main() subcommands."""

    def test_export_then_import(self, tmp_path, capsys, no_logging_setup):
        data_dir = tmp_path / "data"
        services = create_services(data_dir)
        services.schedule.replace_schedule({"2024-05-20": ["day"]})
        services.close()

        export_path = tmp_path / "export.json"
        assert main(["--data-dir", str(data_dir), "export", str(export_path)]) == 0
        assert json.loads(export_path.read_text(encoding="utf-8"))["schedule"] == {"2024-05-20": ["day"]}

        other_dir = tmp_path / "other"
        assert main(["--data-dir", str(other_dir), "import", str(export_path)]) == 0
        assert "schedule" in capsys.readouterr().out

        services = create_services(other_dir)
        assert services.schedule.read_schedule() == {"2024-05-20": ["day"]}
        services.close()

    def test_failed_import_returns_error_code(self, tmp_path, capsys, no_logging_setup):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"schedule": {"2024-05-20": "day"}}), encoding="utf-8")

        assert main(["--data-dir", str(tmp_path), "import", str(path)]) == 1
        assert "schedule" in capsys.readouterr().err

    def test_missing_import_file(self, tmp_path, capsys, no_logging_setup):
        assert main(["--data-dir", str(tmp_path), "import", str(tmp_path / "missing.json")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_backup_and_restore(self, tmp_path, capsys, no_logging_setup):
        assert main(["--data-dir", str(tmp_path), "backup", "--year", "2024", "--month", "3"]) == 0
        assert (tmp_path / "backups" / "work-schedule-March-2024.json").exists()

        assert main(["--data-dir", str(tmp_path), "restore", "2024", "3"]) == 0
        assert main(["--data-dir", str(tmp_path), "restore", "2020", "1"]) == 1

    def test_backup_defaults_to_current_month(self, tmp_path, capsys, no_logging_setup):
        today = datetime.date.today()

        assert main(["--data-dir", str(tmp_path), "backup"]) == 0

        assert (tmp_path / "backups" / backup_filename(today.year, today.month)).exists()
        assert "Backup written" in capsys.readouterr().out

    def test_summary(self, tmp_path, capsys, no_logging_setup, sample_settings):
        services = create_services(tmp_path)
        services.settings.write_settings(sample_settings)
        services.schedule.replace_schedule({"2024-05-20": ["day"], "2024-05-18": ["12-10"]})
        services.close()

        assert main(["--data-dir", str(tmp_path), "summary", "2024", "5"]) == 0

        summary = json.loads(capsys.readouterr().out)
        assert summary["monthly_total"] == pytest.approx(800 + 1025)
        assert summary["shift_counts"] == {"12-10": 1, "day": 1}

    def test_available(self, tmp_path, capsys, no_logging_setup, sample_settings):
        services = create_services(tmp_path)
        services.settings.write_settings(sample_settings)
        services.close()

        assert main(["--data-dir", str(tmp_path), "available", "2024-05-18"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert [line.split("\t")[0] for line in lines] == ["12-10", "night"]

        assert main(["--data-dir", str(tmp_path), "available", "18/05/2024"]) == 2


class TestLogging:
    """setup_logging, formatters and LogContext."""

    def test_development_setup_writes_app_log(self, tmp_path, restore_root_logger):
        setup_logging(log_dir=tmp_path / "logs", production=False)
        logging.getLogger("workschedule.test").info("hello from test")

        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello from test" in (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")

    def test_production_setup_writes_json(self, tmp_path, restore_root_logger):
        setup_logging(log_dir=tmp_path, production=True)
        logging.getLogger("workschedule.test").error("store broke")

        for handler in logging.getLogger().handlers:
            handler.flush()
        lines = (tmp_path / "error.log").read_text(encoding="utf-8").splitlines()
        entry = json.loads(lines[-1])
        assert entry["message"] == "store broke"
        assert entry["level"] == "ERROR"

    def test_json_formatter_includes_context(self):
        with LogContext(collection="schedule", extra_fields={"operation": "import"}):
            record = logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", None, None)

        data = json.loads(JSONFormatter().format(record))
        assert data["collection"] == "schedule"
        assert data["operation"] == "import"

    def test_log_context_is_removed_on_exit(self):
        with LogContext(backup_file="work-schedule-May-2024.json"):
            pass
        record = logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", None, None)
        assert not hasattr(record, "backup_file")

    def test_colored_formatter_leaves_record_untouched(self):
        record = logging.makeLogRecord({"levelname": "ERROR", "levelno": logging.ERROR, "msg": "boom"})
        output = ColoredFormatter("%(levelname)s %(message)s").format(record)

        assert "\033[31m" in output
        assert record.levelname == "ERROR"

    def test_sentry_disabled_outside_production(self, monkeypatch):
        monkeypatch.delenv("PRODUCTION", raising=False)
        assert init_sentry() is False

    def test_sentry_needs_dsn(self, monkeypatch):
        monkeypatch.setenv("PRODUCTION", "true")
        monkeypatch.delenv("SENTRY_DSN", raising=False)
        assert init_sentry() is False
