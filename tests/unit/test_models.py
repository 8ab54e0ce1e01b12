"""
Unit tests for model validation, settings and logging setup.
"""

from datetime import datetime, timedelta, timezone

import pytest
import structlog
from pydantic import ValidationError

from apisignals import __version__
from apisignals.config import Settings
from apisignals.models.enums import EvaluationPeriod, RootCause
from apisignals.models.incidents import DowntimeIncident
from apisignals.models.metrics import MetricWindow, WindowRequest
from apisignals.models.timestamps import to_naive_utc, utc_now
from apisignals.utils.logging import (
    add_engine_version,
    add_severity,
    build_processors,
    configure_logging,
    get_logger,
)
from tests.conftest import (
    BASE_TIME,
    HOUR,
    make_alert,
    make_history_event,
    make_interval,
    make_sla,
)


class TestTimestamps:
    def test_aware_value_converted_to_naive_utc(self):
        value = datetime(2026, 10, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

        assert to_naive_utc(value) == BASE_TIME

    def test_naive_value_and_none_pass_through(self):
        assert to_naive_utc(BASE_TIME) is BASE_TIME
        assert to_naive_utc(None) is None

    def test_utc_now_is_naive(self):
        assert utc_now().tzinfo is None


class TestMetricInterval:
    def test_error_rate(self):
        assert make_interval(request_count=200, error_count=5).error_rate == pytest.approx(2.5)

    def test_error_rate_without_traffic(self):
        assert make_interval(request_count=0).error_rate == 0.0

    def test_errors_cannot_exceed_requests(self):
        with pytest.raises(ValidationError):
            make_interval(request_count=10, error_count=11)

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            make_interval(request_count=-1)

    def test_negative_error_code_count_rejected(self):
        with pytest.raises(ValidationError):
            make_interval(error_count=1, error_codes={"500": -1})

    def test_utc_string_timestamp_normalized(self):
        interval = make_interval(timestamp="2026-10-01T00:00:00Z")

        assert interval.timestamp == BASE_TIME
        assert interval.timestamp.tzinfo is None


class TestWindowRequest:
    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            WindowRequest(
                project_id="proj", start=BASE_TIME, end=BASE_TIME - HOUR, granularity="hour"
            )

    def test_mixed_aware_and_naive_bounds(self):
        request = WindowRequest(
            project_id="proj", start="2026-10-01T00:00:00Z", end=BASE_TIME + HOUR, granularity="hour"
        )

        assert request.start == BASE_TIME
        assert request.end - request.start == HOUR

    def test_inverted_aware_range_rejected(self):
        with pytest.raises(ValidationError):
            WindowRequest(
                project_id="proj", start=BASE_TIME, end="2026-09-30T23:00:00Z", granularity="hour"
            )


class TestMetricWindow:
    def test_utc_string_bounds_normalized(self):
        window = MetricWindow(
            project_id="proj",
            start="2026-10-01T00:00:00Z",
            end="2026-10-01T01:00:00+00:00",
            granularity="hour",
            intervals=[make_interval(timestamp="2026-10-01T00:00:00Z")],
        )

        assert window.start == BASE_TIME
        assert window.end == BASE_TIME + HOUR
        assert window.intervals[0].timestamp == window.start


class TestSLADefinition:
    def test_uptime_target_bounds(self):
        with pytest.raises(ValidationError):
            make_sla(uptime_target_percent=100.5)

    def test_sla_is_frozen(self):
        sla = make_sla()

        with pytest.raises(ValidationError):
            sla.uptime_target_percent = 50.0

    @pytest.mark.parametrize(
        "target, expected",
        [(None, False), (0, False), (-5, False), (300, True)],
    )
    def test_has_response_time_target(self, target, expected):
        assert make_sla(response_time_target_ms=target).has_response_time_target is expected

    def test_has_error_rate_target(self):
        assert make_sla().has_error_rate_target is False
        assert make_sla(error_rate_target_percent=1.0).has_error_rate_target is True

    @pytest.mark.parametrize(
        "period, days",
        [(EvaluationPeriod.WEEKLY, 7), (EvaluationPeriod.MONTHLY, 30), (EvaluationPeriod.QUARTERLY, 90)],
    )
    def test_evaluation_period_days(self, period, days):
        assert period.days == days


class TestAlertDefinition:
    def test_trigger_before_creation_rejected(self):
        with pytest.raises(ValidationError):
            make_alert(last_triggered_at=BASE_TIME - timedelta(days=90))

    def test_negative_cooldown_rejected(self):
        with pytest.raises(ValidationError):
            make_alert(cooldown_minutes=-1)

    def test_utc_strings_normalized(self):
        alert = make_alert(
            created_at="2026-09-01T00:00:00Z", last_triggered_at="2026-10-01T00:00:00Z"
        )

        assert alert.created_at == datetime(2026, 9, 1)
        assert alert.last_triggered_at == BASE_TIME
        assert alert.last_triggered_at.tzinfo is None

    def test_mixed_offsets_compared_in_utc(self):
        with pytest.raises(ValidationError):
            make_alert(
                created_at="2026-10-01T00:00:00Z",
                last_triggered_at="2026-10-01T01:00:00+02:00",
            )


class TestAlertHistoryEvent:
    def test_utc_string_normalized(self):
        event = make_history_event("triggered", "2026-10-01T00:00:00Z")

        assert event.created_at == BASE_TIME


class TestDowntimeIncident:
    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            DowntimeIncident(
                id="inc",
                sla_id="sla",
                started_at=BASE_TIME,
                ended_at=BASE_TIME,
                duration_seconds=0,
                root_cause=RootCause.UNKNOWN,
                is_resolved=True,
                interval_count=1,
            )

    def test_root_cause_display(self):
        incident = DowntimeIncident(
            id="inc",
            sla_id="sla",
            started_at=BASE_TIME,
            ended_at=BASE_TIME + HOUR,
            duration_seconds=3600,
            root_cause=RootCause.NO_TRAFFIC,
            is_resolved=True,
            interval_count=1,
        )

        assert incident.root_cause_display == "No Traffic"
        assert incident.model_dump(mode="json")["root_cause"] == "no_traffic"


class TestSettings:
    def test_defaults(self, settings):
        assert settings.at_risk_margin_percent == 0.1
        assert settings.burn_acceleration_factor == 1.2
        assert settings.comparison_percent_cap == 999
        assert settings.alert_history_lookback_days == 30

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("APISIGNALS_AT_RISK_MARGIN_PERCENT", "0.5")

        assert Settings(_env_file=None).at_risk_margin_percent == 0.5

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_budget_tiers_must_be_ordered(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, budget_warning_percent=70, budget_critical_percent=60)


class TestLogging:
    def test_add_severity(self):
        assert add_severity(None, "warning", {})["severity"] == "WARNING"

    def test_add_engine_version(self):
        assert add_engine_version(None, "info", {})["engine_version"] == __version__

    def test_json_renderer_in_production(self):
        processors = build_processors(Settings(_env_file=None, log_format="json"))

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_in_dev_mode(self):
        processors = build_processors(Settings(_env_file=None, log_format="json", dev_mode=True))

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_configure_logging(self):
        configure_logging(Settings(_env_file=None, log_format="console"))

        assert get_logger("apisignals.test") is not None
        structlog.reset_defaults()
