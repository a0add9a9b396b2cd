"""
Unit tests for configuration table validation.
"""

from pathlib import Path

import pytest

from stackmonitor.config.validators import (
    validate_monitor_config,
    validate_profiler_config,
    validate_sampling_period,
    validate_storage_config,
)
from stackmonitor.models.config import DEFAULT_EXCLUDED_THREAD_PREFIXES
from stackmonitor.validation import ValidationError


@pytest.mark.unit
class TestProfilerConfigValidation:
    """Test cases for the [profiler] table."""

    def test_validate_profiler_config_success(self, sample_config_data):
        config = validate_profiler_config(sample_config_data["profiler"])

        assert config.sampling_period_ms == 20
        assert config.profiled_packages == ["app", "lib.*"]
        assert config.excluded_thread_prefixes == ["RMI ", "JMX ", "stackmonitor-"]

    def test_defaults(self):
        config = validate_profiler_config({})

        assert config.sampling_period_ms == 50
        assert config.profiled_packages == []
        assert config.excluded_thread_prefixes == DEFAULT_EXCLUDED_THREAD_PREFIXES

    def test_empty_packages_log_a_warning(self, caplog):
        with caplog.at_level("WARNING"):
            validate_profiler_config({"profiled_packages": []})
        assert "profiled_packages is empty" in caplog.text

    @pytest.mark.parametrize("period", [0, -5, 60_001, "fast", True])
    def test_invalid_sampling_period(self, period):
        with pytest.raises(ValidationError) as exc_info:
            validate_profiler_config({"sampling_period_ms": period})
        assert exc_info.value.field_name == "profiler.sampling_period_ms"

    def test_invalid_package_spec_names_the_entry(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_profiler_config({"profiled_packages": ["app", "bad spec"]})
        assert exc_info.value.field_name == "profiler.profiled_packages[1]"

    def test_packages_must_be_a_list(self):
        with pytest.raises(ValidationError):
            validate_profiler_config({"profiled_packages": "app"})

    def test_empty_thread_prefix_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_profiler_config({"excluded_thread_prefixes": ["RMI ", ""]})
        assert exc_info.value.field_name == "profiler.excluded_thread_prefixes[1]"

    def test_validate_sampling_period_bounds(self):
        assert validate_sampling_period(1) == 1
        assert validate_sampling_period(60_000) == 60_000
        assert validate_sampling_period("75") == 75


@pytest.mark.unit
class TestMonitorConfigValidation:
    """Test cases for the [monitor] table."""

    def test_validate_monitor_config_success(self, sample_config_data):
        config = validate_monitor_config(sample_config_data["monitor"])

        assert config.update_period_ms == 500
        assert config.log_root_dir == Path("logs")

    def test_defaults(self):
        config = validate_monitor_config({})
        assert config.update_period_ms == 1000

    @pytest.mark.parametrize("period", [99, 600_001])
    def test_update_period_out_of_range(self, period):
        with pytest.raises(ValidationError) as exc_info:
            validate_monitor_config({"update_period_ms": period})
        assert "monitor.update_period_ms" in str(exc_info.value)

    def test_blank_log_root_dir(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_monitor_config({"log_root_dir": "  "})
        assert exc_info.value.field_name == "monitor.log_root_dir"


@pytest.mark.unit
class TestStorageConfigValidation:
    """Test cases for the [storage] table."""

    def test_validate_storage_config_success(self):
        config = validate_storage_config({"format": "json", "compression": "zstd"})
        assert config.to_dict() == {"format": "json", "compression": "zstd"}

    def test_defaults(self):
        config = validate_storage_config({})
        assert (config.format, config.compression) == ("parquet", "snappy")

    def test_invalid_format(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_storage_config({"format": "csv"})
        assert exc_info.value.field_name == "storage.format"

    def test_invalid_compression(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_storage_config({"compression": "rar"})
        assert exc_info.value.field_name == "storage.compression"
