"""Tests for the config section models."""

import pytest
from pydantic import ValidationError

from refsweep.config.models import BatchConfig, QueueConfig, RefsweepConfig


class TestModels:
    def test_round_trip(self) -> None:
        config = RefsweepConfig()
        assert RefsweepConfig.model_validate(config.model_dump()) == config

    @pytest.mark.parametrize("field", ["lease_minutes", "max_lease_count", "bad_item_lease_hours"])
    def test_queue_bounds(self, field: str) -> None:
        with pytest.raises(ValidationError):
            QueueConfig(**{field: 0})

    def test_batch_needs_a_worker(self) -> None:
        with pytest.raises(ValidationError):
            BatchConfig(max_workers=0)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            QueueConfig().lease_minutes = 5  # type: ignore[misc]
