import pytest
from datetime import datetime, timezone

from core.pipeline import PipelineOrchestrator
from utils.sample_data import generate_sample_csv


# Close to the dates in the built-in sample export
NOW = datetime(2023, 10, 30, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def pipeline():
    return PipelineOrchestrator()


@pytest.fixture
def sample_users(pipeline, now):
    return pipeline.run(generate_sample_csv(), now=now)


@pytest.fixture
def users_by_sam(sample_users):
    return {user.user.sam_account_name: user for user in sample_users}
