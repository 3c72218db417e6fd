import pytest

from bulktagger.core.job_context import (
    decode_job_context,
    encode_job_context,
    running_summary,
)
from bulktagger.core.models import BulkOperationStatus, JobContext, TagAction


def _params(**overrides):
    params = {
        "checkStatus": "true",
        "bulkOperationId": "gid://shopify/BulkOperation/7",
        "totalFiltered": "10",
        "totalProcessed": "7",
        "appliedTag": "sale",
    }
    params.update(overrides)
    return {k: v for k, v in params.items() if v is not None}


def test_encode_then_decode_restores_context():
    context = JobContext(total_filtered=10, total_processed=7, tag="Sale", action=TagAction.REMOVE, job_id="op-1")

    params = encode_job_context(context)

    assert params["checkStatus"] == "true"
    assert params["appliedAction"] == "remove"
    assert all(isinstance(v, str) for v in params.values())
    assert decode_job_context(params) == context


def test_missing_action_defaults_to_apply():
    context = decode_job_context(_params())
    assert context.action is TagAction.APPLY
    assert context.job_id == "gid://shopify/BulkOperation/7"


@pytest.mark.parametrize(
    "overrides",
    [
        {"checkStatus": None},
        {"checkStatus": "false"},
        {"bulkOperationId": None},
        {"bulkOperationId": "  "},
        {"totalFiltered": None},
        {"totalProcessed": None},
        {"appliedTag": None},
        {"appliedTag": "   "},
        {"totalFiltered": "ten"},
        {"totalProcessed": "-1"},
        {"totalFiltered": "3", "totalProcessed": "7"},
        {"appliedAction": "delete"},
    ],
)
def test_incomplete_or_corrupt_context_fails_closed(overrides):
    assert decode_job_context(_params(**overrides)) is None


@pytest.mark.parametrize("state", ["COMPLETED", "FAILED", "CANCELED"])
def test_terminal_status_means_no_active_job(state):
    status = BulkOperationStatus(id="op", status=state)
    assert decode_job_context(_params(), status=status) is None


@pytest.mark.parametrize("state", ["CREATED", "RUNNING"])
def test_running_status_resumes(state):
    status = BulkOperationStatus(id="op", status=state)
    assert decode_job_context(_params(), status=status) is not None


def test_running_summary_is_an_estimate():
    summary = running_summary(JobContext(total_filtered=10, total_processed=7, tag="sale"))
    assert summary.estimated is True
    assert summary.to_payload()["alreadyHadTag"] == 3
    assert summary.updated == 7
    assert summary.failed == 0
