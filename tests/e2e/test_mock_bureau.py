"""
E2E tests driving the credit check workflow against the mock bureau server.

The mock app runs in-process through httpx's ASGI transport, so no server
needs to be started. Scenarios:
- healthy bureau: report completes with a score in the mock's range
- wrong API key: 401 is permanent, one attempt, report failed
- flaky bureau: every attempt 5xx, retries exhausted, report failed
"""

import httpx
import pytest
from finsight_gateway.infrastructure.clients.bureau import BureauClient, BureauClientConfig
from finsight_gateway.services.bureau import BureauCheckOrchestrator
from finsight_gateway.domain.exceptions import BureauCheckFailedError
from finsight_gateway.domain.models import ReportStatus
from finsight_gateway.infrastructure.database.models import BureauReport
from mocks.bureau_server.main import app as bureau_app


@pytest.fixture
def mock_bureau():
    """Mock bureau with no latency and no random failures unless a test asks for them"""
    bureau_app.state.error_rate = 0.0
    bureau_app.state.max_delay_seconds = 0.0
    yield bureau_app
    bureau_app.state.error_rate = 0.1
    bureau_app.state.max_delay_seconds = 2.5


def orchestrator_for(db, app, fake_sleep, api_key: str = "test-api-key") -> BureauCheckOrchestrator:
    config = BureauClientConfig(api_url="http://mock-bureau/v1/credit/check", api_key=api_key)
    client = BureauClient(config, transport=httpx.ASGITransport(app=app))
    return BureauCheckOrchestrator(db, client, sleep=fake_sleep)


@pytest.mark.integration
async def test_healthy_bureau_completes_report(db, mock_bureau, fake_sleep):
    report = await orchestrator_for(db, mock_bureau, fake_sleep).check_credit(1)

    assert report.status == ReportStatus.COMPLETED
    assert 300 <= report.credit_score < 600
    assert report.risk_band in {"Excellent", "Good", "Fair", "Poor", "Very Poor"}
    assert 5 <= report.trade_lines < 20
    assert fake_sleep.delays == []


@pytest.mark.integration
async def test_wrong_api_key_is_rejected_once(db, mock_bureau, fake_sleep):
    with pytest.raises(BureauCheckFailedError, match="401 - Please provide a valid X-API-KEY header"):
        await orchestrator_for(db, mock_bureau, fake_sleep, api_key="wrong").check_credit(1)

    report = db.query(BureauReport).one()
    assert report.status == ReportStatus.FAILED
    assert fake_sleep.delays == []


@pytest.mark.integration
async def test_flaky_bureau_exhausts_retries(db, mock_bureau, fake_sleep):
    mock_bureau.state.error_rate = 1.0

    with pytest.raises(BureauCheckFailedError, match="failed after 3 attempts"):
        await orchestrator_for(db, mock_bureau, fake_sleep).check_credit(1)

    report = db.query(BureauReport).one()
    assert report.status == ReportStatus.FAILED
    assert fake_sleep.delays == [2, 4]
