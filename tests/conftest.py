import pytest
from fastapi.testclient import TestClient

from techsync.main import app
from techsync.models.technician import LocalAccount, RemoteTechnician
from techsync.services.technician_directory import get_technician_directory


# Configure anyio to use only asyncio backend
@pytest.fixture
def anyio_backend():
    return "asyncio"


class StubServiceTitanClient:
    """네트워크 없이 ServiceTitan 응답을 흉내내는 stub"""

    def __init__(self, technicians=None, jobs=None, error=None, job_details=None, healthy=True) -> None:
        self.technicians = technicians or []
        self.jobs = jobs or []
        self.error = error
        self.job_details = job_details
        self.healthy = healthy
        self.calls = []

    async def get_all_technicians(self, *, active=True):
        self.calls.append(("get_all_technicians", active))
        if self.error:
            raise self.error
        return self.technicians

    async def get_technician_jobs(self, technician_id):
        self.calls.append(("get_technician_jobs", technician_id))
        if self.error:
            raise self.error
        return self.jobs

    async def get_job(self, job_id):
        self.calls.append(("get_job", job_id))
        if self.job_details is not None:
            detail = self.job_details.get(job_id)
            if isinstance(detail, Exception):
                raise detail
            return detail
        for job in self.jobs:
            if str(job.get("id")) == job_id:
                return {**job, "detailed": True}
        return None

    async def health_check(self):
        self.calls.append(("health_check", None))
        return self.healthy

    async def close(self):
        self.calls.append(("close", None))


@pytest.fixture
def stub_client_factory():
    return StubServiceTitanClient


@pytest.fixture
def jane() -> LocalAccount:
    return LocalAccount(id="u-1", email="jane@co.com", full_name="Jane Doe")


@pytest.fixture
def roster() -> list[RemoteTechnician]:
    return [
        RemoteTechnician(id="1", name="Jane Doe", email="jane@co.com"),
        RemoteTechnician(id="2", name="John Smith", email="john@co.com"),
    ]


@pytest.fixture(autouse=True)
def unconfigured_directory():
    """기본적으로 ServiceTitan 미설정 상태로 테스트"""
    app.dependency_overrides[get_technician_directory] = lambda: None
    yield
    app.dependency_overrides.pop(get_technician_directory, None)


@pytest.fixture()
def test_client() -> TestClient:
    with TestClient(app) as client:
        yield client
