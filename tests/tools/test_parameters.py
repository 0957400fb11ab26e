from http import HTTPStatus

import pytest

from cloudops_mcp.errors import TransportError
from cloudops_mcp.tools.parameters import (
    delete_parameter,
    delete_parameter_version,
    disable_parameter_version,
    enable_parameter_version,
    update_parameter_kms_key,
)
from tests.conftest import PROJECT, FakeResponse, FakeResponses, RecordedRequest, google_error

from . import TestCase

LOCATION = "us-central1"
GLOBAL = f"projects/{PROJECT}/locations/global/parameters"
REGIONAL = f"projects/{PROJECT}/locations/{LOCATION}/parameters"
KEY = f"projects/{PROJECT}/locations/{LOCATION}/keyRings/ring/cryptoKeys/key"


class TestDeleteParameter(TestCase):
    @pytest.fixture
    def fake_responses(self) -> FakeResponses:
        return {
            f"DELETE /{GLOBAL}/app-config": FakeResponse(body={}),
            f"DELETE /regional/{LOCATION}/{REGIONAL}/app-config": FakeResponse(body={}),
            f"DELETE /{GLOBAL}/has-versions": google_error(
                HTTPStatus.PRECONDITION_FAILED, "Parameter has versions", "FAILED_PRECONDITION"
            ),
        }

    async def test_global(self) -> None:
        result = await delete_parameter(PROJECT, "app-config")
        assert result.message == f"Deleted parameter: {GLOBAL}/app-config"
        assert result.name == f"{GLOBAL}/app-config"

    async def test_regional(self, recorded_requests: list[RecordedRequest]) -> None:
        result = await delete_parameter(PROJECT, "app-config", location=LOCATION)

        assert result.message == f"Deleted regional parameter: {REGIONAL}/app-config"
        assert recorded_requests[0].path == f"/regional/{LOCATION}/{REGIONAL}/app-config"

    async def test_precondition_failure(self) -> None:
        with pytest.raises(TransportError) as exc_info:
            await delete_parameter(PROJECT, "has-versions")
        assert exc_info.value.reason == "FAILED_PRECONDITION"


class TestParameterVersions(TestCase):
    @pytest.fixture
    def fake_responses(self) -> FakeResponses:
        version = f"{GLOBAL}/app-config/versions/v1"
        return {
            f"DELETE /{version}": FakeResponse(body={}),
            f"DELETE /regional/{LOCATION}/{REGIONAL}/app-config/versions/v1": FakeResponse(body={}),
            f"PATCH /{version}": [
                FakeResponse(body={"name": version, "disabled": True}),
                FakeResponse(body={"name": version, "disabled": False}),
            ],
        }

    async def test_delete_version(self) -> None:
        result = await delete_parameter_version(PROJECT, "app-config", "v1")
        assert result.message == f"Deleted parameter version: {GLOBAL}/app-config/versions/v1"

    async def test_delete_regional_version(self) -> None:
        result = await delete_parameter_version(PROJECT, "app-config", "v1", location=LOCATION)
        assert result.message == f"Deleted regional parameter version: {REGIONAL}/app-config/versions/v1"

    async def test_disable_then_enable(self, recorded_requests: list[RecordedRequest]) -> None:
        disabled = await disable_parameter_version(PROJECT, "app-config", "v1")
        enabled = await enable_parameter_version(PROJECT, "app-config", "v1")

        name = f"{GLOBAL}/app-config/versions/v1"
        assert disabled.message == f"Disabled parameter version {name} for parameter app-config"
        assert enabled.message == f"Enabled parameter version {name} for parameter app-config"
        assert [r.body["disabled"] for r in recorded_requests] == [True, False]


class TestUpdateKmsKey(TestCase):
    @pytest.fixture
    def fake_responses(self) -> FakeResponses:
        return {
            f"PATCH /regional/{LOCATION}/{REGIONAL}/app-config": [
                FakeResponse(body={"name": f"{REGIONAL}/app-config", "kmsKey": KEY}),
                FakeResponse(body={"name": f"{REGIONAL}/app-config"}),
            ],
            f"PATCH /{GLOBAL}/app-config": FakeResponse(body={"name": f"{GLOBAL}/app-config"}),
        }

    async def test_set_then_remove_regional(self, recorded_requests: list[RecordedRequest]) -> None:
        updated = await update_parameter_kms_key(PROJECT, "app-config", kms_key=KEY, location=LOCATION)
        removed = await update_parameter_kms_key(PROJECT, "app-config", location=LOCATION)

        assert updated.message == f"Updated regional parameter {REGIONAL}/app-config with kms_key {KEY}"
        assert removed.message == f"Removed kms_key for regional parameter {REGIONAL}/app-config"
        assert recorded_requests[0].body["kmsKey"] == KEY
        assert "kmsKey" not in recorded_requests[1].body

    async def test_remove_global(self) -> None:
        result = await update_parameter_kms_key(PROJECT, "app-config")
        assert result.message == f"Removed kms_key for parameter {GLOBAL}/app-config"
