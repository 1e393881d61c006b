import asyncio

import pytest
import requests

from core.actuator import (
    NOT_REGISTERED_RESPONSE,
    ActuatorGateway,
    AutoLoad,
    MoveToLoading,
    Raw,
    encode_command,
    normalize_address,
)
from core.errors import InvalidRequest, RegistrationRejected


class TestEncodeCommand:
    def test_move_to_loading(self):
        assert encode_command(MoveToLoading(cell_id=3, slot_id=2)) == "MOVE_TO_LOADING cell=3 slot=2"

    def test_auto_load(self):
        assert encode_command(AutoLoad()) == "AUTO_LOADING"

    def test_raw_is_verbatim(self):
        assert encode_command(Raw("LED ON")) == "LED ON"

    def test_unknown_command_type(self):
        with pytest.raises(TypeError):
            encode_command("MOVE")


class TestRegister:
    def test_bare_host_gets_scheme(self):
        assert normalize_address("192.168.1.50") == "http://192.168.1.50"
        assert normalize_address("https://esp.local:8080/") == "https://esp.local:8080"

    def test_empty_address(self, gateway):
        with pytest.raises(InvalidRequest):
            gateway.register("  ")
        assert gateway.base_url is None

    def test_last_writer_wins(self, gateway):
        gateway.register("10.0.0.5")
        gateway.register("10.0.0.6")
        assert gateway.base_url == "http://10.0.0.6"

    def test_token_required_when_configured(self, actuator_http):
        gw = ActuatorGateway(register_token="s3cret")
        with pytest.raises(RegistrationRejected):
            gw.register("10.0.0.5")
        with pytest.raises(RegistrationRejected):
            gw.register("10.0.0.5", token="wrong")
        assert gw.base_url is None

        assert gw.register("10.0.0.5", token="s3cret") == "http://10.0.0.5"

    def test_non_ascii_token_is_rejected(self, actuator_http):
        gw = ActuatorGateway(register_token="s3cret")
        with pytest.raises(RegistrationRejected):
            gw.register("10.0.0.5", token="sécret")
        assert gw.base_url is None

    def test_initial_address(self):
        assert ActuatorGateway(address="10.0.0.9").base_url == "http://10.0.0.9"


class TestSend:
    def test_unregistered_makes_no_call(self, gateway, actuator_http):
        result = asyncio.run(gateway.send(MoveToLoading(cell_id=1, slot_id=1)))
        assert result.accepted is False
        assert result.response == NOT_REGISTERED_RESPONSE
        assert actuator_http.calls == []

    def test_success_status_is_accepted(self, registered_gateway, actuator_http):
        actuator_http.text = "MOVING"
        result = asyncio.run(registered_gateway.send(MoveToLoading(cell_id=1, slot_id=2)))
        assert result.accepted is True
        assert result.response == "MOVING"
        assert actuator_http.calls == ["http://192.168.1.50/cmd?c=MOVE_TO_LOADING%20cell%3D1%20slot%3D2"]

    def test_error_status_is_not_accepted(self, registered_gateway, actuator_http):
        actuator_http.status_code = 500
        actuator_http.text = "motor fault"
        result = asyncio.run(registered_gateway.send(AutoLoad()))
        assert result.accepted is False
        assert result.response == "motor fault"
        assert len(actuator_http.calls) == 1

    def test_transport_error_is_folded_into_result(self, registered_gateway, actuator_http):
        actuator_http.error = requests.ConnectionError("connection refused")
        result = asyncio.run(registered_gateway.send(Raw("PING")))
        assert result.accepted is False
        assert "connection refused" in result.response
        # single attempt, no retry
        assert len(actuator_http.calls) == 1
