from unittest import mock

import pytest
import requests

from roadtrip.config import APIConfig
from roadtrip.models import RouteBackendError, RouteOk
from roadtrip.osrm import OSRMClient, RouteTransportError
from roadtrip.util import MalformedInputError

from conftest import make_points

OK_BODY = {
    "code": "Ok",
    "trips": [{
        "geometry": "abc",
        "distance": 4500.0,
        "duration": 3600.0,
        "weight": 3600.0,
        "weight_name": "routability",
        "legs": [
            {"distance": 1000.0, "duration": 800.0, "summary": "", "weight": 1, "steps": []},
            {"distance": 2000.0, "duration": 1600.0, "summary": "", "weight": 1, "steps": []},
            {"distance": 1500.0, "duration": 1200.0, "summary": "", "weight": 1, "steps": []},
        ],
    }],
    "waypoints": [],
}


def _client(response=None, side_effect=None, limit=100):
    session = mock.MagicMock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    return OSRMClient(APIConfig(osrm_base_url="http://osrm.test/"), limit, session=session), session


def _response(status=200, body=None, json_error=False):
    resp = mock.MagicMock()
    resp.status_code = status
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


POINTS = make_points([(35.0, -80.0), (36.0, -81.0), (37.0, -82.0)])


def test_ok_response_becomes_trip():
    client, session = _client(_response(body=OK_BODY))
    result = client.resolve(POINTS)
    assert isinstance(result, RouteOk)
    assert [leg.distance for leg in result.trip.legs] == [1000.0, 2000.0, 1500.0]
    url = session.get.call_args.args[0]
    assert url == "http://osrm.test/trip/v1/driving/-80.0,35.0;-81.0,36.0;-82.0,37.0"
    assert session.get.call_args.kwargs["params"]["geometries"] == "polyline6"


def test_backend_error_is_a_result_not_an_exception():
    client, _ = _client(_response(status=400, body={"code": "NoTrips", "message": "No trip visiting all destinations possible."}))
    result = client.resolve(POINTS)
    assert isinstance(result, RouteBackendError)
    assert result.status == "backend-error"
    assert result.reason.startswith("No trip")


def test_backend_error_without_message_uses_code():
    client, _ = _client(_response(body={"code": "TooBig"}))
    assert client.resolve(POINTS).reason == "TooBig"


@pytest.mark.parametrize(
    "response",
    [
        _response(status=502, body={"code": "Ok"}),
        _response(json_error=True),
        _response(body={"message": "no code here"}),
        _response(body={"code": "Ok", "trips": []}),
    ],
)
def test_transport_faults(response):
    client, _ = _client(response)
    with pytest.raises(RouteTransportError):
        client.resolve(POINTS)


def test_connection_error_is_a_transport_fault():
    client, _ = _client(side_effect=requests.ConnectionError("refused"))
    with pytest.raises(RouteTransportError):
        client.resolve(POINTS)


def test_oversized_request_is_rejected_before_io():
    client, session = _client(_response(body=OK_BODY), limit=2)
    with pytest.raises(MalformedInputError):
        client.resolve(POINTS)
    session.get.assert_not_called()


def test_format_coordinates_swaps_to_lon_lat():
    assert OSRMClient.format_coordinates([(35.5, -80.25)]) == "-80.25,35.5"
