import json

import httpx
import pytest

from matrix import compute_distance_matrix
from pacing import NoDelay
from routing import ORSClient, check_matrix

BASE_URL = "http://ors.test/ors/v2"


def slicing_backend(requests):
    """ORS stand-in that answers with |i - j| * 100 meters for each source/destination pair"""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append((request, body))
        n = len(body['locations'])
        sources = body.get('sources', list(range(n)))
        destinations = body.get('destinations', list(range(n)))
        return httpx.Response(200, json={
            'distances': [[abs(s - d) * 100.0 for d in destinations] for s in sources],
            'metadata': {'query': {'profile': 'driving-car'}},
        })

    return handler


async def test_matrix_request_shape():
    requests = []
    async with ORSClient(base_url=BASE_URL, api_key="secret",
                         transport=httpx.MockTransport(slicing_backend(requests))) as client:
        data = await client.matrix([[1, 2], [3, 4], [5, 6]], sources=[0, 1], destinations=[2])

    request, body = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/ors/v2/matrix/driving-car"
    assert request.headers["Authorization"] == "secret"
    assert body == {
        'locations': [[1, 2], [3, 4], [5, 6]],
        'metrics': ['distance'],
        'sources': [0, 1],
        'destinations': [2],
    }
    assert data['distances'] == [[200.0], [100.0]]


async def test_no_authorization_header_without_key():
    requests = []
    async with ORSClient(base_url=BASE_URL, api_key=None,
                         transport=httpx.MockTransport(slicing_backend(requests))) as client:
        await client.matrix([[1, 2]], profile="cycling-regular")

    request, _ = requests[0]
    assert "Authorization" not in request.headers
    assert request.url.path.endswith("/matrix/cycling-regular")


async def test_http_errors_are_raised():
    def handler(request):
        return httpx.Response(500, json={'error': 'boom'})

    async with ORSClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.health()


async def test_connection_errors_are_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with ORSClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.ConnectError):
            await client.status()


async def test_health_and_status():
    def handler(request):
        return httpx.Response(200, json={'path': request.url.path})

    async with ORSClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
        assert (await client.health())['path'] == "/ors/v2/health"
        assert (await client.status())['path'] == "/ors/v2/status"


async def test_check_matrix_sends_two_points():
    requests = []
    async with ORSClient(base_url=BASE_URL, transport=httpx.MockTransport(slicing_backend(requests))) as client:
        data = await check_matrix(client)

    _, body = requests[0]
    assert body['locations'] == [[-6.2597, 53.3478], [-6.2551, 53.3422]]
    assert 'sources' not in body
    assert data['distances'] == [[0.0, 100.0], [100.0, 0.0]]


async def test_tiled_matrix_through_client():
    requests = []
    locations = [[-6.26 + i * 0.001, 53.34] for i in range(7)]

    async with ORSClient(base_url=BASE_URL, transport=httpx.MockTransport(slicing_backend(requests))) as client:
        matrix = await compute_distance_matrix(locations, client, tile=3, pacer=NoDelay())

    assert len(requests) == 9
    assert matrix == [[abs(i - j) * 100.0 for j in range(7)] for i in range(7)]
