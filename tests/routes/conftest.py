"""Shared fixtures for route tests"""

import pytest


@pytest.fixture
def post_json(client):
    """POST a JSON body and return ``(status_code, payload)``"""

    def _post(url, body, method="post"):
        response = getattr(client, method)(url, json=body)
        return response.status_code, response.get_json()

    return _post


@pytest.fixture
def sample_client_rows():
    return [
        {"COD_CLIENT": "abc-123", "IDENTIFTRI": "20-12345678-3", "RAZON_SOCI": "Acme"},
        {"COD_CLIENT": "ABC123", "IDENTIFTRI": "27123456784", "RAZON_SOCI": "Acme Dup"},
        {"COD_CLIENT": "DEF456", "IDENTIFTRI": "30111111118", "RAZON_SOCI": ""},
        {"COD_CLIENT": "1234", "IDENTIFTRI": "1", "RAZON_SOCI": "Broken"},
    ]
