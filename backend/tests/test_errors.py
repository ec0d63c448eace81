import warnings

import httpx
from fastapi import FastAPI, status

from cleansuite.core.errors import NotFound, ValidationFailed, register_error_handlers


def test_validation_failed_uses_current_422_constant():
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        code = status.HTTP_422_UNPROCESSABLE_CONTENT

    assert code == 422
    assert ValidationFailed.status_code == code
    assert not [w for w in caught if issubclass(w.category, DeprecationWarning)]


async def test_domain_errors_render_as_json():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/invalid")
    async def invalid():
        raise ValidationFailed({"email": "Email is required"})

    @app.get("/missing")
    async def missing():
        raise NotFound("Receipt not found")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        invalid_response = await client.get("/invalid")
        missing_response = await client.get("/missing")

    assert invalid_response.status_code == 422
    assert invalid_response.json() == {
        "error": "validation_failed",
        "detail": "Validation failed",
        "fields": {"email": "Email is required"},
    }
    assert missing_response.status_code == 404
    assert missing_response.json()["error"] == "not_found"
