import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketplace.api import (
    file_router,
    gig_router,
    maintenance_router,
    member_router,
    order_router,
    payment_router,
    register_error_handlers,
    wallet_router,
)


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (
        member_router,
        gig_router,
        order_router,
        wallet_router,
        maintenance_router,
        file_router,
        payment_router,
    ):
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)
