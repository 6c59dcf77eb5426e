from datetime import datetime
from unittest.mock import patch

import pytest

from remindercall.config import ANCHOR_UTC_OFFSET
from remindercall.pending_calls import PendingCallDirectory
from remindercall.session import CallSession
from remindercall.state_machine import StateMachine

# Tuesday, 18 November 2025, mid-morning in the anchor timezone
FROZEN_NOW = datetime(2025, 11, 18, 10, 30, tzinfo=ANCHOR_UTC_OFFSET)


@pytest.fixture
def frozen_today():
    with patch("remindercall.dates._now_anchor", return_value=FROZEN_NOW):
        yield FROZEN_NOW.date()


@pytest.fixture
def session():
    return CallSession(
        call_id="CA_test_123",
        customer_name="Ramesh",
        customer_phone="+919876543210",
        asset_model="3DX",
        asset_id="JCB-4521",
        service_type="500 hour",
        due_date="2025-11-20",
        started_at=1000.0,
    )


@pytest.fixture
def machine():
    return StateMachine()


@pytest.fixture
def directory():
    return PendingCallDirectory()


PENDING_CALL = {
    "customerName": "Ramesh",
    "customerPhone": "+919876543210",
    "machineModel": "3DX",
    "machineNumber": "JCB-4521",
    "serviceType": "500 hour",
    "dueDate": "2025-11-20",
}


@pytest.fixture
def pending_payload():
    return dict(PENDING_CALL)
