import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import clear_auth_cache
from app.modules.notifications.realtime import NotificationBroker, get_notification_broker
from app.modules.notifications.service import NotificationService
from app.tests.fake_supabase import FakeSupabase
from app.tests.support import BUYER_ID, VENDOR_ID, PRODUCER_ID, RecordingEmailSender


@pytest.fixture
def supabase():
    client = FakeSupabase()
    client.auth.add_user("buyer-token", BUYER_ID)
    client.auth.add_user("vendor-token", VENDOR_ID)
    client.auth.add_user("producer-token", PRODUCER_ID, super_user=True)
    return client


@pytest.fixture
def service_supabase(supabase):
    # Service-role client sees the same tables; kept separate so tests can tell which one wrote
    return supabase


@pytest.fixture
def broker():
    return NotificationBroker()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def service(supabase, broker, email_sender):
    return NotificationService(supabase, broker, email_sender=email_sender)


@pytest.fixture
def client(supabase, service_supabase, broker):
    clear_auth_cache()
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_service_supabase] = lambda: service_supabase
    app.dependency_overrides[get_notification_broker] = lambda: broker
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()
