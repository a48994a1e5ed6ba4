"""
Parichay - Lead Routing Tests

Fan-out of a stored lead to email / WhatsApp / in-app:
1. Preferences decide which channels run
2. A failing channel is isolated from the others
3. Message and email content
4. WhatsApp stub mode and Cloud API call
"""

import pytest

from parichay import config
from parichay.config import db
from parichay.services import lead_router, whatsapp_service
from parichay.services.email_service import email_service, build_lead_email_html, EmailService

LEAD = {
    "id": "lead-42",
    "name": "Asha <b>Patel</b>",
    "email": "asha@example.com",
    "phone": None,
    "message": "Need 40 cups for an office event",
    "source": "microsite_form",
    "created_at": "2026-10-19T08:15:30+00:00",
}


def with_prefs(branch, **prefs):
    return {**branch, "microsite_config": {"notification_preferences": prefs}}


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []
    monkeypatch.setattr(email_service, "send_lead_notification", lambda *args: sent.append(args) or True)
    return sent


@pytest.fixture
def sent_whatsapp(monkeypatch):
    sent = []

    async def fake_send(to, message):
        sent.append((to, message))
        return True

    monkeypatch.setattr(whatsapp_service, "send_whatsapp_message", fake_send)
    return sent


class TestPreferences:

    def test_defaults(self):
        assert lead_router.get_notification_preferences({}) == {"email": True, "whatsapp": False, "in_app": True}

    def test_camel_case_in_app(self):
        branch = with_prefs({}, email=False, whatsapp=True, inApp=False)
        assert lead_router.get_notification_preferences(branch) == {"email": False, "whatsapp": True, "in_app": False}

    def test_submitted_at_format(self):
        assert lead_router.build_lead_info(LEAD)["submitted_at"] == "19/10/2026 08:15:30 UTC"


class TestRouting:

    @pytest.mark.asyncio
    async def test_all_channels(self, branch, brand, make_user, sent_emails, sent_whatsapp):
        await make_user("branch_admin", branch_ids=[branch["id"]])
        routed = await lead_router.route_lead_to_contacts(
            LEAD, with_prefs(branch, email=True, whatsapp=True, in_app=True), brand
        )

        assert routed == {"email": "sent", "whatsapp": "sent", "in_app": "sent"}
        assert sent_emails[0][0] == branch["contact"]["email"]
        assert sent_whatsapp[0][0] == branch["contact"]["whatsapp"]
        assert "Asha <b>Patel</b>" in sent_whatsapp[0][1]
        print(f"✅ Routed: {routed}")

    @pytest.mark.asyncio
    async def test_all_disabled(self, branch, brand, sent_emails, sent_whatsapp):
        routed = await lead_router.route_lead_to_contacts(
            LEAD, with_prefs(branch, email=False, whatsapp=False, in_app=False), brand
        )
        assert routed == {"email": "disabled", "whatsapp": "disabled", "in_app": "disabled"}
        assert sent_emails == []
        assert sent_whatsapp == []

    @pytest.mark.asyncio
    async def test_missing_contact_channel_is_disabled(self, branch, brand, sent_whatsapp):
        branch = with_prefs({**branch, "contact": {"phone": "1", "email": None, "whatsapp": None}},
                            email=True, whatsapp=True, in_app=False)
        routed = await lead_router.route_lead_to_contacts(LEAD, branch, brand)
        assert routed["email"] == "disabled"
        assert routed["whatsapp"] == "disabled"

    @pytest.mark.asyncio
    async def test_failing_email_does_not_stop_other_channels(self, branch, brand, make_user, monkeypatch, sent_whatsapp):
        def explode(*args):
            raise RuntimeError("SMTP down")

        monkeypatch.setattr(email_service, "send_lead_notification", explode)
        await make_user("branch_admin", branch_ids=[branch["id"]])

        routed = await lead_router.route_lead_to_contacts(
            LEAD, with_prefs(branch, email=True, whatsapp=True, in_app=True), brand
        )

        assert routed == {"email": "failed", "whatsapp": "sent", "in_app": "sent"}
        assert await db.notifications.count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_email_without_sendgrid_key_fails(self, branch, brand):
        routed = await lead_router.route_lead_to_contacts(
            LEAD, with_prefs(branch, email=True, whatsapp=False, in_app=False), brand
        )
        assert routed["email"] == "failed"


class TestEmailContent:

    def test_html_escapes_and_defaults(self):
        html = build_lead_email_html(lead_router.build_lead_info(LEAD), "Chai & Co", "MG Road")
        assert "Asha &lt;b&gt;Patel&lt;/b&gt;" in html
        assert "Chai &amp; Co" in html
        assert "Not provided" in html
        assert "Lead ID: lead-42" in html

    def test_subject(self, monkeypatch):
        service = EmailService(api_key="SG.test")
        captured = {}

        def fake_send(to_email, subject, html_content):
            captured.update(to=to_email, subject=subject)
            return True

        monkeypatch.setattr(service, "_send_email", fake_send)
        assert service.send_lead_notification("owner@example.com", {"name": "A"}, "Chai Point", "MG Road")
        assert captured["subject"] == "🎯 New Lead from Chai Point - MG Road"


class TestWhatsApp:

    def test_message_format(self):
        message = whatsapp_service.format_lead_message(lead_router.build_lead_info(LEAD), "Chai Point", "MG Road")
        assert message.startswith("🎯 *New Lead Received!*")
        assert "📱 *Phone:* Not provided" in message
        assert "💬 *Message:* Need 40 cups" in message
        assert message.endswith("_Lead ID: lead-42_")

    @pytest.mark.asyncio
    async def test_stub_mode(self):
        assert await whatsapp_service.send_whatsapp_message("+91 98765 43210", "hi") is True

    @pytest.mark.asyncio
    async def test_number_without_digits(self):
        assert await whatsapp_service.send_whatsapp_message("n/a", "hi") is False

    @pytest.mark.asyncio
    async def test_cloud_api_call(self, monkeypatch):
        monkeypatch.setattr(config, "WHATSAPP_ACCESS_TOKEN", "token")
        monkeypatch.setattr(config, "WHATSAPP_PHONE_NUMBER_ID", "12345")
        calls = []

        class FakeResponse:
            status_code = 200
            text = "{}"

        class FakeClient:
            def __init__(self, *args, **kwargs):
                pass

            async def __aenter__(self):
                return self

            async def __aexit__(self, *args):
                return False

            async def post(self, url, json=None, headers=None):
                calls.append((url, json, headers))
                return FakeResponse()

        monkeypatch.setattr(whatsapp_service.httpx, "AsyncClient", FakeClient)

        assert await whatsapp_service.send_whatsapp_message("+91 98765 43210", "hello") is True
        url, payload, headers = calls[0]
        assert url == "https://graph.facebook.com/v17.0/12345/messages"
        assert payload["to"] == "919876543210"
        assert payload["text"] == {"body": "hello"}
        assert headers["Authorization"] == "Bearer token"
