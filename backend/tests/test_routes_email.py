import sqlite3
from unittest.mock import MagicMock, patch

from travel_crm.api import routes_email
from travel_crm.core.errors import EmailDeliveryError, EmailNotConfiguredError, InvalidEmailError
from travel_crm.services.email_service import EmailService


class TestSendItinerary:
    def test_sends_and_records(self, client, auth_headers, store, sendable_request, email_service):
        resp = client.post("/api/send-itinerary", json={"id": sendable_request["id"]}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["message"] == "Itinerary sent successfully"

        email_service.verify.assert_called_once()
        to, email = email_service.send.call_args[0]
        link = f"https://admin.lankalux.com/itinerary/{sendable_request['public_token']}/1"
        assert to == "amelia@example.com"
        assert email.subject == "Your LankaLux Sri Lanka Journey - Option 2"
        assert link in email.text

        saved = store.get_request(sendable_request["id"])
        assert saved["status"] == "follow_up"
        assert saved["email_sent_count"] == 1
        assert saved["sent_options"][0]["itinerary_url"] == link

    def test_no_selection(self, client, auth_headers, request_with_options, email_service):
        resp = client.post("/api/send-itinerary", json={"id": request_with_options["id"]}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No itinerary option selected"
        email_service.send.assert_not_called()

    def test_no_token(self, client, auth_headers, store, request_with_options):
        store.update_request(request_with_options["id"], {"selected_option": 0})
        resp = client.post("/api/send-itinerary", json={"id": request_with_options["id"]}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Public token not found")

    def test_selected_slot_empty(self, client, auth_headers, store, saved_request):
        store.update_request(saved_request["id"], {"selected_option": 2, "public_token": "tok"})
        resp = client.post("/api/send-itinerary", json={"id": saved_request["id"]}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Selected itinerary option not found"

    def test_unknown_request(self, client, auth_headers):
        assert client.post("/api/send-itinerary", json={"id": "nope"}, headers=auth_headers).status_code == 404

    def test_smtp_verification_failure(self, client, auth_headers, store, sendable_request, email_service):
        email_service.verify.side_effect = EmailDeliveryError(
            "SMTP server verification failed. Please check your credentials.", details="535 auth failed"
        )

        resp = client.post("/api/send-itinerary", json={"id": sendable_request["id"]}, headers=auth_headers)

        assert resp.status_code == 500
        assert resp.json()["detail"] == {
            "error": "SMTP server verification failed. Please check your credentials.",
            "details": "535 auth failed",
        }
        assert store.get_request(sendable_request["id"])["email_sent_count"] == 0

    def test_not_configured(self, client, auth_headers, sendable_request, email_service):
        email_service.verify.side_effect = EmailNotConfiguredError("Email service not configured.")
        resp = client.post("/api/send-itinerary", json={"id": sendable_request["id"]}, headers=auth_headers)
        assert resp.status_code == 500

    def test_db_failure_after_send_is_a_warning(self, client, auth_headers, store, sendable_request, monkeypatch):
        def _fail(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(store, "record_itinerary_send", _fail)
        resp = client.post("/api/send-itinerary", json={"id": sendable_request["id"]}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert "warning" in resp.json()


class TestTemplates:
    def test_list(self, client, auth_headers):
        resp = client.get("/api/email-templates", headers=auth_headers)
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json()] == ["friendly_checkin", "gentle_reminder", "here_when_ready"]
        assert resp.json()[2]["subject"] == "Whenever you're ready – your LankaLux itinerary"

    def test_send_follow_up_logs_entry(self, client, auth_headers, store, sendable_request, email_service):
        resp = client.post(
            "/api/send-template-email",
            json={"requestId": sendable_request["id"], "templateId": "friendly_checkin"},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        _, email = email_service.send.call_args[0]
        assert f"/itinerary/{sendable_request['public_token']}/1" in email.html
        assert "Hi Amelia," in email.html

        log = store.get_request(sendable_request["id"])["follow_up_emails_sent"]
        assert len(log) == 1
        assert log[0]["template_id"] == "friendly_checkin"
        assert log[0]["subject"] == email.subject

    def test_custom_subject_and_body(self, client, auth_headers, sendable_request, email_service):
        client.post(
            "/api/send-template-email",
            json={
                "requestId": sendable_request["id"],
                "templateId": "gentle_reminder",
                "subject": "Quick question",
                "body": "Would you like a cooking class in Kandy?",
            },
            headers=auth_headers,
        )
        _, email = email_service.send.call_args[0]
        assert email.subject == "Quick question"
        assert "cooking class in Kandy" in email.text

    def test_without_selection_has_no_link(self, client, auth_headers, request_with_options, email_service):
        client.post(
            "/api/send-template-email",
            json={"requestId": request_with_options["id"], "templateId": "friendly_checkin"},
            headers=auth_headers,
        )
        _, email = email_service.send.call_args[0]
        assert "/itinerary/" not in email.html
        assert "Get in touch" in email.html

    def test_invalid_template(self, client, auth_headers, sendable_request):
        resp = client.post(
            "/api/send-template-email",
            json={"requestId": sendable_request["id"], "templateId": "sales_push"},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_unknown_request(self, client, auth_headers):
        resp = client.post(
            "/api/send-template-email",
            json={"requestId": "nope", "templateId": "friendly_checkin"},
            headers=auth_headers,
        )
        assert resp.status_code == 404

    def test_subject_line_breaks_collapsed(self, client, auth_headers, sendable_request, monkeypatch):
        service = EmailService(
            host="smtp.lankalux.com", user="bookings@lankalux.com", password="secret", sender="bookings@lankalux.com"
        )
        monkeypatch.setattr(routes_email, "email_service", service)
        server = MagicMock()
        server.__enter__.return_value = server

        with patch("travel_crm.services.email_service.smtplib.SMTP", return_value=server):
            resp = client.post(
                "/api/send-template-email",
                json={"requestId": sendable_request["id"], "templateId": "friendly_checkin", "subject": "Hello\nthere"},
                headers=auth_headers,
            )

        assert resp.status_code == 200
        assert server.send_message.call_args[0][0]["Subject"] == "Hello there"

    def test_unbuildable_message_is_400(self, client, auth_headers, store, sendable_request, email_service):
        email_service.send.side_effect = InvalidEmailError("Invalid email content: bad header")

        resp = client.post(
            "/api/send-template-email",
            json={"requestId": sendable_request["id"], "templateId": "friendly_checkin"},
            headers=auth_headers,
        )

        assert resp.status_code == 400
        assert store.get_request(sendable_request["id"])["follow_up_emails_sent"] == []
