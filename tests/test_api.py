import json

from conftest import stripe_signature
from models.models import Invoice, InvoiceStatus
from services import invoice_service


def make_invoice(session, admin, project, status=InvoiceStatus.DRAFT):
    invoice = invoice_service.create_invoice(session, admin, project.id)
    invoice.status = status.value
    session.add(invoice)
    session.commit()
    session.refresh(invoice)
    return invoice


# --- auth --------------------------------------------------------------------

def test_health(api):
    assert api.get("/health").json()["status"] == "ok"


def test_login_and_me(api, client_user):
    res = api.post("/auth/login", json={"email": client_user.email, "password": "client-pass"})
    assert res.status_code == 200
    token = res.json()["access_token"]

    me = api.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == client_user.email


def test_login_rejects_bad_password(api, client_user):
    res = api.post("/auth/login", json={"email": client_user.email, "password": "wrong"})
    assert res.status_code == 401


def test_routes_require_a_token(api):
    assert api.get("/projects/").status_code == 401


# --- provisioning ------------------------------------------------------------

def test_provision_client(api, admin_headers, mailer):
    res = api.post(
        "/api/clients/create",
        json={"email": "fresh@example.com", "tempPassword": "secret1", "name": "Fresh"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True and body["invited"] is False
    assert isinstance(body["user_id"], int)

    login = api.post("/auth/login", json={"email": "fresh@example.com", "password": "secret1"})
    assert login.status_code == 200


def test_provision_missing_email_is_400(api, admin_headers):
    res = api.post("/api/clients/create", json={"name": "No Email"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "VALIDATION_ERROR"


def test_provision_invite_failure_is_500(api, admin_headers, mailer):
    mailer.fail = True
    res = api.post("/api/clients/create", json={"email": "x@example.com"}, headers=admin_headers)
    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to invite user"
    assert res.json()["details"] == "sendgrid down"


def test_provision_is_admin_only(api, client_headers):
    res = api.post("/api/clients/create", json={"email": "x@example.com"}, headers=client_headers)
    assert res.status_code == 403


def test_provision_empty_email_is_400(api, admin_headers):
    res = api.post("/api/clients/create", json={"email": ""}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Missing email"


def test_provision_duplicate_email_is_500(api, admin_headers, client_user):
    res = api.post(
        "/api/clients/create", json={"email": client_user.email, "tempPassword": "secret1"}, headers=admin_headers
    )
    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to create user"


def test_padded_temp_password_logs_in_as_typed(api, admin_headers):
    res = api.post(
        "/api/clients/create", json={"email": "padded@example.com", "tempPassword": " secret1 "}, headers=admin_headers
    )
    assert res.status_code == 200

    login = api.post("/auth/login", json={"email": "padded@example.com", "password": " secret1 "})
    assert login.status_code == 200


# --- checkout ----------------------------------------------------------------

def test_checkout_unknown_invoice_is_404(api, admin_headers):
    res = api.post("/api/stripe/checkout", json={"invoiceId": 999}, headers=admin_headers)
    assert res.status_code == 404


def test_checkout_paid_invoice_is_400(api, session, admin, project, client_headers, gateway):
    invoice = make_invoice(session, admin, project, InvoiceStatus.PAID)
    res = api.post("/api/stripe/checkout", json={"invoiceId": invoice.id}, headers=client_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "ALREADY_PAID"
    assert gateway.sessions == []


def test_client_checkout_returns_url(api, session, admin, project, client_headers):
    invoice = make_invoice(session, admin, project, InvoiceStatus.SENT)
    res = api.post("/api/stripe/checkout", json={"invoiceId": invoice.id}, headers=client_headers)
    assert res.status_code == 200
    assert res.json()["url"].startswith("https://checkout.stripe.test/")

    session.refresh(invoice)
    assert invoice.checkout_url == res.json()["url"]


# --- webhook -----------------------------------------------------------------

def post_webhook(api, payload, signature):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return api.post("/api/stripe/webhook", content=payload.encode(), headers=headers)


def test_webhook_invalid_signature_leaves_invoice_alone(api, session, admin, project):
    invoice = make_invoice(session, admin, project, InvoiceStatus.SENT)
    before = invoice.model_dump()
    payload = json.dumps({
        "id": "evt_bad",
        "type": "checkout.session.completed",
        "data": {"object": {"metadata": {"invoice_id": str(invoice.id)}, "payment_intent": "pi_x"}},
    })

    assert post_webhook(api, payload, stripe_signature(payload, secret="whsec_other")).status_code == 400
    assert post_webhook(api, payload, None).status_code == 400

    session.expire_all()
    assert session.get(Invoice, invoice.id).model_dump() == before


def test_webhook_marks_paid_and_replay_is_harmless(api, session, admin, project):
    invoice = make_invoice(session, admin, project, InvoiceStatus.SENT)
    payload = json.dumps({
        "id": "evt_ok",
        "type": "checkout.session.completed",
        "data": {"object": {"metadata": {"invoice_id": str(invoice.id)}, "payment_intent": "pi_ok"}},
    })

    first = post_webhook(api, payload, stripe_signature(payload))
    assert first.status_code == 200
    assert first.json()["received"] is True
    session.expire_all()
    paid_at = session.get(Invoice, invoice.id).paid_at
    assert paid_at is not None

    replay = post_webhook(api, payload, stripe_signature(payload))
    assert replay.status_code == 200
    session.expire_all()
    stored = session.get(Invoice, invoice.id)
    assert stored.status == "paid"
    assert stored.paid_at == paid_at


def test_webhook_ignores_other_events(api):
    payload = json.dumps({"id": "evt_other", "type": "customer.created", "data": {"object": {}}})
    res = post_webhook(api, payload, stripe_signature(payload))
    assert res.status_code == 200
    assert res.json()["received"] is True


# --- client invoice view -----------------------------------------------------

def test_client_sees_gateway_statuses(api, session, admin, project, client_headers):
    make_invoice(session, admin, project, InvoiceStatus.DRAFT)
    sent = make_invoice(session, admin, project, InvoiceStatus.SENT)

    res = api.get("/invoices/mine", headers=client_headers)
    assert [(i["id"], i["status"]) for i in res.json()] == [(sent.id, "open")]

    res = api.get("/invoices/mine", params={"status": "void"}, headers=client_headers)
    assert res.status_code == 400


def test_delete_invoice_requires_phrase(api, session, admin, project, admin_headers):
    invoice = make_invoice(session, admin, project)
    assert api.delete(f"/invoices/{invoice.id}", params={"confirm": "yes"}, headers=admin_headers).status_code == 400
    assert api.delete(f"/invoices/{invoice.id}", params={"confirm": "DELETE"}, headers=admin_headers).status_code == 204


# --- projects ----------------------------------------------------------------

def test_project_detail_and_phase_save(api, project, admin_headers, client_headers):
    detail = api.get(f"/projects/{project.id}", headers=client_headers).json()
    assert [p["title"] for p in detail["phases"]] == ["Decode", "Align"]
    assert detail["progress"]["current_phase_title"] == "Decode"

    decode, align = detail["phases"]
    res = api.put(
        f"/projects/{project.id}/phases",
        json={"phases": [
            {"id": decode["id"], "title": "Decode", "step_order": 1, "delete": True},
            {"id": align["id"], "title": "Align", "step_order": 2},
        ]},
        headers=admin_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert [r["phase_id"] for r in body["rejected"]] == [decode["id"]]
    assert [(p["title"], p["step_order"]) for p in body["phases"]] == [("Decode", 1), ("Align", 2)]


def test_client_toggles_task_with_note(api, project, client_headers):
    task_id = project.phases[0].tasks[0].id
    res = api.patch(f"/tasks/{task_id}/toggle", json={"is_done": True, "note": "Signed off"}, headers=client_headers)
    assert res.status_code == 200
    assert res.json()["is_done"] is True

    notes = api.get(f"/tasks/{task_id}/notes", headers=client_headers).json()
    assert [n["note"] for n in notes] == ["Signed off"]

    progress = api.get(f"/projects/{project.id}/progress", headers=client_headers).json()
    assert progress["percent"] == 100


def test_upload_and_download_document(api, project, admin_headers, client_headers):
    res = api.post(
        f"/projects/{project.id}/documents/upload",
        files={"file": ("brief.pdf", b"%PDF-1.4 demo", "application/pdf")},
        data={"title": "Brief"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    document = res.json()

    preview = api.get(f"/documents/{document['id']}/preview", headers=client_headers).json()
    assert preview["kind"] == "pdf"
    download = api.get(preview["url"].replace("http://testserver", ""))
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 demo"


def test_admin_dashboard_route(api, project, admin_headers, client_headers):
    assert api.get("/dashboard/admin", headers=client_headers).status_code == 403
    body = api.get("/dashboard/admin", headers=admin_headers).json()
    assert body["project_count"] == 1


def test_brief_can_be_replaced_and_cleared(api, project, admin_headers):
    res = api.put(f"/projects/{project.id}/brief", json={"brief_content": "<p>Scope</p>"}, headers=admin_headers)
    assert res.json()["brief_content"] == "<p>Scope</p>"

    res = api.put(f"/projects/{project.id}/brief", json={"brief_content": None}, headers=admin_headers)
    assert res.json()["brief_content"] is None
