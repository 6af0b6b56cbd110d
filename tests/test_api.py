"""HTTP routes: landing page, admin API, postback receiver and email relay"""

import pytest

VALID = {"fullName": "Ana Souza", "email": "ana@example.com", "accountId": "12345"}


def submit(client, data=None, **body):
    return client.post("/api/submissions", json={"data": data or VALID, **body})


# -------------------------
# Public routes
# -------------------------

def test_page_config_is_public_without_secrets(client, service):
    service.update_config({"accessPassword": "segredo", "heroTitle": "Bem-vindo"})

    response = client.get("/api/page")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["heroTitle"] == "Bem-vindo"
    assert "accessPassword" not in data
    assert "emailBody" not in data


def test_access_password(client, service):
    service.update_config({"accessPasswordEnabled": True, "accessPassword": "Segredo"})

    assert client.post("/api/access", json={"password": "  segredo "}).status_code == 200
    response = client.post("/api/access", json={"password": "wrong"})
    assert response.status_code == 403
    assert response.get_json()["code"] == "wrong_password"


def test_access_open_when_gate_disabled(client):
    assert client.post("/api/access", json={}).status_code == 200


def test_submission_created(client, service):
    response = submit(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["data"]["data"] == VALID
    assert len(service.list_submissions()) == 1


@pytest.mark.parametrize("setup, data, status, code", [
    ({}, {"fullName": "Ana"}, 400, "missing_fields"),
    ({"rulesEnabled": True}, VALID, 400, "rules_not_accepted"),
    ({"tipsDisabled": True}, VALID, 403, "closed"),
])
def test_submission_rejections(client, service, setup, data, status, code):
    service.update_config(setup)

    response = submit(client, data)

    assert response.status_code == status
    body = response.get_json()
    assert body["success"] is False
    assert body["code"] == code


def test_duplicate_submission_conflict(client):
    submit(client)
    response = submit(client, {**VALID, "email": "other@example.com"})
    assert response.status_code == 409
    assert response.get_json()["code"] == "already_exists"


def test_banned_submission_blocked(client, service):
    service.ban_list.add("email", "ana@example.com")
    response = submit(client)
    assert response.status_code == 403
    assert response.get_json()["code"] == "blocked"


def test_submission_requires_object(client):
    response = client.post("/api/submissions", json={"data": "nope"})
    assert response.status_code == 400


# -------------------------
# Admin authentication
# -------------------------

@pytest.mark.parametrize("headers", [{}, {"X-Admin-Key": "wrong"}])
def test_admin_routes_require_key(client, headers):
    response = client.get("/api/admin/submissions", headers=headers)
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_admin_routes_closed_without_configured_key(service):
    from server import create_app

    app = create_app(service, admin_key="")
    response = app.test_client().get("/api/admin/config", headers={"X-Admin-Key": ""})
    assert response.status_code == 401


# -------------------------
# Admin routes
# -------------------------

def test_admin_submission_lifecycle(client, admin_headers):
    submission_id = submit(client).get_json()["data"]["id"]

    listing = client.get("/api/admin/submissions", headers=admin_headers).get_json()["data"]
    assert listing[0]["submission"]["id"] == submission_id
    assert listing[0]["wins"]["eligible"] is True

    response = client.patch(f"/api/admin/submissions/{submission_id}",
                            json={"data": {"fullName": "Ana S."}}, headers=admin_headers)
    assert response.get_json()["data"]["data"]["fullName"] == "Ana S."

    other_id = submit(client, {**VALID, "accountId": "999"}).get_json()["data"]["id"]
    clash = client.patch(f"/api/admin/submissions/{other_id}",
                         json={"data": {"accountId": "12345"}}, headers=admin_headers)
    assert clash.status_code == 409

    assert client.delete(f"/api/admin/submissions/{submission_id}",
                         headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin/submissions/{submission_id}",
                         headers=admin_headers).status_code == 404


def test_admin_random_draw_and_tip(client, service, admin_headers):
    submit(client)
    response = client.post("/api/admin/draw/random", json={"count": 3}, headers=admin_headers)

    body = response.get_json()
    assert response.status_code == 200
    assert body["data"]["count"] == 1
    assert body["requested"] == 3
    win_id = body["data"]["wins"][0]["id"]

    response = client.post(f"/api/admin/wins/{win_id}/tip", json={"tip_value": "R$ 25,00"},
                           headers=admin_headers)
    assert response.get_json()["data"]["tip_value"] == "R$ 25,00"

    response = client.post(f"/api/admin/wins/{win_id}/tip", json={"tip_value": "R$ 50,00"},
                           headers=admin_headers)
    assert response.status_code == 409
    assert response.get_json()["code"] == "tip_already_assigned"

    summary = client.get("/api/admin/tips/summary", headers=admin_headers).get_json()["data"]
    assert summary["spent"] == 25.0


def test_admin_random_draw_with_nobody_eligible(client, admin_headers):
    response = client.post("/api/admin/draw/random", json={"count": 2}, headers=admin_headers)

    body = response.get_json()
    assert response.status_code == 200
    assert body["data"]["count"] == 0
    assert body["message"] == "No eligible participants"


def test_admin_random_draw_rejects_bad_count(client, admin_headers):
    response = client.post("/api/admin/draw/random", json={"count": "many"}, headers=admin_headers)
    assert response.status_code == 400


def test_admin_selected_draw_reports_partial(client, service, admin_headers):
    service.update_config({"maxDailyWins": 1})
    submission_id = submit(client).get_json()["data"]["id"]

    response = client.post("/api/admin/draw/selected",
                           json={"ids": [submission_id, submission_id, "ghost"]},
                           headers=admin_headers)

    body = response.get_json()
    assert body["data"]["count"] == 1
    assert body["requested"] == 3


def test_admin_wins_listing_and_clear(client, service, admin_headers):
    submission_id = submit(client).get_json()["data"]["id"]
    client.post("/api/admin/draw/selected", json={"ids": [submission_id]}, headers=admin_headers)

    assert len(client.get("/api/admin/wins", headers=admin_headers).get_json()["data"]) == 1
    by_date = client.get("/api/admin/wins?date=2024-03-14", headers=admin_headers).get_json()["data"]
    assert by_date == []
    assert client.get("/api/admin/wins?date=garbage", headers=admin_headers).status_code == 400

    response = client.delete("/api/admin/wins", headers=admin_headers)
    assert response.get_json()["deleted"] == 1
    assert service.list_wins() == []


def test_admin_clear_submissions(client, service, admin_headers):
    submit(client)
    response = client.delete("/api/admin/submissions", headers=admin_headers)
    assert response.get_json()["deleted"] == 1
    assert service.list_submissions() == []


def test_admin_ban_list(client, admin_headers):
    response = client.post("/api/admin/banned", json={"type": "accountId", "value": "12345",
                                                     "reason": "fraud"}, headers=admin_headers)
    assert response.status_code == 201
    ban_id = response.get_json()["data"]["id"]

    assert submit(client).status_code == 403
    listing = client.get("/api/admin/banned", headers=admin_headers).get_json()["data"]
    assert [b["id"] for b in listing] == [ban_id]

    assert client.delete(f"/api/admin/banned/{ban_id}", headers=admin_headers).status_code == 200
    assert submit(client).status_code == 201

    bad = client.post("/api/admin/banned", json={"type": "ip", "value": "1.2.3.4"},
                      headers=admin_headers)
    assert bad.status_code == 400


def test_admin_config_patch_and_reset(client, service, store, admin_headers):
    response = client.patch("/api/admin/config", json={"maxDailyWins": 2}, headers=admin_headers)
    assert response.get_json()["data"]["maxDailyWins"] == 2
    assert service.config.max_daily_wins == 2

    service.config_manager.flush(force=True)
    assert store.load_config_blob()["maxDailyWins"] == 2

    bad = client.patch("/api/admin/config", json={"maxDailyWins": -3}, headers=admin_headers)
    assert bad.status_code == 400
    for body in ({"fields": [{"label": "x"}]}, {"fields": None}):
        assert client.patch("/api/admin/config", json=body, headers=admin_headers).status_code == 400

    reset = client.post("/api/admin/config/reset", headers=admin_headers).get_json()["data"]
    assert reset["maxDailyWins"] == 5
    assert "accessPassword" in client.get("/api/admin/config", headers=admin_headers).get_json()["data"]


def test_admin_exports(client, admin_headers):
    submission_id = submit(client).get_json()["data"]["id"]
    client.post("/api/admin/draw/selected", json={"ids": [submission_id]}, headers=admin_headers)

    response = client.get("/api/admin/export/wins.csv?date=2024-03-15", headers=admin_headers)
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0] == "#,Data do sorteio,fullName,email,accountId"
    assert lines[1].endswith("Ana Souza,ana@example.com,12345")
    assert "sorteados-2024-03-15.csv" in response.headers["Content-Disposition"]

    pdf = client.get("/api/admin/export/wins.pdf?date=2024-03-15", headers=admin_headers)
    assert pdf.mimetype == "application/pdf"
    assert pdf.data.startswith(b"%PDF")

    submissions = client.get("/api/admin/export/submissions.csv", headers=admin_headers)
    assert submissions.get_data(as_text=True).startswith("#,Data de cadastro")
    assert client.get("/api/admin/export/submissions.pdf", headers=admin_headers).status_code == 200
    assert client.get("/api/admin/export/submissions.xls", headers=admin_headers).status_code == 404


# -------------------------
# Postback receiver
# -------------------------

def test_postback_query_string(client, service, admin_headers):
    response = client.get("/functions/postback?player_id=777&currency=BRL&registration=2024-03-01")

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "player_id": "777"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert service.validated_ids() == {"777"}

    count = client.get("/api/admin/validated/count", headers=admin_headers).get_json()["data"]
    assert count == {"count": 1}


def test_postback_json_and_form_bodies(client, service):
    assert client.post("/functions/postback", json={"playerid": "A1", "type": "new"}).status_code == 200
    assert client.post("/functions/postback", data={"player_id": "B2"}).status_code == 200
    # Upsert: a repeated postback does not create a second row
    assert client.post("/functions/postback", json={"player_id": "A1"}).status_code == 200

    assert service.validated_ids() == {"A1", "B2"}
    assert service.validated_count() == 2


def test_postback_requires_player_id(client):
    response = client.post("/functions/postback", json={"currency": "BRL"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "player_id is required"}


def test_postback_preflight(client):
    response = client.options("/functions/postback")
    assert response.status_code == 204
    assert "POST" in response.headers["Access-Control-Allow-Methods"]


# -------------------------
# Email relay
# -------------------------

def test_email_relay_sends(client, relay_session):
    response = client.post("/functions/send-winner-email", json={
        "to": "ana@example.com", "subject": "Parabéns", "body": "Oi\nAna", "fromName": "Gorjetas",
    })

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "id": "msg_123"}
    assert relay_session.post.call_args.kwargs["json"]["html"] == "Oi<br>Ana"


def test_email_relay_missing_fields(client, relay_session):
    response = client.post("/functions/send-winner-email", json={"to": "ana@example.com"})
    assert response.status_code == 400
    relay_session.post.assert_not_called()


def test_email_relay_provider_failure(client, relay_session):
    relay_session.post.return_value.ok = False
    relay_session.post.return_value.status_code = 422
    relay_session.post.return_value.json.return_value = {"message": "bad sender"}

    response = client.post("/functions/send-winner-email", json={
        "to": "ana@example.com", "subject": "Oi", "body": "Body",
    })

    assert response.status_code == 422
    assert response.get_json()["details"] == {"message": "bad sender"}


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
