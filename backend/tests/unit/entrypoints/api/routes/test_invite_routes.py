"""Tests for invite routes."""

from collections.abc import Callable
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from projectdesk.core.identity import User

Auth = Callable[[User], dict[str, str]]


@pytest.fixture
def project_id(client: TestClient, auth: Auth, alice: User, bob: User) -> str:
    """Alice's project with Bob as Admin."""
    response = client.post(
        "/api/v1/projects",
        json={"name": "Launch", "due_date": "2025-06-30", "members": [{"user": str(bob.id), "role": "Admin"}]},
        headers=auth(alice),
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _invite(client: TestClient, auth: Auth, sender: User, project_id: str, **overrides: object) -> dict:
    body = {"project_id": project_id, "email": "carol@example.com", **overrides}
    response = client.post("/api/v1/invites", json=body, headers=auth(sender))
    assert response.status_code == 201, response.text
    return response.json()


class TestSendInvite:
    """Tests for POST /invites."""

    def test_created_and_emailed(
        self, client: TestClient, auth: Auth, notifier: MagicMock, project_id: str, alice: User, carol: User
    ) -> None:
        """The invite is Pending and the email carries the link."""
        invite = _invite(client, auth, alice, project_id, role="Member")

        assert invite["status"] == "Pending"
        assert invite["role"] == "Member"
        assert invite["recipient_id"] == str(carol.id)
        recipients, _, _, text = notifier.send.call_args.args
        assert recipients == ["carol@example.com"]
        assert f"http://app.test/project-management/invites/{invite['id']}" in text

    def test_duplicate_conflict(
        self, client: TestClient, auth: Auth, project_id: str, alice: User, bob: User, carol: User
    ) -> None:
        """A second Pending invite conflicts."""
        _invite(client, auth, alice, project_id)

        response = client.post(
            "/api/v1/invites",
            json={"project_id": project_id, "email": "carol@example.com"},
            headers=auth(bob),
        )

        assert response.status_code == 409
        assert response.json() == {"error": "conflict", "message": "User already invited"}

    def test_admin_cannot_offer_admin(
        self, client: TestClient, auth: Auth, project_id: str, bob: User, carol: User
    ) -> None:
        """Only the Owner invites Admins."""
        response = client.post(
            "/api/v1/invites",
            json={"project_id": project_id, "email": "carol@example.com", "role": "Admin"},
            headers=auth(bob),
        )

        assert response.status_code == 403

    def test_unknown_recipient(self, client: TestClient, auth: Auth, project_id: str, alice: User) -> None:
        """Only registered users can be invited."""
        response = client.post(
            "/api/v1/invites",
            json={"project_id": project_id, "email": "ghost@example.com"},
            headers=auth(alice),
        )

        assert response.status_code == 404


class TestReadInvites:
    """Tests for GET /invites and GET /invites/{id}."""

    def test_list_for_recipient(
        self, client: TestClient, auth: Auth, project_id: str, alice: User, carol: User
    ) -> None:
        """Recipients see names alongside the invite."""
        invite = _invite(client, auth, alice, project_id)

        listed = client.get("/api/v1/invites", headers=auth(carol)).json()

        assert listed["total"] == 1
        item = listed["invites"][0]
        assert item["id"] == invite["id"]
        assert item["project_name"] == "Launch"
        assert item["sender_name"] == "Alice Anders"
        assert item["sender_email"] == "alice@example.com"

    def test_public_preview(
        self, client: TestClient, auth: Auth, project_id: str, alice: User, carol: User
    ) -> None:
        """The invite link can be previewed without a token."""
        invite = _invite(client, auth, alice, project_id)

        response = client.get(f"/api/v1/invites/{invite['id']}")

        assert response.status_code == 200
        assert response.json() == {
            "id": invite["id"],
            "project_name": "Launch",
            "role": "Viewer",
            "sender_name": "Alice Anders",
            "recipient_name": "Carol Chen",
            "status": "Pending",
        }

    def test_preview_unknown(self, client: TestClient) -> None:
        """Missing invites are 404."""
        response = client.get(f"/api/v1/invites/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestRespondToInvite:
    """Tests for POST /invites/{id}/respond."""

    def test_accept_joins_project(
        self, client: TestClient, auth: Auth, project_id: str, alice: User, carol: User
    ) -> None:
        """Accepting returns the invite and the updated project."""
        invite = _invite(client, auth, alice, project_id, role="Member")

        response = client.post(
            f"/api/v1/invites/{invite['id']}/respond", json={"action": "accept"}, headers=auth(carol)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["invite"]["status"] == "Accepted"
        assert (str(carol.id), "Member") in [(m["user_id"], m["role"]) for m in body["project"]["members"]]
        assert client.get(f"/api/v1/projects/{project_id}", headers=auth(carol)).status_code == 200

    def test_decline(self, client: TestClient, auth: Auth, project_id: str, alice: User, carol: User) -> None:
        """Declining returns no project."""
        invite = _invite(client, auth, alice, project_id)

        response = client.post(
            f"/api/v1/invites/{invite['id']}/respond", json={"action": "decline"}, headers=auth(carol)
        )

        assert response.status_code == 200
        assert response.json()["invite"]["status"] == "Declined"
        assert response.json()["project"] is None

    def test_second_answer(self, client: TestClient, auth: Auth, project_id: str, alice: User, carol: User) -> None:
        """Answered invites are final."""
        invite = _invite(client, auth, alice, project_id)
        url = f"/api/v1/invites/{invite['id']}/respond"
        client.post(url, json={"action": "decline"}, headers=auth(carol))

        response = client.post(url, json={"action": "accept"}, headers=auth(carol))

        assert response.status_code == 409
        assert response.json() == {"error": "invalid_state", "message": "Invite has already been declined"}

    def test_bad_action(self, client: TestClient, auth: Auth, project_id: str, alice: User, carol: User) -> None:
        """Unknown actions are 400."""
        invite = _invite(client, auth, alice, project_id)

        response = client.post(
            f"/api/v1/invites/{invite['id']}/respond", json={"action": "later"}, headers=auth(carol)
        )

        assert response.status_code == 400

    def test_not_recipient(
        self, client: TestClient, auth: Auth, project_id: str, alice: User, bob: User, carol: User
    ) -> None:
        """Only the recipient may answer."""
        invite = _invite(client, auth, alice, project_id)

        response = client.post(
            f"/api/v1/invites/{invite['id']}/respond", json={"action": "accept"}, headers=auth(bob)
        )

        assert response.status_code == 403
