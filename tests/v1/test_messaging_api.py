# tests/v1/test_messaging_api.py
"""End-to-end tests of the HTTP surface."""

import uuid

from fastapi import status
from jose import jwt

from huddle.core.settings import settings


def _start_conversation(client, auth_headers, user, other) -> dict:
    response = client.post(
        "/api/v1/conversations/", json={"other_user_id": str(other)}, headers=auth_headers(user)
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()


class TestAuthentication:
    def test_missing_token_is_rejected(self, client) -> None:
        response = client.get("/api/v1/conversations/")
        assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}

    def test_malformed_token_is_rejected(self, client) -> None:
        response = client.get(
            "/api/v1/conversations/", headers={"Authorization": "Bearer not.a.valid.jwt"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_wrong_secret_is_rejected(self, client) -> None:
        token = jwt.encode({"sub": str(uuid.uuid4())}, "wrong_secret_key", algorithm=settings.jwt_algorithm)
        response = client.get("/api/v1/conversations/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_subject_must_be_a_uuid(self, client) -> None:
        token = jwt.encode({"sub": "alice"}, settings.secret_key, algorithm=settings.jwt_algorithm)
        response = client.get("/api/v1/conversations/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestDirectMessagingFlow:
    def test_conversation_lifecycle(self, client, auth_headers, gateway, alice, bob) -> None:
        conversation = _start_conversation(client, auth_headers, alice, bob)
        assert conversation["other_user_id"] == str(bob)
        assert client.get("/api/v1/conversations/", headers=auth_headers(bob)).json() == []

        sent = client.post(
            f"/api/v1/conversations/{conversation['id']}/messages",
            json={"content": "Hi Bob"},
            headers=auth_headers(alice),
        )
        assert sent.status_code == status.HTTP_201_CREATED
        message = sent.json()

        listed = client.get("/api/v1/conversations/", headers=auth_headers(bob)).json()
        assert [c["id"] for c in listed] == [conversation["id"]]
        assert listed[0]["unread_count"] == 1
        assert "direct_message_sent" in gateway.names()

        reaction = client.post(
            f"/api/v1/direct-messages/{message['id']}/reactions/toggle",
            json={"emoji": "👍"},
            headers=auth_headers(bob),
        ).json()
        assert reaction["added"] is True
        assert reaction["reactions"] == [{"emoji": "👍", "count": 1, "user_ids": [str(bob)]}]

        read = client.post(f"/api/v1/conversations/{conversation['id']}/read", headers=auth_headers(bob))
        assert read.json() == {"marked": 1}

        page = client.get(
            f"/api/v1/conversations/{conversation['id']}/messages", headers=auth_headers(bob)
        ).json()
        assert page[0]["is_read"] is True
        assert page[0]["reactions"][0]["emoji"] == "👍"

    def test_batch_send_jump_and_mark_read(self, client, auth_headers, alice, bob) -> None:
        conversation = _start_conversation(client, auth_headers, alice, bob)
        url = f"/api/v1/conversations/{conversation['id']}"

        batch = client.post(
            f"{url}/messages/batch",
            json={"messages": [{"content": f"#{i}"} for i in range(5)]},
            headers=auth_headers(alice),
        )
        assert batch.status_code == status.HTTP_201_CREATED
        sent = batch.json()

        around = client.get(
            f"{url}/messages/around/{sent[2]['id']}", params={"count": 3}, headers=auth_headers(bob)
        )
        assert [m["content"] for m in around.json()] == ["#1", "#2", "#3"]

        read = client.post(
            f"{url}/read/messages",
            json={"message_ids": [sent[0]["id"], sent[1]["id"]]},
            headers=auth_headers(bob),
        )
        assert read.json() == {"marked": 2}
        unread = client.get(f"{url}/unread-count", headers=auth_headers(bob))
        assert unread.json() == {"unread_count": 3}

        oversized = client.post(
            f"{url}/messages/batch",
            json={"messages": [{"content": "x"}] * (settings.max_batch_messages + 1)},
            headers=auth_headers(alice),
        )
        assert oversized.status_code == status.HTTP_400_BAD_REQUEST

    def test_error_mapping(self, client, auth_headers, alice, bob, carol) -> None:
        conversation = _start_conversation(client, auth_headers, alice, bob)
        message = client.post(
            f"/api/v1/conversations/{conversation['id']}/messages",
            json={"content": "original"},
            headers=auth_headers(alice),
        ).json()

        empty = client.post(
            f"/api/v1/conversations/{conversation['id']}/messages",
            json={"content": ""},
            headers=auth_headers(alice),
        )
        assert empty.status_code == status.HTTP_400_BAD_REQUEST

        stranger = client.get(f"/api/v1/conversations/{conversation['id']}", headers=auth_headers(carol))
        assert stranger.status_code == status.HTTP_403_FORBIDDEN

        foreign_edit = client.patch(
            f"/api/v1/direct-messages/{message['id']}",
            json={"content": "hijack"},
            headers=auth_headers(bob),
        )
        assert foreign_edit.status_code == status.HTTP_403_FORBIDDEN

        client.post(f"/api/v1/direct-messages/{message['id']}/pin", headers=auth_headers(bob))
        again = client.post(f"/api/v1/direct-messages/{message['id']}/pin", headers=auth_headers(bob))
        assert again.status_code == status.HTTP_409_CONFLICT

        missing = client.patch(
            f"/api/v1/direct-messages/{uuid.uuid4()}",
            json={"content": "x"},
            headers=auth_headers(alice),
        )
        assert missing.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_hides_content(self, client, auth_headers, alice, bob) -> None:
        conversation = _start_conversation(client, auth_headers, alice, bob)
        message = client.post(
            f"/api/v1/conversations/{conversation['id']}/messages",
            json={"content": "secret"},
            headers=auth_headers(alice),
        ).json()

        deleted = client.delete(f"/api/v1/direct-messages/{message['id']}", headers=auth_headers(alice))
        assert deleted.status_code == status.HTTP_204_NO_CONTENT

        page = client.get(
            f"/api/v1/conversations/{conversation['id']}/messages", headers=auth_headers(bob)
        ).json()
        assert page[0]["is_deleted"] is True
        assert page[0]["content"] is None

        favorite = client.post(
            f"/api/v1/direct-messages/{message['id']}/favorite", headers=auth_headers(bob)
        )
        assert favorite.status_code == status.HTTP_409_CONFLICT


class TestChannelFlow:
    def test_channel_lifecycle(self, client, auth_headers, alice, bob) -> None:
        created = client.post(
            "/api/v1/channels/", json={"name": "general", "type": "public"}, headers=auth_headers(alice)
        )
        assert created.status_code == status.HTTP_201_CREATED
        channel_id = created.json()["id"]

        joined = client.post(f"/api/v1/channels/{channel_id}/join", headers=auth_headers(bob))
        assert joined.json()["role"] == "member"

        message = client.post(
            f"/api/v1/channels/{channel_id}/messages",
            json={"content": "Welcome!"},
            headers=auth_headers(alice),
        ).json()

        unread = client.get(f"/api/v1/channels/{channel_id}/unread-count", headers=auth_headers(bob))
        assert unread.json() == {"unread_count": 1}

        receipt = client.post(
            f"/api/v1/channel-messages/{message['id']}/read", headers=auth_headers(bob)
        )
        assert receipt.json() == {"receipt_created": True}

        mine = client.get("/api/v1/channels/", headers=auth_headers(bob)).json()
        assert mine[0]["unread_count"] == 0
        assert mine[0]["role"] == "member"

        hidden = client.post(f"/api/v1/channels/{channel_id}/hide", headers=auth_headers(bob))
        assert hidden.json()["is_hidden"] is True

    def test_transfer_and_archive(self, client, auth_headers, alice, bob) -> None:
        channel_id = client.post(
            "/api/v1/channels/", json={"name": "ops"}, headers=auth_headers(alice)
        ).json()["id"]
        client.post(f"/api/v1/channels/{channel_id}/join", headers=auth_headers(bob))

        leave = client.post(f"/api/v1/channels/{channel_id}/leave", headers=auth_headers(alice))
        assert leave.status_code == status.HTTP_409_CONFLICT

        transferred = client.post(
            f"/api/v1/channels/{channel_id}/transfer-ownership",
            json={"new_owner_id": str(bob)},
            headers=auth_headers(alice),
        )
        assert transferred.status_code == status.HTTP_200_OK

        members = client.get(f"/api/v1/channels/{channel_id}/members", headers=auth_headers(alice)).json()
        assert [(m["user_id"], m["role"]) for m in members] == [(str(bob), "owner"), (str(alice), "admin")]

        archived = client.delete(f"/api/v1/channels/{channel_id}", headers=auth_headers(bob))
        assert archived.json()["is_archived"] is True

    def test_missing_channel_is_404(self, client, auth_headers, alice) -> None:
        response = client.get(f"/api/v1/channels/{uuid.uuid4()}", headers=auth_headers(alice))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_channel_jump_and_mark_read(self, client, auth_headers, alice, bob) -> None:
        channel_id = client.post(
            "/api/v1/channels/", json={"name": "dev"}, headers=auth_headers(alice)
        ).json()["id"]
        client.post(f"/api/v1/channels/{channel_id}/join", headers=auth_headers(bob))
        sent = [
            client.post(
                f"/api/v1/channels/{channel_id}/messages",
                json={"content": f"#{i}"},
                headers=auth_headers(alice),
            ).json()
            for i in range(3)
        ]

        around = client.get(
            f"/api/v1/channels/{channel_id}/messages/around/{sent[1]['id']}", headers=auth_headers(bob)
        )
        assert [m["content"] for m in around.json()] == ["#0", "#1", "#2"]

        read = client.post(
            f"/api/v1/channels/{channel_id}/read/messages",
            json={"message_ids": [m["id"] for m in sent]},
            headers=auth_headers(bob),
        )
        assert read.json() == {"marked": 3}

        missing = client.get(
            f"/api/v1/channels/{channel_id}/messages/around/{uuid.uuid4()}", headers=auth_headers(bob)
        )
        assert missing.status_code == status.HTTP_404_NOT_FOUND
