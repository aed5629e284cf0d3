"""Tests for message history, read receipts and deletion."""

from fastapi import status

from conftest import headers_for, token_for


def test_conversation_in_both_directions_ordered(
    client, storage, test_user, other_user, third_user, auth_token
) -> None:
    first = storage.create_direct_message(test_user.id, other_user.id, "ready?")
    second = storage.create_direct_message(other_user.id, test_user.id, "yes")
    storage.create_direct_message(test_user.id, third_user.id, "unrelated")

    response = client.get(f"/api/v1/messages/{test_user.id}/{other_user.id}", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [m["id"] for m in body] == [first.id, second.id]
    assert body[0]["fromUserId"] == test_user.id
    assert body[0]["contentType"] == "text"
    assert body[1]["isRead"] is False


def test_conversation_forbidden_for_third_party(
    client, test_user, other_user, third_user
) -> None:
    response = client.get(
        f"/api/v1/messages/{test_user.id}/{other_user.id}", headers=headers_for(third_user)
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_mark_read_by_recipient(client, storage, test_user, other_user, other_auth_token) -> None:
    message = storage.create_direct_message(test_user.id, other_user.id, "seen?")

    response = client.put(f"/api/v1/messages/{message.id}/read", headers=other_auth_token)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["isRead"] is True
    assert body["readAt"] is not None


def test_mark_read_pushes_receipt_to_online_sender(
    client, storage, test_user, other_user, other_auth_token
) -> None:
    message = storage.create_direct_message(test_user.id, other_user.id, "seen?")

    with client.websocket_connect(f"/ws?token={token_for(test_user)}") as sender:
        client.put(f"/api/v1/messages/{message.id}/read", headers=other_auth_token)
        receipt = sender.receive_json()

    assert receipt["type"] == "read"
    assert receipt["id"] == message.id
    assert receipt["toUserId"] == other_user.id


def test_mark_read_by_sender_is_not_found(client, storage, test_user, other_user, auth_token) -> None:
    message = storage.create_direct_message(test_user.id, other_user.id, "mine")

    response = client.put(f"/api/v1/messages/{message.id}/read", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_own_message(client, storage, test_user, other_user, auth_token) -> None:
    message = storage.create_direct_message(test_user.id, other_user.id, "oops")

    response = client.delete(f"/api/v1/messages/{message.id}", headers=auth_token)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert storage.get_message(message.id) is None


def test_delete_someone_elses_message(client, storage, test_user, other_user, other_auth_token) -> None:
    message = storage.create_direct_message(test_user.id, other_user.id, "keep")

    response = client.delete(f"/api/v1/messages/{message.id}", headers=other_auth_token)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"message": "Only the sender can delete this message"}
