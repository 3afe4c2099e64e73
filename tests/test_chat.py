import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect, WebSocketState

from carwash.models import Message
from carwash.security_utils import create_access_token
from carwash.services.connection_registry import ConnectionRegistry

from .conftest import auth_headers


def send(client, sender, receiver, content):
    return client.post(
        "/chat/send",
        json={"receiverId": receiver.id, "content": content},
        headers=auth_headers(sender),
    )


def socket_url(user):
    return f"/ws?token={create_access_token(user.id, user.role)}"


# ============================================================================
# REST
# ============================================================================


def test_send_message(client, client_user, washer_user):
    response = send(client, client_user, washer_user, "  On my way down  ")

    assert response.status_code == 201
    body = response.json()
    assert body["content"] == "On my way down"
    assert body["senderId"] == client_user.id
    assert body["receiverId"] == washer_user.id
    assert body["isRead"] is False


@pytest.mark.parametrize("content", ["", "   "])
def test_empty_message_rejected(client, client_user, washer_user, content):
    assert send(client, client_user, washer_user, content).status_code == 400


def test_cannot_message_yourself(client, client_user):
    assert send(client, client_user, client_user, "hello me").status_code == 400


def test_message_unknown_user(client, client_user):
    response = client.post(
        "/chat/send",
        json={"receiverId": "usr_missing", "content": "hello"},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 404


def test_history_marks_incoming_read(client, db, client_user, washer_user):
    send(client, washer_user, client_user, "Arriving in 5")
    send(client, washer_user, client_user, "Parked outside")
    send(client, client_user, washer_user, "Coming")

    unread = client.get("/chat/unread-count", headers=auth_headers(client_user))
    history = client.get(f"/chat/{washer_user.id}", headers=auth_headers(client_user))

    assert unread.json() == {"unreadCount": 2}
    assert len(history.json()) == 3
    after = client.get("/chat/unread-count", headers=auth_headers(client_user))
    assert after.json() == {"unreadCount": 0}
    db.expire_all()
    outgoing = db.query(Message).filter(Message.sender_id == client_user.id).one()
    assert outgoing.is_read is False


def test_history_limit(client, client_user, washer_user):
    for n in range(4):
        send(client, washer_user, client_user, f"msg {n}")

    response = client.get(f"/chat/{washer_user.id}?limit=2", headers=auth_headers(client_user))

    assert len(response.json()) == 2


def test_conversations(client, factory, client_user, washer_user):
    other_washer = factory.washer(name="Second Washer")
    send(client, washer_user, client_user, "Hi from Wally")
    send(client, other_washer, client_user, "Hi from the second washer")
    send(client, other_washer, client_user, "Still there?")

    response = client.get("/chat/conversations", headers=auth_headers(client_user))

    conversations = {c["user"]["id"]: c for c in response.json()}
    assert set(conversations) == {washer_user.id, other_washer.id}
    assert conversations[washer_user.id]["unreadCount"] == 1
    assert conversations[other_washer.id]["unreadCount"] == 2
    assert conversations[washer_user.id]["user"]["name"] == "Wally Washer"
    assert conversations[washer_user.id]["lastMessage"]["content"] == "Hi from Wally"


def test_chat_requires_auth(client):
    assert client.get("/chat/conversations").status_code == 401


# ============================================================================
# WEBSOCKET
# ============================================================================


def test_socket_ping(client, client_user):
    with client.websocket_connect(socket_url(client_user)) as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_socket_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?token=not-a-jwt") as ws:
            ws.receive_json()

    assert exc_info.value.code == 1008


def test_socket_rejects_missing_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

    assert exc_info.value.code == 1008


def test_socket_send_message_echoes_to_sender(client, db, client_user, washer_user):
    with client.websocket_connect(socket_url(client_user)) as ws:
        ws.send_json({"type": "send-message", "receiverId": washer_user.id, "content": "Gate is open"})
        event = ws.receive_json()

    assert event["type"] == "new-message"
    assert event["data"]["content"] == "Gate is open"
    assert event["data"]["receiverId"] == washer_user.id
    db.expire_all()
    assert db.query(Message).filter(Message.receiver_id == washer_user.id).count() == 1


def test_socket_send_message_errors(client, client_user):
    with client.websocket_connect(socket_url(client_user)) as ws:
        ws.send_json({"type": "send-message", "receiverId": "usr_missing", "content": "hi"})
        not_found = ws.receive_json()
        ws.send_json({"type": "send-message", "receiverId": "usr_missing", "content": " "})
        empty = ws.receive_json()

    assert not_found["type"] == "error"
    assert not_found["code"] == "NOT_FOUND"
    assert empty["code"] == "VALIDATION_ERROR"


def test_socket_unknown_event_and_bad_json(client, client_user):
    with client.websocket_connect(socket_url(client_user)) as ws:
        ws.send_json({"type": "dance"})
        unknown = ws.receive_json()
        ws.send_text("{not json")
        bad_json = ws.receive_json()
        ws.send_json({"type": "ping"})
        still_alive = ws.receive_json()

    assert unknown["type"] == "error"
    assert bad_json["type"] == "error"
    assert still_alive == {"type": "pong"}


def test_socket_unregisters_on_close(client, client_user):
    with client.websocket_connect(socket_url(client_user)) as ws:
        ws.send_json({"type": "ping"})
        ws.receive_json()
        assert client.app.state.connections.is_connected(client_user.id)

    assert not client.app.state.connections.is_connected(client_user.id)


def test_socket_stops_deactivated_user(client, db, client_user, washer_user):
    with client.websocket_connect(socket_url(client_user)) as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

        client_user.is_active = False
        db.commit()

        ws.send_json({"type": "send-message", "receiverId": washer_user.id, "content": "still here?"})
        event = ws.receive_json()

        assert event["type"] == "error"
        assert event["code"] == "NOT_AUTHENTICATED"
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()

    db.expire_all()
    assert db.query(Message).count() == 0


# ============================================================================
# REGISTRY
# ============================================================================


class FakeSocket:
    def __init__(self, broken=False):
        self.client_state = WebSocketState.CONNECTED
        self.sent = []
        self.broken = broken

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(data)


def test_registry_delivers_to_every_socket_of_a_user():
    registry = ConnectionRegistry()
    phone, laptop, other = FakeSocket(), FakeSocket(), FakeSocket()
    registry.register("usr_a", phone)
    registry.register("usr_a", laptop)
    registry.register("usr_b", other)

    delivered = asyncio.run(registry.send("usr_a", {"type": "pong"}))

    assert delivered == 2
    assert phone.sent == laptop.sent == [{"type": "pong"}]
    assert other.sent == []


def test_registry_drops_dead_sockets():
    registry = ConnectionRegistry()
    alive, dead = FakeSocket(), FakeSocket(broken=True)
    registry.register("usr_a", alive)
    registry.register("usr_a", dead)

    delivered = asyncio.run(registry.send("usr_a", {"type": "pong"}))

    assert delivered == 1
    assert asyncio.run(registry.send("usr_a", {"type": "pong"})) == 1
    assert alive.sent == [{"type": "pong"}, {"type": "pong"}]


def test_registry_ignores_offline_users():
    registry = ConnectionRegistry()

    assert asyncio.run(registry.send("usr_nobody", {"type": "pong"})) == 0
    registry.publish("usr_nobody", {"type": "pong"})
    assert registry.connected_users() == []
