import pytest


pytestmark = pytest.mark.asyncio


async def _pair(client, auth_header_factory):
    alice_headers, alice_id, code = await auth_header_factory("alice")
    bob_headers, bob_id, _ = await auth_header_factory("bob")
    resp = await client.post("/api/v1/rooms/join", json={"code": code}, headers=bob_headers)
    assert resp.json()["success"] is True
    return code, (alice_headers, alice_id), (bob_headers, bob_id)


async def test_send_and_list_messages(client, auth_header_factory):
    code, (alice_headers, alice_id), (bob_headers, _) = await _pair(client, auth_header_factory)

    sent = (await client.post(f"/api/v1/rooms/{code}/messages", json={"text": "hello"},
                              headers=alice_headers)).json()
    assert sent["success"] is True
    assert sent["data"]["item"]["senderId"] == alice_id
    await client.post(f"/api/v1/rooms/{code}/messages", json={"text": "hi!"}, headers=bob_headers)

    resp = await client.get(f"/api/v1/rooms/{code}/messages", headers=bob_headers)
    assert resp.status_code == 200
    items = resp.json()["data"]["items"]
    assert [(m["senderUsername"], m["text"]) for m in items] == [("alice", "hello"), ("bob", "hi!")]

    latest = await client.get(f"/api/v1/rooms/{code}/messages", params={"limit": 1}, headers=bob_headers)
    assert [m["text"] for m in latest.json()["data"]["items"]] == ["hi!"]


async def test_message_errors(client, auth_header_factory):
    code, (alice_headers, _), _ = await _pair(client, auth_header_factory)
    carol_headers, _, _ = await auth_header_factory("carol")

    empty = (await client.post(f"/api/v1/rooms/{code}/messages", json={"text": "   "},
                               headers=alice_headers)).json()
    assert empty["error"]["code"] == "EmptyMessage"

    outsider = (await client.post(f"/api/v1/rooms/{code}/messages", json={"text": "hey"},
                                  headers=carol_headers)).json()
    assert outsider["error"]["code"] == "NotMember"

    hidden = await client.get(f"/api/v1/rooms/{code}/messages", headers=carol_headers)
    assert hidden.status_code == 404
    assert hidden.json()["detail"] == "NOT_FOUND"


async def test_friend_request_flow(client, auth_header_factory):
    alice_headers, alice_id, _ = await auth_header_factory("alice")
    bob_headers, bob_id, _ = await auth_header_factory("bob")

    sent = (await client.post("/api/v1/friends/requests", json={"username": "bob"}, headers=alice_headers)).json()
    assert sent["success"] is True
    assert sent["data"]["message"] == "Friend request sent to bob."

    pending = (await client.get("/api/v1/friends/requests", headers=bob_headers)).json()["data"]["items"]
    assert [r["userId"] for r in pending] == [alice_id]

    accepted = (await client.post(f"/api/v1/friends/requests/{alice_id}/accept",
                                  json={"senderUsername": "alice"}, headers=bob_headers)).json()
    assert accepted["success"] is True
    assert accepted["data"]["message"] == "You are now friends with alice."

    alice_friends = (await client.get("/api/v1/friends", headers=alice_headers)).json()["data"]["items"]
    assert [(f["userId"], f["username"]) for f in alice_friends] == [(bob_id, "bob")]
    assert (await client.get("/api/v1/friends/requests", headers=bob_headers)).json()["data"]["items"] == []


async def test_friend_request_errors(client, auth_header_factory):
    alice_headers, _, _ = await auth_header_factory("alice")
    bob_headers, _, _ = await auth_header_factory("bob")

    self_req = (await client.post("/api/v1/friends/requests", json={"username": "alice"},
                                  headers=alice_headers)).json()
    assert self_req["error"]["code"] == "SelfRequest"

    unknown = (await client.post("/api/v1/friends/requests", json={"username": "nobody"},
                                 headers=alice_headers)).json()
    assert unknown["error"]["message"] == "No user found with that username."

    declined = (await client.delete("/api/v1/friends/requests/someone", headers=bob_headers)).json()
    assert declined["error"]["code"] == "NotFound"


async def test_user_search(client, auth_header_factory):
    headers, _, _ = await auth_header_factory("alice")
    _, bob_id, _ = await auth_header_factory("bob")

    by_name = await client.get("/api/v1/users/search", params={"username": "bob"}, headers=headers)
    assert by_name.status_code == 200
    assert by_name.json()["data"]["userId"] == bob_id

    by_email = await client.get("/api/v1/users/search", params={"email": "BOB@example.com"}, headers=headers)
    assert by_email.json()["data"]["username"] == "bob"

    missing = await client.get("/api/v1/users/search", params={"username": "nobody"}, headers=headers)
    assert missing.status_code == 404

    bad = await client.get("/api/v1/users/search", headers=headers)
    assert bad.status_code == 400
