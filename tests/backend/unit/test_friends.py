"""
Unit tests for services.friends and services.profiles modules.
"""
import pytest
from tortoise.exceptions import OperationalError

from chatconnect.models.document import Document
from chatconnect.services import ErrorCode


pytestmark = pytest.mark.asyncio


class TestProfiles:
    async def test_private_and_public_copies(self, profiles, store):
        result = await profiles.create_profile("u1", "alice", "  Alice@Example.com ")
        assert result.success

        private = await profiles.get_profile("u1")
        assert private.username == "alice"
        assert private.email == "alice@example.com"
        public = await store.get(store.paths.public_profile("u1"))
        assert public.get("username") == "alice"

    async def test_search(self, profiles, make_user):
        alice = await make_user("alice")
        assert (await profiles.find_by_username(" alice ")).user_id == alice
        assert (await profiles.find_by_email("ALICE@example.com")).user_id == alice
        assert await profiles.find_by_username("nobody") is None
        assert await profiles.find_by_email("") is None

    async def test_invalid_and_offline(self, profiles, store):
        assert (await profiles.create_profile("", "alice")).code == ErrorCode.INVALID_ARGUMENT
        store.set_online(False)
        assert (await profiles.create_profile("u1", "alice")).code == ErrorCode.STORE_OFFLINE
        assert await profiles.get_profile("u1") is None


class TestFriendRequests:
    async def test_send_and_list(self, friends, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        result = await friends.send_request(alice, "bob")
        assert result.success
        assert result.message == "Friend request sent to bob."

        incoming = await friends.list_requests(bob)
        assert [(r["userId"], r["username"]) for r in incoming] == [(alice, "alice")]
        assert await friends.list_requests(alice) == []

    async def test_send_failures(self, friends, make_user):
        alice = await make_user("alice")
        assert (await friends.send_request(alice, "")).code == ErrorCode.INVALID_ARGUMENT
        missing = await friends.send_request(alice, "nobody")
        assert missing.code == ErrorCode.NOT_FOUND
        assert missing.message == "No user found with that username."
        assert (await friends.send_request(alice, "alice")).code == ErrorCode.SELF_REQUEST
        assert (await friends.send_request("ghost", "alice")).code == ErrorCode.PROFILE_MISSING

    async def test_accept_makes_both_friends_and_clears_request(self, friends, store, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await friends.send_request(alice, "bob")

        result = await friends.accept_request(bob, alice, "alice")
        assert result.success
        assert result.message == "You are now friends with alice."

        assert [f["userId"] for f in await friends.list_friends(bob)] == [alice]
        assert [f["username"] for f in await friends.list_friends(alice)] == ["bob"]
        assert await friends.list_requests(bob) == []
        assert not (await store.get(store.paths.outgoing_request(alice, bob))).exists

        again = await friends.send_request(alice, "bob")
        assert again.code == ErrorCode.ALREADY_FRIENDS

    async def test_accept_failures(self, friends, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        invalid = await friends.accept_request(bob, alice, "")
        assert invalid.code == ErrorCode.INVALID_ARGUMENT
        assert invalid.message == "Missing senderId or senderUsername."

        missing = await friends.accept_request(bob, alice, "alice")
        assert missing.code == ErrorCode.NOT_FOUND
        assert missing.message == "Friend request not found."
        assert await friends.list_friends(bob) == []

        assert (await friends.accept_request("ghost", alice, "alice")).code == ErrorCode.PROFILE_MISSING

    async def test_decline(self, friends, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await friends.send_request(alice, "bob")

        assert (await friends.decline_request(bob, alice)).success
        assert await friends.list_requests(bob) == []
        assert await friends.list_friends(bob) == []
        assert (await friends.decline_request(bob, alice)).code == ErrorCode.NOT_FOUND

    async def test_offline(self, friends, store, make_user):
        alice = await make_user("alice")
        await make_user("bob")
        store.set_online(False)
        assert (await friends.send_request(alice, "bob")).code == ErrorCode.STORE_OFFLINE

    async def test_lookup_error_is_a_failure_result(self, friends, make_user, monkeypatch):
        alice = await make_user("alice")
        await make_user("bob")

        def locked(*args, **kwargs):
            raise OperationalError("database is locked")

        monkeypatch.setattr(Document, "filter", locked)
        result = await friends.send_request(alice, "bob")
        assert result.success is False
        assert result.code == ErrorCode.STORE_ERROR
