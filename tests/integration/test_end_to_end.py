"""
End-to-end scenarios over a persisted workbook.

These run the full stack: schema document -> Registry -> JSON file store,
then reopen the workbook to check what actually reached disk.
"""

import pytest

from sheetdb.auth import issue_token, validate_access_token
from sheetdb.config import Settings
from sheetdb.credentials import hash_value
from sheetdb.errors import IntegrityError
from sheetdb.registry import open_registry

from tests.schemas import make_orders, make_users

SECRET = "integration-secret-key-long-enough-for-hs256"


@pytest.fixture
def settings(tmp_path):
    return Settings(store_path=str(tmp_path / "shop.json"), secret_key=SECRET)


def reopen(settings, deletion="cascade"):
    return open_registry([make_users(deletion=deletion), make_orders()], settings)


class TestShopScenario:
    """Users own Orders; removing a user cascades to their orders."""

    def test_insert_relate_and_cascade(self, settings):
        db = reopen(settings)
        user = db.Users.insert({"email": "a@x.com"})
        db.Orders.insert({"userId": user["id"], "total": "10"})

        users = db.Users.all(1)
        assert len(users[0]["orders"]) == 1
        assert users[0]["orders"][0]["total"] == 10
        assert db.Orders.all(1)[0]["user"]["email"] == "a@x.com"

        result = db.Users.remove(user["id"])

        assert len(result.ids("Orders")) == 1
        assert db.Orders.all(0) == []

        reopened = reopen(settings)
        assert reopened.Users.all() == []
        assert reopened.Orders.all() == []

    def test_state_survives_reopen(self, settings):
        db = reopen(settings)
        alice = db.Users.insert({"email": "alice@x.com", "passwordHash": "pw"}, hash_fields=["passwordHash"])
        bob = db.Users.insert({"email": "bob@x.com"})
        db.Orders.insert({"userId": bob["id"], "total": 7.5})
        db.Users.remove(alice["id"])

        reopened = reopen(settings)

        assert [u["email"] for u in reopened.Users.all()] == ["bob@x.com"]
        assert reopened.Users.find_by_id(bob["id"], 1)["orders"][0]["total"] == 7.5
        assert reopened.Users.index == {bob["id"]: 2}
        assert reopened.Users.find_by_id(alice["id"]) is None
        assert hash_value("pw") not in str(reopened.Users.table.read_all())

    def test_restrict_on_reopened_workbook(self, settings):
        db = reopen(settings)
        user = db.Users.insert({"email": "a@x.com"})
        db.Orders.insert({"userId": user["id"], "total": 1})

        strict = reopen(settings, deletion="restrict")
        with pytest.raises(IntegrityError):
            strict.Users.remove(user["id"])

        assert reopen(settings).Orders.count() == 1


class TestLoginScenario:
    """Issue a token, store it on the user and authenticate with it."""

    def test_token_login(self, settings):
        db = reopen(settings)
        user = db.Users.insert({"email": "a@x.com", "passwordHash": "pw"}, hash_fields=["passwordHash"])
        token = issue_token(user["id"], settings.secret_key, ttl_seconds=settings.token_ttl_seconds)
        db.Users.update(user["id"], {**user, "token": token})

        found = validate_access_token(token, settings.secret_key, reopen(settings))

        assert found["email"] == "a@x.com"
        assert found["passwordHash"] == hash_value("pw")
        assert found["orders"] == []
