import pytest

from newsnow.exceptions import UserNotFoundError


class TestUserStore:

    @pytest.mark.asyncio
    async def test_add_and_get_user(self, user_store, clock):
        clock.now = 1000
        await user_store.add_user("42", "dev@example.com", "github")

        user = await user_store.get_user("42")

        assert user.email == "dev@example.com"
        assert user.type == "github"
        assert user.data == ""
        assert user.created == 1000
        assert user.updated == 1000

    @pytest.mark.asyncio
    async def test_get_missing_user(self, user_store):
        assert await user_store.get_user("nobody") is None

    @pytest.mark.asyncio
    async def test_repeat_login_updates_email_and_keeps_data(self, user_store, clock):
        clock.now = 1000
        await user_store.add_user("42", "old@example.com", "github")
        await user_store.set_data("42", '{"columns": ["hn"]}')

        clock.now = 5000
        await user_store.add_user("42", "new@example.com", "github")

        user = await user_store.get_user("42")
        assert user.email == "new@example.com"
        assert user.data == '{"columns": ["hn"]}'
        assert user.created == 1000
        assert user.updated == 5000

    @pytest.mark.asyncio
    async def test_set_and_get_data(self, user_store, clock):
        await user_store.add_user("42", "dev@example.com", "github")

        await user_store.set_data("42", "payload", updated=7777)

        assert await user_store.get_data("42") == {"data": "payload", "updated": 7777}

    @pytest.mark.asyncio
    async def test_get_data_for_missing_user_raises(self, user_store):
        with pytest.raises(UserNotFoundError):
            await user_store.get_data("nobody")

    @pytest.mark.asyncio
    async def test_delete_user(self, user_store):
        await user_store.add_user("42", "dev@example.com", "github")

        await user_store.delete_user("42")
        await user_store.delete_user("42")

        assert await user_store.get_user("42") is None
