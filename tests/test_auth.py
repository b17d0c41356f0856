import pytest

from posts_client.auth import AuthenticationError, AuthManager, StaticCredentialVerifier
from posts_client.models import AuthState, MessageKind


class TestStaticCredentialVerifier:
    @pytest.mark.asyncio
    async def test_accepts_known_pair(self):
        verifier = StaticCredentialVerifier({"admin": "admin"}, delay_seconds=0)

        assert await verifier.verify("admin", "admin") == "simulated_jwt_for_admin"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username, password", [("admin", "wrong"), ("guest", "admin")])
    async def test_rejects_unknown_pair(self, username, password):
        verifier = StaticCredentialVerifier({"admin": "admin"}, delay_seconds=0)

        with pytest.raises(AuthenticationError, match="Incorrect username or password."):
            await verifier.verify(username, password)


class TestAuthManager:
    @pytest.mark.asyncio
    async def test_login_creates_session(self, auth_manager):
        state = await auth_manager.login("admin", "admin")

        assert state == AuthState(is_signed_in=True, username="admin")
        assert auth_manager.is_authenticated
        assert auth_manager.current_token() == "simulated_jwt_for_admin"

    @pytest.mark.asyncio
    async def test_failed_login_keeps_logged_out(self, auth_manager):
        state = await auth_manager.login("admin", "nope")

        assert state == AuthState(is_signed_in=False)
        assert auth_manager.current_token() is None
        message = auth_manager.take_message()
        assert message.kind == MessageKind.ERROR
        assert message.text == "Incorrect username or password."

    @pytest.mark.asyncio
    async def test_messages_are_taken_once(self, auth_manager):
        await auth_manager.login("admin", "admin")

        first = auth_manager.take_message()

        assert first.text == "Login successful for user: admin"
        assert auth_manager.take_message() is None

    @pytest.mark.asyncio
    async def test_logout_destroys_session(self, auth_manager):
        await auth_manager.login("admin", "admin")
        auth_manager.take_message()

        auth_manager.logout()

        assert auth_manager.current_token() is None
        assert auth_manager.get_auth_state() == AuthState(is_signed_in=False)
        assert auth_manager.take_message().text == "Logout successful!"

    @pytest.mark.asyncio
    async def test_listeners_receive_each_transition(self, auth_manager):
        seen = []
        unsubscribe = auth_manager.subscribe(seen.append)

        await auth_manager.login("admin", "admin")
        auth_manager.logout()
        unsubscribe()
        await auth_manager.login("admin", "admin")

        assert seen == [AuthState(True, "admin"), AuthState(False)]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, auth_manager):
        seen = []

        def broken(_state):
            raise ValueError("boom")

        auth_manager.subscribe(broken)
        auth_manager.subscribe(seen.append)

        await auth_manager.login("admin", "admin")

        assert seen == [AuthState(True, "admin")]

    @pytest.mark.asyncio
    async def test_accepts_custom_verifier(self):
        class TokenEchoVerifier:
            async def verify(self, username, password):
                return f"{username}:{password}"

        manager = AuthManager(TokenEchoVerifier())

        await manager.login("carol", "secret")

        assert manager.current_token() == "carol:secret"
