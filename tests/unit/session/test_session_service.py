"""Tests for session creation, validation and destruction."""

from datetime import timedelta

import pytest

from schoolportal.core.modules.session.models import AuthToken, Session
from schoolportal.core.modules.user.models import UserType
from schoolportal.errors import AuthenticationError
from schoolportal.utils import now

pytestmark = pytest.mark.anyio


class TestCreateSession:
    """Tests for SessionService.create_session."""

    async def test_session_carries_user_identity(self, core, users):
        """Test that the session copies id, role and username from the user."""
        teacher = users["teacher"]
        session = await core.services.session.create_session(teacher, "10.0.0.1", "pytest")

        assert session.user_id == teacher.id
        assert session.user_type == UserType.TEACHER
        assert session.username == "teacher"
        assert session.expires_at - session.created_at == timedelta(hours=24)

    async def test_tokens_are_unique_and_opaque(self, core, users):
        """Test that each login gets a fresh token that does not embed the user id."""
        first = await core.services.session.create_session(users["student"])
        second = await core.services.session.create_session(users["student"])

        assert first.token != second.token
        assert str(users["student"].id) not in first.token

    async def test_login_is_audited(self, core, stores, users):
        """Test that creating a session writes a LOGIN audit entry."""
        await core.services.session.create_session(users["parent"], "10.0.0.2", "pytest")
        entry = stores.audit.entries[-1]
        assert entry.action == "LOGIN"
        assert entry.ip_address == "10.0.0.2"


class TestValidateSession:
    """Tests for SessionService.validate_session."""

    async def test_valid_token_returns_identity(self, core, users):
        """Scenario: a teacher's token resolves to the teacher's identity."""
        session = await core.services.session.create_session(users["teacher"])
        data = await core.services.session.validate_session(AuthToken(session.token))

        assert data is not None
        assert data.user_id == users["teacher"].id
        assert data.user_type == UserType.TEACHER
        assert data.session_id == session.id

    @pytest.mark.parametrize("token", [None, ""])
    async def test_absent_token_returns_none(self, core, token):
        """Test that a missing token is 'no session', not an error."""
        assert await core.services.session.validate_session(token) is None

    async def test_unknown_token_returns_none(self, core):
        """Test that a token never issued is 'no session'."""
        assert await core.services.session.validate_session(AuthToken("tok-1")) is None

    async def test_expired_session_returns_none(self, core, stores, users):
        """Test that sessions past expires_at are not valid."""
        user = users["student"]
        created = now() - timedelta(days=2)
        stores.sessions.sessions["old"] = Session(
            token="old",
            user_id=user.id,
            user_type=user.user_type,
            username=user.username,
            created_at=created,
            expires_at=created + timedelta(hours=24),
        )
        assert await core.services.session.validate_session(AuthToken("old")) is None

    async def test_session_of_removed_user_returns_none(self, core, stores, users):
        """Test that a session whose user no longer exists is not valid."""
        session = await core.services.session.create_session(users["student2"])
        del stores.users.users[users["student2"].id]
        await core.services.user.update_all_users_cache()

        assert await core.services.session.validate_session(AuthToken(session.token)) is None

    async def test_validation_is_read_only(self, core, stores, users):
        """Test that validating does not write to the session or audit stores."""
        session = await core.services.session.create_session(users["teacher"])
        before_sessions = dict(stores.sessions.sessions)
        before_audit = len(stores.audit.entries)

        await core.services.session.validate_session(AuthToken(session.token))

        assert stores.sessions.sessions == before_sessions
        assert len(stores.audit.entries) == before_audit


class TestDestroySession:
    """Tests for SessionService.destroy_session."""

    async def test_validate_after_destroy_returns_none(self, core, users):
        """Test that a destroyed session no longer validates."""
        session = await core.services.session.create_session(users["admin"])
        token = AuthToken(session.token)

        await core.services.session.destroy_session(token)

        assert await core.services.session.validate_session(token) is None

    async def test_destroy_twice_is_noop(self, core, stores, users):
        """Scenario: the second destroy succeeds without another LOGOUT entry."""
        session = await core.services.session.create_session(users["admin"])
        token = AuthToken(session.token)

        await core.services.session.destroy_session(token)
        await core.services.session.destroy_session(token)

        assert stores.audit.actions().count("LOGOUT") == 1

    @pytest.mark.parametrize("token", [None, "", "never-issued"])
    async def test_destroy_absent_session_is_noop(self, core, stores, token):
        """Test that destroying nothing is not an error and is not audited."""
        await core.services.session.destroy_session(token)
        assert "LOGOUT" not in stores.audit.actions()

    async def test_destroy_leaves_other_sessions(self, core, users):
        """Test that logout only ends the given session."""
        first = await core.services.session.create_session(users["teacher"])
        second = await core.services.session.create_session(users["teacher"])

        await core.services.session.destroy_session(AuthToken(first.token))

        assert await core.services.session.validate_session(AuthToken(second.token)) is not None


class TestAuthenticate:
    """Tests for SessionService.authenticate."""

    async def test_correct_credentials_open_session(self, core, password):
        """Test that valid credentials return the user and a session."""
        user, session = await core.services.session.authenticate("student", password)
        assert user.username == "student"
        assert session.user_type == UserType.STUDENT

    async def test_wrong_password_rejected(self, core):
        """Test that a wrong password raises AuthenticationError."""
        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            await core.services.session.authenticate("student", "not-the-password")

    async def test_unknown_user_rejected(self, core, password):
        """Test that an unknown username raises AuthenticationError."""
        with pytest.raises(AuthenticationError):
            await core.services.session.authenticate("nobody", password)

    async def test_role_mismatch_rejected_and_audited(self, core, stores, password):
        """Test that logging in through another role's form fails with LOGIN_FAILED."""
        with pytest.raises(AuthenticationError):
            await core.services.session.authenticate("student", password, expected_user_type=UserType.TEACHER)

        assert stores.audit.actions()[-1] == "LOGIN_FAILED"
        assert stores.sessions.sessions == {}


class TestTerminateSessions:
    """Tests for listing and terminating a user's sessions."""

    async def test_terminate_all_keeps_current(self, core, users):
        """Test that terminate_all ends every other session of the user only."""
        sessions = [await core.services.session.create_session(users["teacher"]) for _ in range(3)]
        other_user = await core.services.session.create_session(users["student"])
        current = await core.services.session.validate_session(AuthToken(sessions[0].token))

        count = await core.services.session.terminate_sessions(current, terminate_all=True)

        assert count == 2
        active = await core.services.session.list_active_sessions(users["teacher"].id)
        assert [s.id for s in active] == [sessions[0].id]
        assert await core.services.session.validate_session(AuthToken(other_user.token)) is not None

    async def test_terminate_selected_never_ends_current(self, core, users):
        """Test that the current session survives even when listed."""
        first = await core.services.session.create_session(users["parent"])
        second = await core.services.session.create_session(users["parent"])
        current = await core.services.session.validate_session(AuthToken(first.token))

        count = await core.services.session.terminate_sessions(current, session_ids=[first.id, second.id])

        assert count == 1
        assert await core.services.session.validate_session(AuthToken(first.token)) is not None
        assert await core.services.session.validate_session(AuthToken(second.token)) is None

    async def test_nothing_requested_terminates_nothing(self, core, users):
        first = await core.services.session.create_session(users["parent"])
        await core.services.session.create_session(users["parent"])
        current = await core.services.session.validate_session(AuthToken(first.token))

        assert await core.services.session.terminate_sessions(current) == 0
        assert len(await core.services.session.list_active_sessions(users["parent"].id)) == 2

    async def test_terminate_all_for_user_includes_every_session(self, core, users):
        """Test that ending all sessions of a user keeps no session, and leaves others alone."""
        own = [await core.services.session.create_session(users["student"]) for _ in range(2)]
        other = await core.services.session.create_session(users["student2"])

        assert await core.services.session.terminate_all_for_user(users["student"].id) == 2

        for session in own:
            assert await core.services.session.validate_session(AuthToken(session.token)) is None
        assert await core.services.session.validate_session(AuthToken(other.token)) is not None
