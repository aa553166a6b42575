"""Tests for the MongoDB filters behind message queries."""

from uuid import uuid4

from schoolportal.core.modules.message.models import MessageFilter, MessagePriority
from schoolportal.core.modules.message.store import build_list_filter, unread_recipient_filter, visibility_filter


class TestUnreadRecipientFilter:
    def test_excludes_read_and_deleted_entries(self):
        """Test that only the user's own entry that is unread and not deleted matches."""
        user_id = uuid4()
        assert unread_recipient_filter(user_id) == {
            "recipients": {"$elemMatch": {"user_id": user_id, "read_at": None, "deleted_at": None}}
        }


class TestBuildListFilter:
    def test_default_is_visibility(self):
        user_id = uuid4()
        assert build_list_filter(user_id, MessageFilter()) == visibility_filter(user_id)

    def test_unread_only_uses_unread_recipient_match(self):
        user_id = uuid4()
        mongo_filter = build_list_filter(user_id, MessageFilter(unread_only=True, priority=MessagePriority.HIGH))
        assert mongo_filter["recipients"] == unread_recipient_filter(user_id)["recipients"]
        assert mongo_filter["priority"] == MessagePriority.HIGH
