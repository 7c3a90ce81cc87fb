from datetime import datetime
from uuid import UUID

from pydantic import Field

from solnews.core.db import MongoModel
from solnews.utils import now


class Like(MongoModel):
    """A user's like on a comment.

    Indexed on (user_id, comment_id) - unique, comment_id.
    Never updated in place: toggling inserts or deletes the document.
    """

    user_id: UUID
    comment_id: UUID
    created_at: datetime = Field(default_factory=now)
