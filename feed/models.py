"""
feed/models.py -- Domain dataclass for posts.

Pure data container. The ownership rule (only creator_id may update or
delete) lives in feed/service.py, enforced through auth/guards.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Post:
    """A published post owned by the user in creator_id.

    id is None before the record is written to the database.
    created_at / updated_at are ISO 8601 strings set by the store.
    """

    title: str
    content: str
    creator_id: int
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
