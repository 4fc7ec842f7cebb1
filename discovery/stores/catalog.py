"""
Content repository abstraction.

Supplies raw content, user accounts, and the follow graph to the engine.
The catalog is owned by the surrounding application; the engine only reads it.
Implementations: in-memory (tests, embedding callers), JSON file (local service).
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple, Union

from ..models.catalog import (
    CandidateFilter,
    CandidateKind,
    CandidateOrder,
    ContentItem,
    UserAccount,
    Visibility,
)

logger = logging.getLogger(__name__)

Candidate = Union[ContentItem, UserAccount]


class ContentRepository(Protocol):
    """Protocol for catalog access. Implement for in-memory, JSON, or the application's database."""

    def get_content(self, content_id: str) -> Optional[ContentItem]:
        ...

    def get_user(self, user_id: str) -> Optional[UserAccount]:
        ...

    def get_following(self, user_id: str) -> Set[str]:
        """Ids the user follows."""
        ...

    def get_followers(self, user_id: str) -> Set[str]:
        """Ids following the user."""
        ...

    def list_candidates(
        self,
        candidate_filter: CandidateFilter,
        limit: int,
        offset: int = 0,
    ) -> List[Candidate]:
        """
        Visibility/type-filtered raw content or users.
        Content is newest first; users follow candidate_filter.order.
        """
        ...


class InMemoryContentRepository:
    """
    Repository backed by plain lists (accepts models or dicts).
    Used for tests and for callers that already hold their catalog in memory.
    """

    def __init__(
        self,
        contents: Iterable[Union[ContentItem, Dict]] = (),
        users: Iterable[Union[UserAccount, Dict]] = (),
        follows: Iterable[Tuple[str, str]] = (),
    ):
        self._contents: Dict[str, ContentItem] = {}
        self._users: Dict[str, UserAccount] = {}
        self._following: Dict[str, Set[str]] = {}
        self._followers: Dict[str, Set[str]] = {}
        for c in contents:
            self.add_content(c)
        for u in users:
            self.add_user(u)
        for follower_id, followee_id in follows:
            self.add_follow(follower_id, followee_id)

    def add_content(self, content: Union[ContentItem, Dict]) -> ContentItem:
        item = ContentItem.model_validate(content) if isinstance(content, dict) else content
        self._contents[item.id] = item
        return item

    def add_user(self, user: Union[UserAccount, Dict]) -> UserAccount:
        account = UserAccount.model_validate(user) if isinstance(user, dict) else user
        self._users[account.id] = account
        return account

    def add_follow(self, follower_id: str, followee_id: str) -> None:
        self._following.setdefault(follower_id, set()).add(followee_id)
        self._followers.setdefault(followee_id, set()).add(follower_id)

    def get_content(self, content_id: str) -> Optional[ContentItem]:
        return self._contents.get(content_id)

    def get_user(self, user_id: str) -> Optional[UserAccount]:
        return self._users.get(user_id)

    def get_following(self, user_id: str) -> Set[str]:
        return set(self._following.get(user_id, ()))

    def get_followers(self, user_id: str) -> Set[str]:
        return set(self._followers.get(user_id, ()))

    def list_candidates(
        self,
        candidate_filter: CandidateFilter,
        limit: int,
        offset: int = 0,
    ) -> List[Candidate]:
        if candidate_filter.kind == CandidateKind.CONTENT:
            matches: List[Candidate] = self._matching_content(candidate_filter)
        else:
            matches = self._matching_users(candidate_filter)
        return matches[offset:offset + limit]

    def _matching_content(self, f: CandidateFilter) -> List[ContentItem]:
        items = [
            c for c in self._contents.values()
            if c.visibility == Visibility.PUBLIC
            and (f.content_class is None or c.content_class == f.content_class)
            and c.id not in f.exclude_ids
            and c.creator_id not in f.exclude_creator_ids
        ]
        items.sort(key=lambda c: (c.created_at, c.id), reverse=True)
        return items

    def _matching_users(self, f: CandidateFilter) -> List[UserAccount]:
        users = [
            u for u in self._users.values()
            if u.is_active
            and u.id not in f.exclude_ids
            and (f.joined_after is None or u.created_at >= f.joined_after)
        ]
        if f.order == CandidateOrder.POPULAR:
            users.sort(key=lambda u: (-u.follower_count, u.id))
        else:
            users.sort(key=lambda u: (u.created_at, u.id), reverse=True)
        return users


class JsonContentRepository(InMemoryContentRepository):
    """
    Repository loaded from one JSON file:
    {"contents": [...], "users": [...], "follows": [["follower", "followee"], ...]}
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        follows = [tuple(pair) for pair in data.get("follows", [])]
        super().__init__(
            contents=data.get("contents", []),
            users=data.get("users", []),
            follows=follows,
        )
        logger.info(
            "[catalog] Loaded %d contents, %d users, %d follows from %s",
            len(self._contents), len(self._users), len(follows), self.path,
        )
