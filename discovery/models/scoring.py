"""
Scoring models — scored candidates, people signals, and the ranked output types.

Contains:
- PeopleSignals: graph/engagement evidence gathered by people source strategies
- ScoredContent / ScoredProfile: candidates with composite score and breakdown
- RankedItem / RankedProfile: the page returned to callers
- RecordResult: per-step outcome of recording one interaction
"""

from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from .catalog import ContentItem, UserAccount
from .interaction import ContentClass


class PeopleSignals(BaseModel):
    """Evidence for suggesting one account; merged across source strategies."""

    user_id: str
    mutual_connections: int = 0
    second_degree_paths: int = 0
    follows_viewer: bool = False
    co_engagement: int = 0
    engaged_with_viewer: bool = False
    sources: Set[str] = Field(default_factory=set)

    def merge(self, other: "PeopleSignals") -> None:
        """Fold another strategy's evidence for the same account into this one."""
        self.mutual_connections = max(self.mutual_connections, other.mutual_connections)
        self.second_degree_paths = max(self.second_degree_paths, other.second_degree_paths)
        self.follows_viewer = self.follows_viewer or other.follows_viewer
        self.co_engagement = max(self.co_engagement, other.co_engagement)
        self.engaged_with_viewer = self.engaged_with_viewer or other.engaged_with_viewer
        self.sources |= other.sources


class ScoredContent(BaseModel):
    """A content candidate with its composite score and per-signal breakdown."""

    item: ContentItem
    score: float
    breakdown: Dict[str, float] = Field(default_factory=dict)

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def creator_id(self) -> str:
        return self.item.creator_id

    @property
    def bucket(self) -> Optional[int]:
        return None


class ScoredProfile(BaseModel):
    """A people-suggestion candidate with its tiered score."""

    user: UserAccount
    signals: PeopleSignals
    score: float
    breakdown: Dict[str, float] = Field(default_factory=dict)

    @property
    def item_id(self) -> str:
        return self.user.id

    @property
    def creator_id(self) -> str:
        return self.user.id

    @property
    def bucket(self) -> Optional[int]:
        return self.signals.mutual_connections


class RankedItem(BaseModel):
    content_id: str
    creator_id: str
    content_class: ContentClass
    score: float
    position: int
    breakdown: Dict[str, float] = Field(default_factory=dict)


class RankedProfile(BaseModel):
    user_id: str
    username: str
    display_name: Optional[str] = None
    score: float
    position: int
    mutual_connections: int = 0
    reasons: List[str] = Field(default_factory=list)
    breakdown: Dict[str, float] = Field(default_factory=dict)


class RecordResult(BaseModel):
    """Outcome of each recorder sub-step: "ok", "skipped" or "failed"."""

    viewer_id: str
    content_id: str
    steps: Dict[str, str] = Field(default_factory=dict)

    @property
    def failed_steps(self) -> List[str]:
        return [name for name, status in self.steps.items() if status == "failed"]
