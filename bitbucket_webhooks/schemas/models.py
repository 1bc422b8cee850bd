"""Records shared by Bitbucket Server webhook payloads.

Keys arrive in camelCase; attributes are snake_case. Missing keys decode to
zero values; a record whose fields are all zero, recursively, counts as
empty.
"""
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, NonNegativeInt
from pydantic.alias_generators import to_camel


def is_zero(value: Any) -> bool:
    if isinstance(value, BitbucketRecord):
        return value.is_empty()
    if isinstance(value, tuple):
        return all(is_zero(item) for item in value)
    return not value


class BitbucketRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def is_empty(self) -> bool:
        """True when every field still holds its zero value"""
        return all(is_zero(getattr(self, name)) for name in type(self).model_fields)


class Actor(BitbucketRecord):
    name: str = ""
    email_address: str = ""
    id: NonNegativeInt = 0
    display_name: str = ""
    active: bool = False
    slug: str = ""
    type: str = ""


class Project(BitbucketRecord):
    key: str = ""
    id: NonNegativeInt = 0
    name: str = ""
    public: bool = False
    type: str = ""


class Repository(BitbucketRecord):
    slug: str = ""
    id: NonNegativeInt = 0
    name: str = ""
    scm_id: str = ""
    state: str = ""
    status_message: str = ""
    forkable: bool = False
    project: Project = Project()
    public: bool = False


class RepoVersion(Repository):
    """Snapshot of a repository before or after a repo:modified event"""


class Ref(BitbucketRecord):
    id: str = ""
    display_id: str = ""
    latest_commit: str = ""
    repository: Repository = Repository()


class PullRequest(BitbucketRecord):
    id: NonNegativeInt = 0
    version: NonNegativeInt = 0
    title: str = ""
    description: str = ""
    state: str = ""
    open: bool = False
    closed: bool = False
    created_date: NonNegativeInt = 0
    updated_date: NonNegativeInt = 0
    from_ref: Ref = Ref()
    to_ref: Ref = Ref()
    locked: bool = False
    author: Optional["Participant"] = None
    reviewers: Tuple["Participant", ...] = ()
    participants: Tuple["Participant", ...] = ()


class Participant(BitbucketRecord):
    user: Actor = Actor()
    last_reviewed_commit: str = ""
    role: str = ""
    approved: bool = False
    status: str = ""


class PreviousTarget(BitbucketRecord):
    id: str = ""
    display_id: str = ""
    type: str = ""
    latest_commit: str = ""
    latest_changeset: str = ""


class CommentProperties(BitbucketRecord):
    repository_id: NonNegativeInt = 0


class Comment(BitbucketRecord):
    properties: CommentProperties = CommentProperties()
    id: NonNegativeInt = 0
    version: NonNegativeInt = 0
    text: str = ""
    author: Actor = Actor()
    created_date: NonNegativeInt = 0
    updated_date: NonNegativeInt = 0
    comments: Tuple["Comment", ...] = ()
    tasks: Tuple[Dict[str, Any], ...] = ()


class ChangeRef(BitbucketRecord):
    id: str = ""
    display_id: str = ""
    type: str = ""


class Change(BitbucketRecord):
    ref: ChangeRef = ChangeRef()
    ref_id: str = ""
    from_hash: str = ""
    to_hash: str = ""
    type: str = ""


PullRequest.model_rebuild()
