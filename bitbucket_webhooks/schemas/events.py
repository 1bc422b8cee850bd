"""Typed event records for Bitbucket Server webhook deliveries.

Every variant carries an explicit ``kind`` tag and a fixed, ordered tuple of
required fields. ``first_missing_field`` walks that tuple and stops at the
first field still holding its zero value; a nested record equal to its
default-constructed form counts as missing.
"""
from enum import Enum
from typing import Any, ClassVar, Optional, Tuple, Union

from pydantic import Field, NonNegativeInt

from bitbucket_webhooks.core.errors import InvalidPayloadError
from bitbucket_webhooks.schemas.models import (
    Actor,
    BitbucketRecord,
    Change,
    Comment,
    Participant,
    PreviousTarget,
    PullRequest,
    RepoVersion,
    Repository,
)


class EventKind(str, Enum):
    PULL_REQUEST_OPENED = "pull_request_opened"
    PULL_REQUEST_DECLINED = "pull_request_declined"
    PULL_REQUEST_DELETED = "pull_request_deleted"
    PULL_REQUEST_MERGED = "pull_request_merged"
    PULL_REQUEST_MODIFIED = "pull_request_modified"
    SOURCE_BRANCH_UPDATED = "source_branch_updated"
    PULL_REQUEST_COMMENT_ADDED = "pull_request_comment_added"
    PULL_REQUEST_COMMENT_EDITED = "pull_request_comment_edited"
    PULL_REQUEST_COMMENT_DELETED = "pull_request_comment_deleted"
    PULL_REQUEST_REVIEWER_UPDATED = "pull_request_reviewer_updated"
    PULL_REQUEST_REVIEWER_APPROVED = "pull_request_reviewer_approved"
    PULL_REQUEST_REVIEWER_UNAPPROVED = "pull_request_reviewer_unapproved"
    PULL_REQUEST_REVIEWER_NEEDS_WORK = "pull_request_reviewer_needs_work"
    REPO_PUSH = "repo_push"
    REPO_MODIFIED = "repo_modified"
    DIAGNOSTIC_PING = "diagnostic_ping"


def _is_missing(value: Any) -> bool:
    if isinstance(value, BitbucketRecord):
        return value.is_empty()
    if isinstance(value, tuple):
        return not value or _is_missing(value[0])
    return not value


class WebhookEvent(BitbucketRecord):
    kind: ClassVar[EventKind]
    # Attribute paths checked in order; dotted paths reach into nested records
    required_fields: ClassVar[Tuple[str, ...]] = ()

    def _resolve(self, path: str) -> Tuple[str, Any]:
        value: Any = self
        labels = []
        for part in path.split("."):
            field = type(value).model_fields[part]
            labels.append(field.alias or part)
            value = getattr(value, part)
        return ".".join(labels), value

    def first_missing_field(self) -> Optional[str]:
        """Return the payload key of the first empty required field, if any"""
        for path in self.required_fields:
            label, value = self._resolve(path)
            if _is_missing(value):
                return label
        return None

    def validate_structure(self) -> None:
        missing = self.first_missing_field()
        if missing is not None:
            raise InvalidPayloadError(missing)


class DiagnosticPing(WebhookEvent):
    """Sent by the "Test connection" button in the Bitbucket webhook settings"""

    kind = EventKind.DIAGNOSTIC_PING
    required_fields = ("test",)

    test: bool = False


class BitbucketEvent(WebhookEvent):
    event_key: str = ""
    event_date: str = Field(default="", alias="date")
    actor: Actor = Actor()


_COMMON = ("event_key", "event_date", "actor")
_PULL_REQUEST = _COMMON + ("pull_request",)


class PullRequestOpened(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_OPENED
    required_fields = _PULL_REQUEST

    pull_request: PullRequest = PullRequest()


class PullRequestDeclined(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_DECLINED
    required_fields = _PULL_REQUEST

    pull_request: PullRequest = PullRequest()


class PullRequestDeleted(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_DELETED
    required_fields = _PULL_REQUEST

    pull_request: PullRequest = PullRequest()


class PullRequestMerged(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_MERGED
    required_fields = _PULL_REQUEST

    pull_request: PullRequest = PullRequest()


class PullRequestModified(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_MODIFIED
    required_fields = _PULL_REQUEST + (
        "previous_title",
        "previous_description",
        "previous_target",
    )

    pull_request: PullRequest = PullRequest()
    previous_title: str = ""
    previous_description: str = ""
    previous_target: PreviousTarget = PreviousTarget()


class SourceBranchUpdated(BitbucketEvent):
    """pr:from_ref_updated, new commits pushed to the pull request's source branch"""

    kind = EventKind.SOURCE_BRANCH_UPDATED
    required_fields = _PULL_REQUEST + ("previous_from_hash",)

    pull_request: PullRequest = PullRequest()
    previous_from_hash: str = ""


class PullRequestCommentAdded(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_COMMENT_ADDED
    required_fields = _PULL_REQUEST + ("comment", "comment.text")

    pull_request: PullRequest = PullRequest()
    comment: Comment = Comment()
    comment_parent_id: NonNegativeInt = 0


class PullRequestCommentEdited(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_COMMENT_EDITED
    required_fields = _PULL_REQUEST + ("comment", "comment.text")

    pull_request: PullRequest = PullRequest()
    comment: Comment = Comment()
    comment_parent_id: NonNegativeInt = 0
    previous_comment: str = ""


class PullRequestCommentDeleted(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_COMMENT_DELETED
    required_fields = _PULL_REQUEST + ("comment", "comment.text")

    pull_request: PullRequest = PullRequest()
    comment: Comment = Comment()
    comment_parent_id: NonNegativeInt = 0


class PullRequestReviewerUpdated(BitbucketEvent):
    kind = EventKind.PULL_REQUEST_REVIEWER_UPDATED
    required_fields = _PULL_REQUEST

    pull_request: PullRequest = PullRequest()
    added_reviewers: Tuple[Actor, ...] = ()
    removed_reviewers: Tuple[Actor, ...] = ()

    def first_missing_field(self) -> Optional[str]:
        missing = super().first_missing_field()
        if missing is None and not (self.added_reviewers or self.removed_reviewers):
            # A reviewer update always adds or removes someone
            return "reviewers"
        return missing


class PullRequestReviewerStatus(BitbucketEvent):
    """Shared shape of the approved / unapproved / needs_work reviewer events"""

    required_fields = _PULL_REQUEST + ("participant", "previous_status")

    pull_request: PullRequest = PullRequest()
    participant: Participant = Participant()
    previous_status: str = ""


class PullRequestReviewerApproved(PullRequestReviewerStatus):
    kind = EventKind.PULL_REQUEST_REVIEWER_APPROVED


class PullRequestReviewerUnapproved(PullRequestReviewerStatus):
    kind = EventKind.PULL_REQUEST_REVIEWER_UNAPPROVED


class PullRequestReviewerNeedsWork(PullRequestReviewerStatus):
    kind = EventKind.PULL_REQUEST_REVIEWER_NEEDS_WORK


class RepoPush(BitbucketEvent):
    """repo:refs_changed, one or more refs pushed to a repository"""

    kind = EventKind.REPO_PUSH
    required_fields = _COMMON + ("repository", "changes")

    repository: Repository = Repository()
    changes: Tuple[Change, ...] = ()


class RepoModified(BitbucketEvent):
    kind = EventKind.REPO_MODIFIED
    required_fields = _COMMON + ("old_version", "new_version")

    old_version: RepoVersion = Field(default=RepoVersion(), alias="old")
    new_version: RepoVersion = Field(default=RepoVersion(), alias="new")


EventRecord = Union[
    PullRequestOpened,
    PullRequestDeclined,
    PullRequestDeleted,
    PullRequestMerged,
    PullRequestModified,
    SourceBranchUpdated,
    PullRequestCommentAdded,
    PullRequestCommentEdited,
    PullRequestCommentDeleted,
    PullRequestReviewerUpdated,
    PullRequestReviewerApproved,
    PullRequestReviewerUnapproved,
    PullRequestReviewerNeedsWork,
    RepoPush,
    RepoModified,
    DiagnosticPing,
]
