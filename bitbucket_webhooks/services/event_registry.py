from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Type

from bitbucket_webhooks.core.errors import NotImplementedEventError, UnknownEventKeyError
from bitbucket_webhooks.schemas.events import (
    DiagnosticPing,
    PullRequestCommentAdded,
    PullRequestCommentDeleted,
    PullRequestCommentEdited,
    PullRequestDeclined,
    PullRequestDeleted,
    PullRequestMerged,
    PullRequestModified,
    PullRequestOpened,
    PullRequestReviewerApproved,
    PullRequestReviewerNeedsWork,
    PullRequestReviewerUnapproved,
    PullRequestReviewerUpdated,
    RepoModified,
    RepoPush,
    SourceBranchUpdated,
    WebhookEvent,
)

# Bitbucket sends "diagnostics:ping" from the "Test connection" button; the
# singular spelling is accepted as well
DIAGNOSTIC_EVENT_KEYS = frozenset({"diagnostics:ping", "diagnostic:ping"})


class EventSpec(NamedTuple):
    key: str
    model: Optional[Type[WebhookEvent]]
    supported: bool


def _supported(key: str, model: Type[WebhookEvent]) -> EventSpec:
    return EventSpec(key=key, model=model, supported=True)


def _not_implemented(key: str) -> EventSpec:
    return EventSpec(key=key, model=None, supported=False)


_SPECS = [
    _supported("pr:opened", PullRequestOpened),
    _supported("pr:declined", PullRequestDeclined),
    _supported("pr:deleted", PullRequestDeleted),
    _supported("pr:merged", PullRequestMerged),
    _supported("pr:modified", PullRequestModified),
    _supported("pr:from_ref_updated", SourceBranchUpdated),
    _supported("pr:comment:added", PullRequestCommentAdded),
    _supported("pr:comment:edited", PullRequestCommentEdited),
    _supported("pr:comment:deleted", PullRequestCommentDeleted),
    _supported("pr:reviewer:updated", PullRequestReviewerUpdated),
    _supported("pr:reviewer:approved", PullRequestReviewerApproved),
    _supported("pr:reviewer:unapproved", PullRequestReviewerUnapproved),
    _supported("pr:reviewer:needs_work", PullRequestReviewerNeedsWork),
    _supported("repo:refs_changed", RepoPush),
    _supported("repo:modified", RepoModified),
    _not_implemented("repo:forked"),
    _not_implemented("repo:comment:added"),
    _not_implemented("repo:comment:edited"),
    _not_implemented("repo:comment:deleted"),
    _not_implemented("mirror:repo_synchronized"),
] + [_supported(key, DiagnosticPing) for key in sorted(DIAGNOSTIC_EVENT_KEYS)]

EVENT_REGISTRY: Mapping[str, EventSpec] = MappingProxyType(
    {spec.key: spec for spec in _SPECS}
)


def lookup(event_key: str) -> Type[WebhookEvent]:
    """Return the record model for ``event_key``.

    Raises UnknownEventKeyError for keys Bitbucket never sends and
    NotImplementedEventError for known events this package does not decode.
    """
    spec = EVENT_REGISTRY.get(event_key)
    if spec is None:
        raise UnknownEventKeyError(event_key)
    if not spec.supported:
        raise NotImplementedEventError(event_key)
    return spec.model


def supported_event_keys() -> List[str]:
    return [key for key, spec in EVENT_REGISTRY.items() if spec.supported]


def unsupported_event_keys() -> List[str]:
    return [key for key, spec in EVENT_REGISTRY.items() if not spec.supported]
