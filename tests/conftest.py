import copy
import hashlib
import hmac
import json
from typing import Any, Callable, Dict, Tuple

import pytest

from bitbucket_webhooks.services.dispatcher import EventDispatcher

ACTOR = {
    "name": "admin",
    "emailAddress": "admin@example.com",
    "id": 1,
    "displayName": "Administrator",
    "active": True,
    "slug": "admin",
    "type": "NORMAL",
}

REPOSITORY = {
    "slug": "repository",
    "id": 84,
    "name": "repository",
    "scmId": "git",
    "state": "AVAILABLE",
    "statusMessage": "Available",
    "forkable": True,
    "project": {
        "key": "PROJ",
        "id": 84,
        "name": "project",
        "public": False,
        "type": "NORMAL",
    },
    "public": False,
}

PULL_REQUEST = {
    "id": 9,
    "version": 0,
    "title": "Add a README",
    "state": "OPEN",
    "open": True,
    "closed": False,
    "createdDate": 1505779781,
    "updatedDate": 1505779781,
    "fromRef": {
        "id": "refs/heads/feature",
        "displayId": "feature",
        "latestCommit": "ecddabb624f6f5ba43816f5926e580a5f680a932",
        "repository": REPOSITORY,
    },
    "toRef": {
        "id": "refs/heads/master",
        "displayId": "master",
        "latestCommit": "178864a7d521b6f5e720b386b2c2b0ef8563e0dc",
        "repository": REPOSITORY,
    },
    "locked": False,
}

COMMENT = {
    "properties": {"repositoryId": 84},
    "id": 62,
    "version": 0,
    "text": "I am a PR comment",
    "author": ACTOR,
    "createdDate": 1505779786,
    "updatedDate": 1505779786,
    "comments": [],
    "tasks": [],
}

PARTICIPANT = {
    "user": ACTOR,
    "lastReviewedCommit": "ecddabb624f6f5ba43816f5926e580a5f680a932",
    "role": "REVIEWER",
    "approved": True,
    "status": "APPROVED",
}

_EVENT_FIELDS: Dict[str, Dict[str, Any]] = {
    "pr:opened": {"pullRequest": PULL_REQUEST},
    "pr:declined": {"pullRequest": PULL_REQUEST},
    "pr:deleted": {"pullRequest": PULL_REQUEST},
    "pr:merged": {"pullRequest": PULL_REQUEST},
    "pr:modified": {
        "pullRequest": PULL_REQUEST,
        "previousTitle": "Add README",
        "previousDescription": "A README",
        "previousTarget": {
            "id": "refs/heads/master",
            "displayId": "master",
            "type": "BRANCH",
            "latestCommit": "178864a7d521b6f5e720b386b2c2b0ef8563e0dc",
            "latestChangeset": "178864a7d521b6f5e720b386b2c2b0ef8563e0dc",
        },
    },
    "pr:from_ref_updated": {
        "pullRequest": PULL_REQUEST,
        "previousFromHash": "aab847db7d0ec3c4d3a1a0b5a9e3e5a5b6c7d8e9",
    },
    "pr:comment:added": {"pullRequest": PULL_REQUEST, "comment": COMMENT},
    "pr:comment:edited": {
        "pullRequest": PULL_REQUEST,
        "comment": COMMENT,
        "previousComment": "I am a PR comment that was edited",
    },
    "pr:comment:deleted": {"pullRequest": PULL_REQUEST, "comment": COMMENT},
    "pr:reviewer:updated": {
        "pullRequest": PULL_REQUEST,
        "addedReviewers": [ACTOR],
        "removedReviewers": [],
    },
    "pr:reviewer:approved": {
        "pullRequest": PULL_REQUEST,
        "participant": PARTICIPANT,
        "previousStatus": "UNAPPROVED",
    },
    "pr:reviewer:unapproved": {
        "pullRequest": PULL_REQUEST,
        "participant": {**PARTICIPANT, "approved": False, "status": "UNAPPROVED"},
        "previousStatus": "APPROVED",
    },
    "pr:reviewer:needs_work": {
        "pullRequest": PULL_REQUEST,
        "participant": {**PARTICIPANT, "approved": False, "status": "NEEDS_WORK"},
        "previousStatus": "UNAPPROVED",
    },
    "repo:refs_changed": {
        "repository": REPOSITORY,
        "changes": [
            {
                "ref": {
                    "id": "refs/heads/master",
                    "displayId": "master",
                    "type": "BRANCH",
                },
                "refId": "refs/heads/master",
                "fromHash": "ecddabb624f6f5ba43816f5926e580a5f680a932",
                "toHash": "178864a7d521b6f5e720b386b2c2b0ef8563e0dc",
                "type": "UPDATE",
            }
        ],
    },
    "repo:modified": {
        "old": REPOSITORY,
        "new": {**REPOSITORY, "slug": "repository2", "name": "repository2"},
    },
}


def build_payload(event_key: str, **overrides: Any) -> Dict[str, Any]:
    """Return a complete, valid payload for a supported event key"""
    payload = {
        "eventKey": event_key,
        "date": "2017-09-19T09:58:11+1000",
        "actor": ACTOR,
    }
    payload.update(_EVENT_FIELDS[event_key])
    payload.update(overrides)
    return copy.deepcopy(payload)


@pytest.fixture
def make_payload() -> Callable[..., Dict[str, Any]]:
    return build_payload


@pytest.fixture
def make_body() -> Callable[..., bytes]:
    """Encode a payload exactly as it would arrive on the wire"""

    def _make_body(event_key: str, **overrides: Any) -> bytes:
        return json.dumps(build_payload(event_key, **overrides)).encode()

    return _make_body


@pytest.fixture
def webhook_signature():
    """Fixture to generate X-Hub-Signature headers for testing"""

    def _generate_signature(
        webhook_secret: str, payload: bytes, algorithm: str = "sha256"
    ) -> Tuple[Dict[str, str], bytes]:
        signature = hmac.new(
            key=webhook_secret.encode(),
            msg=payload,
            digestmod=getattr(hashlib, algorithm),
        ).hexdigest()

        headers = {
            "X-Hub-Signature": f"{algorithm}={signature}"
        }

        return headers, payload

    return _generate_signature


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def secured_dispatcher():
    return EventDispatcher(secret=b"s3cr3t")
