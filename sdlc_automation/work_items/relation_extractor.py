"""
Relation Extractor module.

Classifies the raw relation links of a work item and pulls the referenced
identifiers out of their URLs. Hierarchy links carry the related work item
ID as the last path segment; artifact links carry a commit or pull request
reference after a ``Commit`` / ``PullRequest`` segment, e.g.
``vstfs:///Git/Commit/<project>%2F<repo>%2F<sha>``.

A relation that cannot be parsed is skipped. It never fails the caller.
"""

import enum
import logging
from typing import Iterable, List, NamedTuple, Optional
from urllib.parse import unquote

from sdlc_automation.work_items.models import (
    ARTIFACT_LINK,
    HIERARCHY_FORWARD,
    HIERARCHY_REVERSE,
    Relation,
)

logger = logging.getLogger(__name__)

COMMIT_MARKER = "Commit"
PULL_REQUEST_MARKER = "PullRequest"


class RelationKind(enum.Enum):
    CHILD = "child"
    PARENT = "parent"
    COMMIT = "commit"
    PULL_REQUEST = "pull_request"


class ClassifiedRelation(NamedTuple):
    kind: RelationKind
    relation: Relation
    work_item_id: Optional[int] = None
    artifact_id: Optional[str] = None


def extract_trailing_id(url: str) -> Optional[int]:
    """Return the last "/"-delimited segment of a URL as an int, or None."""
    if not url:
        return None
    segment = url.rstrip("/").rsplit("/", 1)[-1]
    if not (segment.isascii() and segment.isdigit()):
        return None
    return int(segment)


def extract_segment_after(url: str, marker: str) -> Optional[str]:
    """
    Return the path segment that follows the first segment containing ``marker``.

    The match is case-insensitive and a trailing slash is ignored, so
    ``.../Commit/abc123/`` gives ``abc123``.
    """
    if not url:
        return None
    segments = url.rstrip("/").split("/")
    wanted = marker.lower()
    for index, segment in enumerate(segments):
        if wanted in segment.lower():
            if index + 1 < len(segments) and segments[index + 1]:
                return segments[index + 1]
            return None
    return None


def _pull_request_number(reference: Optional[str]) -> Optional[int]:
    # references look like "<project>%2F<repo>%2F<id>"
    if not reference:
        return None
    last = unquote(reference).rsplit("/", 1)[-1]
    return int(last) if last.isascii() and last.isdigit() else None


def artifact_marker(url: str) -> Optional[str]:
    """
    Return the marker (``Commit`` or ``PullRequest``) held by the first URL
    segment that contains either one, or None.

    Only the earliest matching segment counts, so a repository called
    ``commit-service`` inside a pull request reference stays a pull request.
    """
    if not url:
        return None
    for segment in url.rstrip("/").split("/"):
        lowered = segment.lower()
        if PULL_REQUEST_MARKER.lower() in lowered:
            return PULL_REQUEST_MARKER
        if COMMIT_MARKER.lower() in lowered:
            return COMMIT_MARKER
    return None


def is_commit_link(relation: Relation) -> bool:
    return relation.rel == ARTIFACT_LINK and artifact_marker(relation.url) == COMMIT_MARKER


def is_pull_request_link(relation: Relation) -> bool:
    return relation.rel == ARTIFACT_LINK and artifact_marker(relation.url) == PULL_REQUEST_MARKER


def classify(relation: Relation) -> Optional[ClassifiedRelation]:
    """
    Classify a single relation.

    Returns None for unrecognized kinds and for hierarchy links whose URL
    does not end in a numeric ID.
    """
    if relation.rel in (HIERARCHY_FORWARD, HIERARCHY_REVERSE):
        work_item_id = extract_trailing_id(relation.url)
        if work_item_id is None:
            logger.debug(f"Skipping hierarchy relation with non-numeric target: {relation.url}")
            return None
        kind = RelationKind.CHILD if relation.rel == HIERARCHY_FORWARD else RelationKind.PARENT
        return ClassifiedRelation(kind, relation, work_item_id=work_item_id)

    if is_commit_link(relation):
        return ClassifiedRelation(
            RelationKind.COMMIT,
            relation,
            artifact_id=extract_segment_after(relation.url, COMMIT_MARKER),
        )

    if is_pull_request_link(relation):
        reference = extract_segment_after(relation.url, PULL_REQUEST_MARKER)
        return ClassifiedRelation(
            RelationKind.PULL_REQUEST,
            relation,
            work_item_id=_pull_request_number(reference),
            artifact_id=reference,
        )

    return None


def classify_all(relations: Iterable[Relation], kind: RelationKind) -> List[ClassifiedRelation]:
    """Classify every relation and keep those of the given kind, in order."""
    result = []
    for relation in relations:
        classified = classify(relation)
        if classified is not None and classified.kind is kind:
            result.append(classified)
    return result


def extract_hierarchy_ids(relations: Iterable[Relation], kind: RelationKind) -> List[int]:
    """Deduplicated work item IDs for CHILD or PARENT relations, in first-seen order."""
    seen = set()
    ids = []
    for classified in classify_all(relations, kind):
        if classified.work_item_id not in seen:
            seen.add(classified.work_item_id)
            ids.append(classified.work_item_id)
    return ids
