"""Turn flat comment lists into reply trees.

Both helpers index children by parent id in one pass and walk the result
with an explicit stack, so deep reply chains cannot hit the recursion limit.
"""

from collections import defaultdict
from collections.abc import Collection, Iterable, Mapping
from uuid import UUID

from solnews.core.modules.comment.models import Comment, CommentNode
from solnews.core.modules.user.models import AuthorView, User


def assemble_forest(
    comments: list[Comment],
    viewer_likes: Collection[UUID],
    authors: Mapping[UUID, User] | None = None,
) -> list[CommentNode]:
    """Nest comments under their parents.

    Siblings keep the input order. A comment whose parent is not in the input
    (for example a reply loaded without its thread) is returned as a root.
    Comments only reachable through a parent cycle are left out.
    """
    authors = authors or {}
    nodes = {comment.id: _to_node(comment, viewer_likes, authors) for comment in comments}

    roots: list[CommentNode] = []
    children: dict[UUID, list[CommentNode]] = defaultdict(list)
    for comment in comments:
        if comment.parent_id is None or comment.parent_id not in nodes:
            roots.append(nodes[comment.id])
        else:
            children[comment.parent_id].append(nodes[comment.id])

    placed = {node.id for node in roots}
    stack = list(roots)
    while stack:
        node = stack.pop()
        for child in children.get(node.id, ()):
            if child.id in placed:
                continue
            placed.add(child.id)
            node.children.append(child)
            stack.append(child)

    return roots


def collect_subtree_ids(links: Iterable[tuple[UUID, UUID | None]], root_ids: Collection[UUID]) -> set[UUID]:
    """Ids of the given comments plus every reply below them.

    Args:
        links: (comment_id, parent_id) pairs covering the threads involved
        root_ids: Comments whose whole subtree is wanted
    """
    children: dict[UUID, list[UUID]] = defaultdict(list)
    for comment_id, parent_id in links:
        if parent_id is not None:
            children[parent_id].append(comment_id)

    found = set(root_ids)
    stack = list(found)
    while stack:
        for child_id in children.get(stack.pop(), ()):
            if child_id not in found:
                found.add(child_id)
                stack.append(child_id)
    return found


def _to_node(comment: Comment, viewer_likes: Collection[UUID], authors: Mapping[UUID, User]) -> CommentNode:
    author = authors.get(comment.author_id)
    return CommentNode(
        id=comment.id,
        author=AuthorView.from_domain(author) if author else AuthorView.deleted(comment.author_id),
        body=comment.body,
        parent_id=comment.parent_id,
        like_count=comment.like_count,
        liked_by_viewer=comment.id in viewer_likes,
        was_edited=comment.was_edited,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )
