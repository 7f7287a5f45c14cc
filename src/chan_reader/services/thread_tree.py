from __future__ import annotations

import logging
import weakref
from dataclasses import replace
from typing import Iterator, Optional, Sequence

from chan_reader.services.models import Message, Post
from chan_reader.services.references import extract_references

logger = logging.getLogger(__name__)


class EmptyInputError(ValueError):
    """Raised when a tree is requested for a thread with no messages."""


class ThreadNode:
    """One post in a reply tree.

    ``children`` is owned by this node and holds every post whose primary
    parent is this one, in arrival order. ``quoted`` lists every earlier post
    this one cites; it is informational and never changes the tree shape.
    """

    def __init__(self, message: Message, position: int = 0) -> None:
        self.message = message
        self.position = position
        self.children: list[ThreadNode] = []
        self.quoted: list[ThreadNode] = []
        self._parent: Optional[weakref.ReferenceType[ThreadNode]] = None

    @property
    def id(self) -> int:
        return self.message.id

    @property
    def post(self) -> Optional[Post]:
        return self.message.post

    @property
    def parent(self) -> Optional["ThreadNode"]:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def quoted_ids(self) -> list[int]:
        return [node.id for node in self.quoted]

    def add_child(self, child: "ThreadNode") -> None:
        if child._parent is not None:
            raise ValueError(f"{child!r} already has a parent")
        child._parent = weakref.ref(self)
        self.children.append(child)

    def walk(self) -> Iterator["ThreadNode"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def descendants(self) -> Iterator["ThreadNode"]:
        walker = self.walk()
        next(walker)
        yield from walker

    def find(self, post_id: int) -> Optional["ThreadNode"]:
        for node in self.walk():
            if node.id == post_id:
                return node
        return None

    def media_nodes(self) -> list["ThreadNode"]:
        return [node for node in self.walk() if node.post is not None and node.post.has_file]

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())

    def __repr__(self) -> str:
        return f"<ThreadNode {self.id} children={len(self.children)} quoted={self.quoted_ids}>"


def _primary_parent(cited: list[ThreadNode], root: ThreadNode) -> ThreadNode:
    if not cited:
        return root
    return max(cited, key=lambda candidate: candidate.id)


def build_tree(messages: Sequence[Message]) -> ThreadNode:
    """Build the reply tree for one thread and return its root.

    The first message is the opening post. Every later message is placed
    under the highest-numbered earlier post it cites, or under the root when
    it cites nothing usable (no markers, only itself, or posts outside this
    thread).
    """
    if not messages:
        raise EmptyInputError("cannot build a reply tree from an empty thread")

    root_id = messages[0].id
    nodes: list[ThreadNode] = []
    by_id: dict[int, ThreadNode] = {}

    for position, message in enumerate(messages):
        if position > 0 and message.thread_root_id is None:
            message = replace(message, thread_root_id=root_id)
        node = ThreadNode(message, position)
        if message.id in by_id:
            logger.debug(
                "Duplicate post id in thread; later post replaces earlier mapping",
                extra={"event": "thread_duplicate_post_id", "post_id": message.id, "position": position},
            )
        by_id[message.id] = node
        nodes.append(node)

    root = nodes[0]
    for node in nodes[1:]:
        cited: list[ThreadNode] = []
        for reference in extract_references(node.message.clean_comment, own_id=node.id):
            target = by_id.get(reference)
            # Only earlier posts can be cited as parents.
            if target is None or target.position >= node.position:
                logger.debug(
                    "Dropped unresolvable reference",
                    extra={"event": "thread_reference_dropped", "post_id": node.id, "reference": reference},
                )
                continue
            cited.append(target)

        node.quoted.extend(cited)
        _primary_parent(cited, root).add_child(node)

    return root
