"""
NodePath: First-class type for plan tree navigation.

Paths identify where a warning lives: which batch, which statement, and which
operator below the statement's root. They are formatted identically regardless
of which rule or renderer produces them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


class NodePath:
    """
    Immutable path to a statement or operator in a parsed plan.

    Format: ("Batches[0]", "Statements[1]", "RootNode", "Children[2]") means
    the third child of the root operator of the second statement of the first
    batch.

    A path is its last segment plus a link to its parent path. Extending a
    path is O(1); `segments` and `str()` walk the links and cost O(length).
    The analyzer extends a path at every node, but only formats one when a
    rule fails.

    Example:
        stmt = NodePath.statement(0, 1)   # Batches[0] → Statements[1]
        root = stmt.root_node()           # ... → RootNode
        child = root.child(2)             # ... → RootNode → Children[2]

        str(child)   # "Batches[0] → Statements[1] → RootNode → Children[2]"
        child.depth  # 1
    """

    __slots__ = ("_parent", "_segment", "_length")

    def __init__(self, segments: tuple[str, ...] | None = None) -> None:
        segments = tuple(segments or ("RootNode",))
        parent: NodePath | None = None
        for segment in segments[:-1]:
            parent = NodePath._extend(parent, segment)
        self._parent = parent
        self._segment = segments[-1]
        self._length = len(segments)

    @classmethod
    def _extend(cls, parent: "NodePath | None", segment: str) -> "NodePath":
        path = cls.__new__(cls)
        path._parent = parent
        path._segment = segment
        path._length = 1 if parent is None else parent._length + 1
        return path

    @classmethod
    def root(cls) -> "NodePath":
        """Path to a bare root operator, with no statement prefix."""
        return cls(("RootNode",))

    @classmethod
    def statement(cls, batch_index: int, statement_index: int) -> "NodePath":
        """Path to a statement."""
        return cls((f"Batches[{batch_index}]", f"Statements[{statement_index}]"))

    @property
    def segments(self) -> tuple[str, ...]:
        segments: list[str] = []
        path: NodePath | None = self
        while path is not None:
            segments.append(path._segment)
            path = path._parent
        return tuple(reversed(segments))

    def root_node(self) -> "NodePath":
        """Navigate from a statement to its root operator."""
        return NodePath._extend(self, "RootNode")

    def child(self, index: int) -> "NodePath":
        """Navigate to a child operator at the given index."""
        return NodePath._extend(self, f"Children[{index}]")

    @property
    def depth(self) -> int:
        """
        Operator depth below the statement root (0 for the root operator).

        Statement paths (no RootNode segment) report -1.
        """
        depth = 0
        path: NodePath | None = self
        while path is not None:
            if path._segment == "RootNode":
                return depth
            depth += 1
            path = path._parent
        return -1

    def __str__(self) -> str:
        return " → ".join(self.segments)

    def __repr__(self) -> str:
        return f"NodePath({'.'.join(self.segments)})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodePath):
            return self._length == other._length and self.segments == other.segments
        return False

    def __hash__(self) -> int:
        return hash(self.segments)

    def __len__(self) -> int:
        return self._length

    # Pydantic v2 serialization support
    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls._validate,
            core_schema.union_schema([
                core_schema.is_instance_schema(cls),
                core_schema.list_schema(core_schema.str_schema()),
            ]),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda x: list(x.segments),
                info_arg=False,
            ),
        )

    @classmethod
    def _validate(cls, value: Any) -> "NodePath":
        if isinstance(value, cls):
            return value
        if isinstance(value, (list, tuple)):
            return cls(tuple(value))
        raise ValueError(f"Cannot convert {type(value)} to NodePath")


def traverse_with_path(
    node: "PlanNode",
    path: NodePath | None = None,
) -> Iterator[tuple[NodePath, "PlanNode"]]:
    """
    Traverse an operator tree in pre-order, yielding (path, node) pairs.

    A node is yielded before any of its children, and children are visited
    in their stored order. The walk uses an explicit stack rather than
    recursion, so plan depth is bounded only by memory.

    Children are read when their parent is popped, after the consumer has
    finished with the parent.

    Args:
        node: Starting node (usually statement.root_node)
        path: Starting path (defaults to NodePath.root())

    Yields:
        (NodePath, PlanNode) tuples in pre-order
    """
    stack: list[tuple[NodePath, "PlanNode"]] = [(path or NodePath.root(), node)]
    while stack:
        current_path, current = stack.pop()
        yield current_path, current
        for i in range(len(current.children) - 1, -1, -1):
            stack.append((current_path.child(i), current.children[i]))
