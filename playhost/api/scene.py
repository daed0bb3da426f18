"""Scene graph boundary shared with the rendering collaborator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(slots=True)
class SceneNode:
    """Drawable root owned by one session.

    Drawing primitives live outside this package; the runtime only tracks the
    labels and properties a renderer reads from the node.
    """

    node_id: str
    labels: dict[str, str] = field(default_factory=dict)
    properties: dict[str, float] = field(default_factory=dict)
    visible: bool = True
    released: bool = False

    def set_label(self, key: str, text: str) -> None:
        self.labels[key] = text

    def set_property(self, key: str, value: float) -> None:
        self.properties[key] = float(value)

    def release(self) -> None:
        """Drop node content; a released node is never drawn again."""
        self.labels.clear()
        self.properties.clear()
        self.visible = False
        self.released = True


@runtime_checkable
class SceneGraphPort(Protocol):
    """Host scene graph surface."""

    def attach(self, node: SceneNode) -> None:
        """Attach a session root node."""

    def detach(self, node: SceneNode) -> None:
        """Detach a session root node if attached."""

    def contains(self, node: SceneNode) -> bool:
        """Return whether the node is currently attached."""
