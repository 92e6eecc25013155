"""Lexical scopes for name resolution across nested subgraphs.

Scopes live in an arena (:class:`ScopeTree`) and refer to their parent by index.
A :class:`Scope` is only a handle on one arena record. Released records are
reused by later scopes; each reuse bumps the record's generation so handles to
the released scope stay invalid.
"""

__docformat__ = "restructuredtext"
__all__ = ["Scope", "ScopeTree"]

from dataclasses import dataclass, field

from onnxfront.errors import DuplicateBinding, NameNotFound
from onnxfront.ir import Value


@dataclass
class _ScopeRecord:
    parent: int | None
    bindings: dict[str, Value] = field(default_factory=dict)
    children: list[int] = field(default_factory=list)
    alive: bool = True
    generation: int = 0


class ScopeTree:
    """Arena owning every scope of one conversion; index 0 is the root."""

    def __init__(self) -> None:
        self._records: list[_ScopeRecord] = [_ScopeRecord(parent=None)]
        self._free: list[int] = []

    @property
    def root(self) -> "Scope":
        return Scope(self, 0)

    @property
    def live_count(self) -> int:
        return sum(1 for record in self._records if record.alive)

    @property
    def capacity(self) -> int:
        """Number of arena records, live or awaiting reuse."""
        return len(self._records)

    def _record(self, index: int, generation: int | None = None) -> _ScopeRecord:
        record = self._records[index]
        if not record.alive or (generation is not None and record.generation != generation):
            raise RuntimeError(f"Scope {index} has been released")
        return record

    def _create(self, parent: int, generation: int | None = None) -> tuple[int, int]:
        parent_record = self._record(parent, generation)
        if self._free:
            index = self._free.pop()
            record = self._records[index]
            record.parent = parent
            record.alive = True
            record.generation += 1
        else:
            index = len(self._records)
            record = _ScopeRecord(parent=parent)
            self._records.append(record)
        parent_record.children.append(index)
        return index, record.generation

    def _release(self, index: int, generation: int | None = None) -> None:
        if index == 0:
            raise RuntimeError("The root scope cannot be released")
        record = self._records[index]
        if not record.alive or (generation is not None and record.generation != generation):
            return
        for child in list(record.children):
            self._release(child)
        record.alive = False
        record.bindings.clear()
        record.children.clear()
        parent = self._records[record.parent]  # type: ignore[index]
        if index in parent.children:
            parent.children.remove(index)
        self._free.append(index)


class Scope:
    """Handle on one scope record of a :class:`ScopeTree`.

    Lookups walk outward through parents; insertion only touches this scope.
    Usable as a context manager that releases the scope on exit.
    """

    __slots__ = ("generation", "index", "tree")

    def __init__(self, tree: ScopeTree, index: int, generation: int = 0):
        self.tree = tree
        self.index = index
        self.generation = generation

    def __repr__(self) -> str:
        return f"Scope(index={self.index}, depth={self.depth})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Scope)
            and other.tree is self.tree
            and other.index == self.index
            and other.generation == self.generation
        )

    def __hash__(self) -> int:
        return hash((id(self.tree), self.index, self.generation))

    def __enter__(self) -> "Scope":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    def _own(self):
        return self.tree._record(self.index, self.generation)

    @property
    def parent(self) -> "Scope | None":
        parent = self._own().parent
        if parent is None:
            return None
        return Scope(self.tree, parent, self.tree._records[parent].generation)

    @property
    def depth(self) -> int:
        depth = 0
        index = self._own().parent
        while index is not None:
            depth += 1
            index = self.tree._records[index].parent
        return depth

    @property
    def alive(self) -> bool:
        record = self.tree._records[self.index]
        return record.alive and record.generation == self.generation

    def _lookup(self, name: str) -> Value | None:
        record = self._own()
        while True:
            value = record.bindings.get(name)
            if value is not None:
                return value
            if record.parent is None:
                return None
            record = self.tree._record(record.parent)

    def contains(self, name: str) -> bool:
        return self._lookup(name) is not None

    def find(self, name: str) -> Value:
        """Return the innermost binding of ``name``.

        :raises NameNotFound: If no scope in the chain binds ``name``
        """
        value = self._lookup(name)
        if value is None:
            raise NameNotFound(name)
        return value

    def insert(self, name: str, value: Value) -> None:
        """Bind ``name`` in this scope.

        :raises DuplicateBinding: If ``name`` is already bound in this exact scope
        """
        bindings = self._own().bindings
        if name in bindings:
            raise DuplicateBinding(name)
        bindings[name] = value

    def local_names(self) -> list[str]:
        return list(self._own().bindings)

    def create_child(self) -> "Scope":
        index, generation = self.tree._create(self.index, self.generation)
        return Scope(self.tree, index, generation)

    def release(self) -> None:
        """Discard this scope, its descendants and all their bindings."""
        self.tree._release(self.index, self.generation)
