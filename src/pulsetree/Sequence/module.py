import weakref
from typing import Any, Dict, List, Union

# Maximum nesting depth of a sequence tree, root included.
MAX_DEPTH = 64

PREPARE_MODES = ('strict', 'verbose', 'update')


def check_mode(mode: str) -> None:
    if mode not in PREPARE_MODES:
        raise ValueError(f'Invalid prepare mode. Must be one of {PREPARE_MODES}. Passed: {mode}')


class Module:
    """
    Common base of pulses and sequence nodes: a named tree node with declared attributes.

    Attributes are addressed by their declarative name (e.g. 'FlatTopTime') and stored on plain Python attributes
    (e.g. `flat_time`). `ATTRIBUTES` lists the attributes a declarative source may set, `HIDDEN_ATTRIBUTES` the ones
    derived during `prepare()`, which are read-only.
    """

    ATTRIBUTES: Dict[str, str] = {'Name': 'name'}
    HIDDEN_ATTRIBUTES: Dict[str, str] = {}

    def __init__(self, name: Union[str, None] = None):
        self.name = name or type(self).__name__
        self._given = set()
        self._hidden = set(self.HIDDEN_ATTRIBUTES)
        self._parent = None
        self._children = []

    # =========
    # ATTRIBUTES
    # =========
    def declare(self, name: str, value: Any, default: Any = None) -> None:
        """
        Bind attribute `name` to `value`. If `value` is None, `default` is used and the attribute counts as not set.
        """
        attribute = self.ATTRIBUTES[name]
        if value is None:
            value = default
        else:
            self._given.add(name)
        setattr(self, attribute, value)

    def has_attribute(self, name: str) -> bool:
        """Return whether attribute `name` was explicitly set, by the constructor or `set_attribute()`."""
        return name in self._given

    def hide_attribute(self, name: str) -> None:
        self._hidden.add(name)

    def get_attribute(self, name: str) -> Any:
        if name in self.ATTRIBUTES:
            return getattr(self, self.ATTRIBUTES[name])
        if name in self.HIDDEN_ATTRIBUTES:
            return getattr(self, self.HIDDEN_ATTRIBUTES[name])
        raise ValueError(f"{type(self).__name__} has no attribute '{name}'.")

    def set_attribute(self, name: str, value: Any) -> None:
        """
        Set attribute `name` to `value`. Call `prepare(mode='update')` afterwards to re-derive dependent attributes.

        Raises
        ------
        AttributeError
            If the attribute is hidden (derived and read-only).
        ValueError
            If the attribute is unknown.
        """
        if name in self._hidden:
            raise AttributeError(f"Attribute '{name}' of {self.name} is read-only.")
        if name not in self.ATTRIBUTES:
            raise ValueError(f"{type(self).__name__} has no attribute '{name}'.")
        setattr(self, self.ATTRIBUTES[name], value)
        self._given.add(name)

    # =========
    # TREE
    # =========
    @property
    def parent(self) -> Union['Module', None]:
        return self._parent() if self._parent is not None else None

    def is_root(self) -> bool:
        return self.parent is None

    def get_children(self) -> List['Module']:
        return list(self._children)

    def get_depth(self) -> int:
        """Number of nodes from the root down to this node, both included."""
        depth = 1
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def get_height(self) -> int:
        """Number of levels of the subtree below and including this node."""
        height = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            height = max(height, level)
            stack.extend((child, level + 1) for child in node._children)
        return height

    def add_child(self, child: 'Module') -> 'Module':
        """
        Append `child` to the children of this node.

        Raises
        ------
        ValueError
            If `child` already has a parent, is this node or one of its ancestors, or the tree would become deeper
            than `MAX_DEPTH`.
        """
        if child.parent is not None:
            raise ValueError(f'{child.name} already belongs to {child.parent.name}.')

        node = self
        while node is not None:
            if node is child:
                raise ValueError(f'Adding {child.name} to {self.name} would create a cycle.')
            node = node.parent

        if self.get_depth() + child.get_height() > MAX_DEPTH:
            raise ValueError(f'Adding {child.name} to {self.name} exceeds the maximum tree depth of {MAX_DEPTH}.')

        child._parent = weakref.ref(self)
        self._children.append(child)
        return child

    # =========
    # INFO
    # =========
    def get_info(self) -> str:
        return f"{type(self).__name__} '{self.name}'"

    def __str__(self) -> str:
        return self.get_info()
