"""
Name-keyed arena storage used for materials and for the layer stack.
"""
from typing import Callable, Dict, Generic, Iterator, List, TypeVar

from meshflux.errors import NameInUseError, NameNotFoundError

T = TypeVar('T')


class Registry(Generic[T]):
    """
    Dense ordered list of items plus a name -> index mapping.

    Items must expose a ``name`` attribute. The registry is only mutated after
    the arguments of an operation have been validated, so a failed call leaves
    it untouched.

    :param kind: Human-readable item kind used in error messages ('Material', 'Layer')
    """
    def __init__(self, kind: str = 'Item'):
        self.kind = kind
        self._items: List[T] = []
        self._index: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __getitem__(self, name: str) -> T:
        return self._items[self.index(name)]

    def at(self, position: int) -> T:
        return self._items[position]

    def names(self) -> List[str]:
        return [item.name for item in self._items]

    def index(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise NameNotFoundError(f"{self.kind}: {name} does not exist!") from None

    def require_free(self, name: str):
        if name in self._index:
            raise NameInUseError(f"{self.kind}: {name} already exists!")

    def add(self, item: T) -> int:
        self.require_free(item.name)
        self._items.append(item)
        self._index[item.name] = len(self._items) - 1
        return self._index[item.name]

    def remove(self, name: str) -> T:
        position = self.index(name)
        item = self._items.pop(position)
        self._reindex()
        return item

    def find(self, predicate: Callable[[T], bool]) -> List[T]:
        return [item for item in self._items if predicate(item)]

    def _reindex(self):
        self._index = {item.name: i for i, item in enumerate(self._items)}
