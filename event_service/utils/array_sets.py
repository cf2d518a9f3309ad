# event_service/utils/array_sets.py
from typing import Hashable, Iterable, List, TypeVar

H = TypeVar("H", bound=Hashable)


def unique_in_order(items: Iterable[H]) -> List[H]:
    """Drops repeated items, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))
