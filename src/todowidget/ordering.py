from typing import MutableSequence, TypeVar

T = TypeVar("T")

def move_element(sequence: MutableSequence[T], from_index: int, to_index: int) -> bool:
    """
    Move the element at from_index so it ends up at to_index, shifting the rest.

    Both indices refer to positions in the sequence before the move, the same
    as removing the element and inserting it again at to_index. Moving to
    the last index puts the element at the end; adjacent indices swap.

    Returns:
        True if the sequence changed. Equal indices, negative indices and
        indices past the end leave the sequence untouched and return False.
    """
    if not isinstance(from_index, int) or not isinstance(to_index, int):
        return False
    size = len(sequence)
    if from_index == to_index:
        return False
    if not (0 <= from_index < size and 0 <= to_index < size):
        return False
    element = sequence.pop(from_index)
    sequence.insert(to_index, element)
    return True
