from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Mapping, TypeVar

from ledger.domain import Item

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def safe_item(items: tuple[Item, ...], name: str) -> Maybe[Item]:
    for item in items:
        if item.name == name:
            return Some(item)
    return Nothing()


def validate_percentages(
    percentages: Mapping[str, int],
    pocket_names: Iterable[str] | None = None,
) -> Either[dict, dict[str, int]]:
    """Check the allocation table before a distribution is allowed.

    Every value must be an integer in 0..100 and the values must sum to
    exactly 100. When ``pocket_names`` is given the table's keys must match
    the pocket set exactly; a missing or unknown pocket is a configuration
    error, never an implicit zero.
    """
    errors = []

    for name, pct in percentages.items():
        if isinstance(pct, bool) or not isinstance(pct, int):
            errors.append(f"Percentage for {name} must be an integer, got {pct!r}")
        elif not 0 <= pct <= 100:
            errors.append(f"Percentage for {name} must be between 0 and 100, got {pct}")

    if pocket_names is not None:
        known = list(pocket_names)
        for name in known:
            if name not in percentages:
                errors.append(f"Pocket {name} has no percentage")
        for name in percentages:
            if name not in known:
                errors.append(f"Percentage given for unknown pocket {name}")

    if not errors:
        total = sum(percentages.values())
        if total != 100:
            errors.append(f"Percentages must sum to 100, got {total}")

    if errors:
        return Left({
            "error": "invalid_percentages",
            "message": "; ".join(errors),
            "errors": tuple(errors),
        })
    return Right(dict(percentages))
