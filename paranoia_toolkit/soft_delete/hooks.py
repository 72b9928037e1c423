"""
Destroy hooks for soft-deletable models.

Hooks are registered per mapped class with an API shaped like
``sqlalchemy.event``. Hooks registered on a base class also fire for its
subclasses, base class hooks first.

Usage:
    @listens_for(Android, "before_destroy")
    def check_no_owner(android):
        return android.owner_id is None  # returning False vetoes the destroy
"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Callable, DefaultDict, Iterator, List, Tuple, Type

from .exceptions import DestroyVetoed

logger = logging.getLogger(__name__)

BEFORE_DESTROY = "before_destroy"
AFTER_DESTROY = "after_destroy"

HOOK_IDENTIFIERS = (BEFORE_DESTROY, AFTER_DESTROY)

Hook = Callable[[Any], Any]

_registry: DefaultDict[Tuple[Type[Any], str], List[Hook]] = defaultdict(list)


def _check_identifier(identifier: str) -> None:
    if identifier not in HOOK_IDENTIFIERS:
        raise ValueError(
            f"Unknown hook {identifier!r}; expected one of {', '.join(HOOK_IDENTIFIERS)}"
        )


def listen(target: Type[Any], identifier: str, fn: Hook) -> None:
    """
    Register ``fn`` to run on ``identifier`` for instances of ``target``.

    Args:
        target: Mapped class (hooks also apply to its subclasses)
        identifier: ``"before_destroy"`` or ``"after_destroy"``
        fn: Callable receiving the entity

    Raises:
        ValueError: If the identifier is unknown
    """
    _check_identifier(identifier)
    hooks = _registry[(target, identifier)]
    if fn not in hooks:
        hooks.append(fn)


def remove(target: Type[Any], identifier: str, fn: Hook) -> None:
    """Unregister a hook previously added with :func:`listen`."""
    _check_identifier(identifier)
    hooks = _registry.get((target, identifier), [])
    if fn in hooks:
        hooks.remove(fn)


def contains(target: Type[Any], identifier: str, fn: Hook) -> bool:
    """Check whether ``fn`` is registered on ``target`` for ``identifier``."""
    return fn in _registry.get((target, identifier), [])


def listens_for(target: Type[Any], identifier: str) -> Callable[[Hook], Hook]:
    """Decorator form of :func:`listen`."""

    def decorator(fn: Hook) -> Hook:
        listen(target, identifier, fn)
        return fn

    return decorator


def hooks_for(entity_class: Type[Any], identifier: str) -> List[Hook]:
    """Return the hooks that fire for ``entity_class``, base classes first."""
    hooks: List[Hook] = []
    for klass in reversed(entity_class.__mro__):
        hooks.extend(_registry.get((klass, identifier), []))
    return hooks


@contextmanager
def run_destroy_hooks(entity: Any) -> Iterator[None]:
    """
    Run before hooks, the block, then after hooks.

    A before hook returning ``False`` halts the destroy: the block and the
    after hooks are skipped and :class:`DestroyVetoed` is raised. Exceptions
    raised by hooks or by the block propagate unchanged.
    """
    entity_class = type(entity)
    entity_id = entity._entity_id()

    for hook in hooks_for(entity_class, BEFORE_DESTROY):
        if hook(entity) is False:
            hook_name = getattr(hook, "__qualname__", repr(hook))
            logger.info(
                "Destroy of %s %s vetoed by %s",
                entity_class.__name__,
                entity_id,
                hook_name,
            )
            raise DestroyVetoed(entity_id, hook_name)

    yield

    for hook in hooks_for(entity_class, AFTER_DESTROY):
        hook(entity)
