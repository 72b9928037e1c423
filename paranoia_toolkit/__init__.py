"""
Paranoia Toolkit - soft deletes for SQLAlchemy models.

Models that mix in :class:`SoftDeleteMixin` keep their rows when destroyed:
``destroy()`` stamps ``deleted_at`` and every ORM query skips stamped rows
unless a broader scope is requested.

Quick Start
-----------
>>> from paranoia_toolkit import SoftDeleteMixin
>>>
>>> class Android(Base, SoftDeleteMixin):
...     __tablename__ = "androids"
...     id = Column(Integer, primary_key=True)
...     name = Column(String(100))
>>>
>>> android = Android.find(session, name="Data")[0]
>>> android.destroy()
>>> Android.find(session, name="Data")
[]
>>> Android.find_only_destroyed(session, name="Data")
[<Android Data>]
>>> android.restore()

Visibility Scopes
-----------------
* ``Android.with_destroyed_scope(session)``: active and destroyed rows
* ``Android.with_only_destroyed_scope(session)``: destroyed rows only
* ``with_visibility(statement, Visibility.WITH_DESTROYED)``: one statement

License
-------
MIT License
"""

__version__ = "1.0.0"

from .config import ParanoiaConfig, configure, get_config, set_config
from .soft_delete import (
    SoftDeleteMixin,
    SoftDeleteService,
    Visibility,
    with_visibility,
)

__all__ = [
    # Soft Delete
    "SoftDeleteMixin",
    "SoftDeleteService",
    "Visibility",
    "with_visibility",
    # Configuration
    "ParanoiaConfig",
    "configure",
    "get_config",
    "set_config",
]
