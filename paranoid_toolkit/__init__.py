"""
Paranoid Toolkit - soft delete for SQLAlchemy models.

Records of a paranoid model are never removed by ``destroy()``: the row is
kept and stamped with a ``deleted_at`` timestamp. Standard queries only see
live rows, while explicit entry points reach destroyed rows too.

Key Features
------------
* **Soft delete**: ``destroy()`` stamps ``deleted_at`` and ``restore()``
  clears it
* **Visibility modes**: live rows by default, ``with_destroyed()`` and
  ``only_destroyed()`` on request
* **Named scopes**: reusable filter and ordering fragments that chain in
  any order with the visibility modes
* **Dependent cascades**: relationships marked ``dependent="destroy"``
  are destroyed with their owner
* **Hard delete bypass**: ``delete_all()`` removes rows for good

Quick Start
-----------
>>> from paranoid_toolkit import ParanoidMixin, named_scope
>>>
>>> class Android(Base, ParanoidMixin):
...     __tablename__ = "androids"
...     __unique_fields__ = ("name",)
...     id = Column(Integer, primary_key=True)
...     name = Column(String(100))
...     ordered = named_scope(order_by=lambda cls: cls.name.desc())
>>>
>>> r2d2 = Android.create(session, name="R2D2")
>>> r2d2.destroy(session)
>>> Android.count(session), Android.count_with_destroyed(session)
(0, 1)
>>> Android.ordered.find_only_destroyed(session)
[<Android R2D2>]

License
-------
MIT License - See LICENSE file for details.
"""

__version__ = "1.0.0"

from .config import ParanoidConfig, configure, get_config
from .soft_delete import (
    DestroyableMixin,
    HardDeleteError,
    ParanoidError,
    ParanoidMixin,
    RecordInvalid,
    ScopeChain,
    Visibility,
    named_scope,
    register_soft_delete_listeners,
)

__all__ = [
    # Soft Delete
    "ParanoidMixin",
    "DestroyableMixin",
    "named_scope",
    "ScopeChain",
    "Visibility",
    "register_soft_delete_listeners",
    # Errors
    "ParanoidError",
    "RecordInvalid",
    "HardDeleteError",
    # Configuration
    "ParanoidConfig",
    "get_config",
    "configure",
]
