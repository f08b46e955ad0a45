"""
auth/guards.py -- Authorization checks shared by both surfaces.

Pure precondition functions: no I/O, no logging, no caching. Each returns the
(now known non-anonymous) Identity so callers can write

    identity = require_authenticated(identity)

Check order is fixed: authentication before ownership. An anonymous caller
always gets Unauthenticated, never Forbidden.

Ownership is identifier equality between the requester and the resource's
creator_id. There are no roles and no shared ownership.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import Identity
from core.errors import Forbidden, Unauthenticated


class OwnedResource(Protocol):
    creator_id: int


def require_authenticated(identity: Identity | None) -> Identity:
    if identity is None:
        raise Unauthenticated("Authentication required.")
    return identity


def require_owner(identity: Identity | None, resource: OwnedResource) -> Identity:
    identity = require_authenticated(identity)
    if identity.user_id != resource.creator_id:
        raise Forbidden("Not authorized!")
    return identity
