#!/usr/bin/env python3
"""
Shared base for the records held in the credential document.

- keyword-attribute construction (records are rebuilt from JSON on every reload)
- a `key` property naming each record's primary key value
- __str__ that never prints password material
- equality by class and attributes, so reloaded records compare equal

Serialization to and from the persisted camelCase layout lives in
models/schemas/records.py; the models themselves stay plain Python objects.
"""

from __future__ import annotations

SENSITIVE_FIELDS = ("password_hash", "token", "token_hash")


class BaseModel:
    """
    Base for all persisted records.

    Subclasses set __key__ to the attribute that acts as their primary key
    and may override __fields__ to declare their attributes.
    """

    __key__ = "id"
    __fields__: tuple = ()

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs; undeclared fields default to None.
        """
        for name in self.__fields__:
            setattr(self, name, None)
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)

    @property
    def key(self):
        return getattr(self, self.__key__)

    def to_dict(self) -> dict:
        """Attribute dictionary with secrets removed."""
        return {k: v for k, v in self.__dict__.items() if k not in SENSITIVE_FIELDS}

    def __eq__(self, other) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __hash__(self):
        return hash((self.__class__.__name__, self.key))

    def __str__(self) -> str:
        """Human-friendly representation, without secrets."""
        return f"[{self.__class__.__name__}] {self.to_dict()}"
