"""
FileStorage: the single JSON document that holds every credential record.

The whole document is read on reload() and rewritten on save(); there is no
partial update. Writes go through a temp file in the same directory followed
by os.replace, so readers only ever see a complete document.
"""
import json
import logging
import os
import tempfile

from models.user import User
from models.refresh_token import RefreshToken
from models.reset_token import ResetToken
from models.schemas.records import (
    UserRecordSchema,
    RefreshTokenRecordSchema,
    ResetTokenRecordSchema,
)

logger = logging.getLogger(__name__)

# Map model classes to their collection name and record schema
collections = {
    User: ("users", UserRecordSchema(many=True)),
    RefreshToken: ("refreshTokens", RefreshTokenRecordSchema(many=True)),
    ResetToken: ("resetTokens", ResetTokenRecordSchema(many=True)),
}


def empty_document() -> dict:
    return {name: [] for name, _ in collections.values()}


class FileStorage:
    __path = None
    __objects = None

    def __init__(self, path):
        """Bind the storage to a document path; nothing is read until init()/reload()"""
        self.__path = os.fspath(path)
        self.__objects = {cls: [] for cls in collections}

    @property
    def path(self):
        return self.__path

    def init(self):
        """Create an empty document if none exists, then load it"""
        if not os.path.exists(self.__path):
            parent = os.path.dirname(os.path.abspath(self.__path))
            os.makedirs(parent, exist_ok=True)
            self._write(empty_document())
            logger.info("Created credential document at %s", self.__path)
        self.reload()

    def reload(self):
        """Replace the in-memory view with the document currently on disk"""
        with open(self.__path, "r", encoding="utf-8") as fh:
            document = json.load(fh)
        objects = {}
        for cls, (name, schema) in collections.items():
            objects[cls] = schema.load(document.get(name) or [])
        self.__objects = objects

    def save(self):
        """Write every collection back as one document"""
        document = {}
        for cls, (name, schema) in collections.items():
            document[name] = schema.dump(self.__objects[cls])
        self._write(document)

    def _write(self, document):
        directory = os.path.dirname(os.path.abspath(self.__path))
        fd, tmp_path = tempfile.mkstemp(prefix=".credentials-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_path, self.__path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def new(self, obj):
        """Add object to its collection"""
        self.__objects[obj.__class__].append(obj)

    def delete(self, obj=None):
        """Delete object if present"""
        if obj is None:
            return
        bucket = self.__objects[obj.__class__]
        self.__objects[obj.__class__] = [o for o in bucket if o is not obj]

    def get(self, cls, key):
        """Fetch one object by class and primary key"""
        if cls not in collections:
            return None
        for obj in self.__objects[cls]:
            if obj.key == key:
                return obj
        return None

    def find(self, cls, **attrs):
        """First object whose attributes match every keyword"""
        for obj in self.__objects[cls]:
            if all(getattr(obj, k) == v for k, v in attrs.items()):
                return obj
        return None

    def remove(self, cls, predicate):
        """Drop every object matching predicate; returns how many went"""
        bucket = self.__objects[cls]
        kept = [obj for obj in bucket if not predicate(obj)]
        self.__objects[cls] = kept
        return len(bucket) - len(kept)
