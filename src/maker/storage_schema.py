"""Shape of the values saved with maker.save().

Type checkers read the generated ``storage_schema.pyi`` next to this module
when it exists; it is rewritten on every save() and removed by init().
"""

from typing import TypedDict

StorageSchema = TypedDict("StorageSchema", {}, total=False)

__all__ = ["StorageSchema"]
