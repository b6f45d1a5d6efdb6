"""Result packaging."""

from .contract import SerializationContract
from .response import DataTablesResponse, json_default

__all__ = ["DataTablesResponse", "SerializationContract", "json_default"]
