from .adapter import MongoAdapter, bson_cell

__all__ = ["MongoAdapter", "bson_cell"]
