from pydantic import BaseModel, ConfigDict


class ShapeTemplate(BaseModel):
    """The established field layout of a collection.

    Attributes:
        collection: The collection the template belongs to.
        fields:     Field names from position 2 onward, in order. Positions 0
                    ("_id") and 1 ("<collection>_id") are not part of the template.
    """

    model_config = ConfigDict(frozen=True)

    collection: str
    fields: tuple[str, ...]

    @classmethod
    def from_document(cls, collection: str, document: dict) -> "ShapeTemplate":
        return cls(collection=collection, fields=tuple(list(document.keys())[2:]))
