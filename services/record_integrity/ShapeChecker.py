from services.record_integrity.models.ShapeTemplate import ShapeTemplate
from shared.errors.IntegrityError import ShapeMismatch
from shared.helper.HelperConfig import HelperConfig


class ShapeChecker:
    """Keeps one established template per collection and rejects shape drift."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._templates: dict[str, ShapeTemplate] = {}

    def get_template(self, collection: str, documents: list[dict]) -> ShapeTemplate | None:
        """Return the established template of a collection.

        The template is taken from the first stored document once and reused
        afterwards. An empty collection has no template, and a cached one is
        dropped so the next document establishes a new one.

        Args:
            collection (str): The collection name.
            documents (list[dict]): The current documents of the collection, in insertion order.

        Returns:
            ShapeTemplate | None: The template, or None for an empty collection.
        """
        if not documents:
            if self._templates.pop(collection, None) is not None:
                self.logging.debug("Collection %r is empty, template released.", collection)
            return None
        template = self._templates.get(collection)
        if template is None:
            template = ShapeTemplate.from_document(collection, documents[0])
            self._templates[collection] = template
            self.logging.debug("Established template for %r: %s", collection, list(template.fields))
        return template

    def check_shape(self, collection: str, documents: list[dict], candidate: dict) -> None:
        """Compare the candidate's field names against the collection's template.

        Args:
            collection (str): The collection name.
            documents (list[dict]): The current documents of the collection.
            candidate (dict): The complete candidate document, ids at positions 0 and 1.

        Raises:
            ShapeMismatch: On the first positional disagreement, or when the candidate
                has more or fewer fields than the template.
        """
        template = self.get_template(collection, documents)
        if template is None:
            return
        candidate_fields = list(candidate.keys())[2:]
        for index in range(max(len(template.fields), len(candidate_fields))):
            expected = template.fields[index] if index < len(template.fields) else None
            actual = candidate_fields[index] if index < len(candidate_fields) else None
            if expected != actual:
                raise ShapeMismatch(collection, index + 2, expected, actual)
