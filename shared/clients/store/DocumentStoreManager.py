from shared.helper.HelperConfig import HelperConfig
from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface


class DocumentStoreManager:
    """Manager class to instantiate the configured document store client."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the document store engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Mongo").

        Raises:
            ValueError: If STORE_ENGINE is not set or empty.
        """
        engine = self.helper_config.get_string_val("STORE_ENGINE", default="mongo")
        if not engine:
            raise ValueError("No document store engine specified in configuration (STORE_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> DocumentStoreInterface:
        """Instantiate the document store client for the configured engine.

        Returns:
            DocumentStoreInterface: The instantiated client.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"DocumentStore{engine}"
        try:
            module = __import__(
                f"shared.clients.store.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError("Unsupported document store engine '%s'. Error: %s" % (engine, e))
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated document store client for engine: %s", engine)
        return client

    def get_client(self) -> DocumentStoreInterface:
        """Return the instantiated document store client."""
        return self.client
