from hello_service.config import AppConfig, ConfigMissingError, MESSAGE_KEY


class HelloResponder:
    """Serves the app.message value injected at construction."""

    def __init__(self, message: str):
        if message is None:
            raise ConfigMissingError(f"Required property '{MESSAGE_KEY}' is not set")
        self._message = message

    @classmethod
    def from_config(cls, config: AppConfig) -> "HelloResponder":
        return cls(config.message)

    def get_message(self) -> str:
        return self._message
