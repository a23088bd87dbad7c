"""Contains exceptions raised when reconciling worker configuration."""


class RequiredConfigurationElementError(Exception):
    """Raised when a required configuration element is missing."""

    def __init__(self, name: str, cli_name: str, env_name: str) -> None:
        """Initializes the exception with the name of the missing element and where to set it."""
        super().__init__(f"Missing required configuration element: {name} (pass --{cli_name.replace('_', '-')} or set {env_name})")
        self.name = name
        self.cli_name = cli_name
        self.env_name = env_name


class InvalidConfigurationElementError(Exception):
    """Raised when a configuration element has a value the worker cannot use."""

    pass
