class IntegrationError(Exception):
    """Base class for integration lifecycle failures."""


class InvalidIntegration(IntegrationError):
    def __init__(self, integration_id: str) -> None:
        super().__init__(f"Invalid integration: {integration_id}")
        self.integration_id = integration_id


class InvalidIntegrationAction(IntegrationError):
    def __init__(self, action: str) -> None:
        super().__init__(f"Invalid action: {action}")
        self.action = action


class IntegrationNotConnected(IntegrationError):
    def __init__(self, integration_id: str) -> None:
        super().__init__(f"Integration not connected: {integration_id}")
        self.integration_id = integration_id


class IntegrationSyncFailed(IntegrationError):
    """Raised by a connector when the external sync call fails."""
