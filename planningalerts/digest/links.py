"""
Tracked link construction for digest emails.
"""

from urllib.parse import urlencode

DEFAULT_BASE_URL = "http://dev.planningalerts.org.au"

# Campaign parameters identifying alert emails as the traffic source
TRACKING_PARAMS = {"utm_medium": "email", "utm_source": "alerts"}


class LinkBuilder:
    """Builds site URLs embedded in digest emails."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url.rstrip("/")

    def build_link(self, application_id: int) -> str:
        """
        Build the tracked URL for an application page.

        Args:
            application_id: Application ID

        Returns:
            URL with campaign tracking parameters
        """
        return f"{self.base_url}/applications/{application_id}?{urlencode(TRACKING_PARAMS)}"

    def unsubscribe_link(self, confirm_id: str) -> str:
        """Build the unsubscribe URL for an alert."""
        return f"{self.base_url}/alerts/{confirm_id}/unsubscribe"
