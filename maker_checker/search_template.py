"""
Search Template Provider

The platform's search template lists the entity and action names the
requesting user may check. It drives the default inbox scoping and is
fetched on every query, since modules can register new checkable actions
at any time.
"""

from .client import PlatformClient
from .models import SearchTemplate

SEARCH_TEMPLATE_PATH = "/v1/makercheckers/searchtemplate"


class SearchTemplateProvider:
    """Fetches the checkable entity/action names from the platform"""

    def __init__(self, client: PlatformClient):
        self.client = client

    def get_search_template(self) -> SearchTemplate:
        response = self.client.get(SEARCH_TEMPLATE_PATH)
        return SearchTemplate.from_dict(response if isinstance(response, dict) else {})
