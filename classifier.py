from typing import Optional

from signatures import DEFAULT_CATALOG, SignatureCatalog


class Classifier:
    """
    Substring matcher over a signature catalog.

    Tokens are tried in catalog declaration order and the first one found
    inside the user agent wins. Matching ignores case unless
    ``case_sensitive`` is set.
    """

    def __init__(self, catalog: SignatureCatalog = DEFAULT_CATALOG, case_sensitive: bool = False):
        self.catalog = catalog
        self.case_sensitive = case_sensitive
        if case_sensitive:
            self._needles = [(token, token) for token in catalog.tokens()]
        else:
            self._needles = [(token, token.lower()) for token in catalog.tokens()]

    def classify(self, user_agent) -> Optional[str]:
        if not user_agent or not isinstance(user_agent, str):
            return None

        haystack = user_agent if self.case_sensitive else user_agent.lower()
        for token, needle in self._needles:
            if needle in haystack:
                return token
        return None
