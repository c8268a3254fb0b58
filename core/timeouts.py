"""Per-endpoint upstream timeout selection."""

from core.config import TimeoutSettings


class TimeoutPolicy:
    """Pick the upstream timeout for a request.

    Slow backend operations (AI generation, bulk writes, image uploads) get a
    longer bound than ordinary CRUD calls. Rules are checked in order and the
    first one whose fragment appears in the captured path and whose method list
    is empty or contains the method wins.
    """

    def __init__(self, settings: TimeoutSettings):
        self._settings = settings

    def timeout_for(self, method: str, path: str) -> float:
        method = method.upper()
        for rule in self._settings.rules:
            if rule.path_contains not in path:
                continue
            if rule.methods and method not in (m.upper() for m in rule.methods):
                continue
            return rule.timeout
        return self._settings.default
