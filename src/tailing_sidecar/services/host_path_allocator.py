import uuid
from typing import Final

DEFAULT_HOST_PATH_ROOT: Final = "/var/log/tailing-sidecar-fluentbit"


class HostPathAllocator:
    """Derive the host directory under which a Pod's sidecars stage their files"""

    root: str

    def __init__(self, root: str = DEFAULT_HOST_PATH_ROOT):
        self.root = root.rstrip("/") or "/"

    def allocate(self, namespace: str | None, name: str | None, generate_name: str | None, uid: str | None = None) -> str:
        """`<root>/<namespace>/<name>` for a named Pod.

        A Pod still waiting for its name gets `<root>/<generate name>/<token>`, where token is the
        Pod's uid when already assigned, otherwise a random uuid. The random token is not stable
        across admission calls for the same Pod.
        """
        if namespace and name:
            return self._join(namespace, name)
        token = uid or str(uuid.uuid4())
        return self._join((generate_name or "").rstrip("-"), token)

    def _join(self, *segments: str) -> str:
        return "/".join([self.root.rstrip("/"), *segments])
