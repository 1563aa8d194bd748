"""Error types for clusteriam."""


class ClusterIAMError(Exception):
    """Base exception for clusteriam errors."""


class ConfigError(ClusterIAMError):
    """Configuration error."""


class GraphError(ClusterIAMError):
    """Invalid mutation of a resource graph."""


class DuplicateNameError(GraphError):
    """A resource with the same logical name is already declared."""

    def __init__(self, name: str):
        super().__init__(f"resource {name!r} is already declared")
        self.name = name


class DuplicateOutputError(GraphError):
    """An output with the same name is already bound."""

    def __init__(self, name: str):
        super().__init__(f"output {name!r} is already bound")
        self.name = name


class UnknownReferenceError(GraphError):
    """A property or output references a resource that is not declared."""

    def __init__(self, name: str, referrer: str):
        super().__init__(f"{referrer} references undeclared resource {name!r}")
        self.name = name
        self.referrer = referrer


class OutputCollectionError(ClusterIAMError):
    """Provisioning outputs could not be written back into the cluster config."""


class RoleImportError(ClusterIAMError):
    """The role owning an existing instance profile could not be imported."""

    def __init__(self, profile_arn: str, reason: str):
        super().__init__(f"importing instance role from profile {profile_arn!r}: {reason}")
        self.profile_arn = profile_arn
        self.reason = reason
