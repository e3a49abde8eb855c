from pydantic import BaseModel, ConfigDict, Field


class SidecarConfig(BaseModel):
    """A file to tail, read from a volume already mounted by some container of the Pod"""

    file: str = ""
    volume: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def identity(self) -> tuple[str, str]:
        return self.file, self.volume


class TailingSidecarMetadata(BaseModel):
    name: str = ""
    namespace: str | None = None


class TailingSidecarSpec(BaseModel):
    configs: dict[str, SidecarConfig] = Field(default_factory=dict)


class TailingSidecar(BaseModel):
    """Namespaced `tailing-sidecar.sumologic.com/v1` resource, only read by the webhook"""

    metadata: TailingSidecarMetadata = Field(default_factory=TailingSidecarMetadata)
    spec: TailingSidecarSpec = Field(default_factory=TailingSidecarSpec)
