"""Launch descriptor produced by provider argument compilers."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class PortMapping(BaseModel):
    """Host port published for a fixed container port."""

    model_config = ConfigDict(frozen=True)

    host: int
    container: int


class VolumeMount(BaseModel):
    """Named volume mounted at a path inside the container."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str


class LaunchDescriptor(BaseModel):
    """Runtime-agnostic description of how to start a database container."""

    image: str = Field(..., description="Image reference, '<repository>:<tag>'")
    env_vars: Dict[str, str] = Field(default_factory=dict)
    ports: List[PortMapping] = Field(default_factory=list)
    volumes: List[VolumeMount] = Field(default_factory=list)
    command: List[str] = Field(
        default_factory=list,
        description="Tokens appended to the image entrypoint; empty keeps the image default",
    )

    @property
    def host_ports(self) -> List[int]:
        return [mapping.host for mapping in self.ports]
