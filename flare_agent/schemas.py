from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

class FilePermsInfo(BaseModel):
    mode: str
    owner: str
    group: str

class HealthStatus(BaseModel):
    healthy: List[str] = Field(default_factory=list)
    unhealthy: List[str] = Field(default_factory=list)

    def sorted(self) -> "HealthStatus":
        return HealthStatus(healthy=sorted(self.healthy), unhealthy=sorted(self.unhealthy))

class CollectorStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    SKIPPED = "skipped"

class CollectorResult(BaseModel):
    name: str
    status: CollectorStatus = CollectorStatus.OK
    reason: Optional[str] = None

class FlareReport(BaseModel):
    """Outcome of one bundle-creation call."""
    temp_dir: str
    hostname: str
    local: bool = False
    results: List[CollectorResult] = Field(default_factory=list)

    def get(self, name: str) -> Optional[CollectorResult]:
        for r in self.results:
            if r.name == name:
                return r
        return None

    def degraded(self) -> List[CollectorResult]:
        return [r for r in self.results if r.status == CollectorStatus.DEGRADED]
