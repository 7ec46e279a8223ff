from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class UpdateYamlRequest(BaseModel):
    yaml: str


class BackupRequest(BaseModel):
    dry_run: Optional[bool] = None


class TriggerResponse(BaseModel):
    success: bool
    message: str
    dry_run: bool


class UpdateYamlResponse(BaseModel):
    success: bool
    message: str


class SnapshotsResponse(BaseModel):
    snapshots: List[Dict[str, Any]] = Field(default_factory=list)
    count: int
