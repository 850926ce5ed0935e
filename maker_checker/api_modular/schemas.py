"""
Pydantic schemas for API requests
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class GlobalConfigRequest(BaseModel):
    enabled: StrictBool


class ResolveEntryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audit_id: int = Field(..., alias="auditId", gt=0)
    command: str = Field(..., description='"approve" or "reject"')


class DeleteEntryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audit_id: int = Field(..., alias="auditId", gt=0)


class SuperCheckerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId", gt=0)
    is_super_checker: StrictBool = Field(..., alias="isSuperChecker")


class SubmissionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action_name: str = Field(..., alias="actionName", min_length=1)
    entity_name: Optional[str] = Field(None, alias="entityName")
    method: str = "POST"
    path: str = Field(..., description="Relative platform path, e.g. /v1/loans/12?command=approve")
    payload: Optional[Dict[str, Any]] = None
