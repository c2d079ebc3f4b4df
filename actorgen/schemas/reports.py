from typing import List, Optional

from pydantic import BaseModel, Field


class FieldReport(BaseModel):
    name: str
    type_signature: str
    primary_key: bool = False


class DeclarationReport(BaseModel):
    name: str
    actor: Optional[str] = None
    operations: List[str] = Field(default_factory=list)
    fields: List[FieldReport] = Field(default_factory=list)


class DiagnosticReport(BaseModel):
    severity: str
    declaration: str
    member: Optional[str] = None
    line: int = 0
    message: str


class SchemaReport(BaseModel):
    source: str
    declarations: List[DeclarationReport] = Field(default_factory=list)
    diagnostics: List[DiagnosticReport] = Field(default_factory=list)
