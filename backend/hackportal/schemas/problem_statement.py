from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class ProblemStatementCreate(BaseModel):
    """Admin create payload; coercion of maxSelections/technologies happens in the catalog service"""
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = ""
    maxSelections: Optional[Any] = None
    max_selections: Optional[Any] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    technologies: Optional[Any] = None


class ProblemStatementUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied"""
    title: Optional[str] = None
    description: Optional[str] = None
    maxSelections: Optional[Any] = None
    max_selections: Optional[Any] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    technologies: Optional[Any] = None

    model_config = ConfigDict(extra="ignore")


class ProblemStatementImport(BaseModel):
    problemStatements: List[Dict[str, Any]] = Field(default_factory=list)


class ProblemStatementView(BaseModel):
    """Catalog entry with live capacity"""
    id: str
    title: str
    description: str
    maxSelections: int
    category: Optional[str] = None
    difficulty: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)
    selectedCount: int
    isAvailable: bool


class ProblemStatementCreated(BaseModel):
    message: str = "Problem statement created successfully"
    id: str


class ProblemStatementDeleted(BaseModel):
    message: str = "Problem statement deleted successfully"
    deletedRegistrations: int = 0


class ImportResult(BaseModel):
    message: str
    imported: int
