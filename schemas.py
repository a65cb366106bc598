"""
Teacher Assignments API Schemas

Records are stored as JSON documents, one document per collection. The
collection name is the plural of the record type:

- teachers: teacher accounts (password stored as a bcrypt hash)
- assignments: homework assignments, each owned by one teacher via teacherId

Field names are camelCase to match the stored documents and the frontend.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal, Dict, Any

Role = Literal["teacher"]
AssignmentStatus = Literal["pending", "submitted", "graded"]

class Teacher(BaseModel):
    id: str
    name: str
    email: str
    password: str = Field(..., description="BCrypt hash of password")
    department: Optional[str] = None
    role: Role = "teacher"

class TeacherPublic(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    department: Optional[str] = None

class Assignment(BaseModel):
    id: str
    title: Optional[str] = None
    subject: Optional[str] = None
    course: Optional[str] = None
    status: Optional[AssignmentStatus] = None
    dueDate: Optional[str] = None
    totalStudents: Optional[int] = None
    submittedCount: int = 0
    gradedCount: int = 0
    teacherId: str

class AssignmentStats(BaseModel):
    totalAssignments: int = 0
    pending: int = 0
    submitted: int = 0
    graded: int = 0

class AssignmentList(BaseModel):
    stats: AssignmentStats
    assignments: List[Dict[str, Any]] = []

class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    department: str

class Principal(BaseModel):
    """The authenticated teacher a request acts as."""
    id: str
    email: str

class AuthResponse(BaseModel):
    token: str
    teacher: TeacherPublic

class Message(BaseModel):
    message: str
